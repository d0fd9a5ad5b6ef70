from django import forms
from django.contrib.auth.password_validation import validate_password

from .models import User


class AdminLoginForm(forms.Form):
    username = forms.CharField(max_length=150)
    password = forms.CharField(widget=forms.PasswordInput)


class CreateAdminForm(forms.Form):
    username = forms.CharField(max_length=150)
    password = forms.CharField(widget=forms.PasswordInput)

    def clean_username(self):
        username = self.cleaned_data['username'].strip()
        if User.objects.filter(username__iexact=username).exists():
            raise forms.ValidationError('Username already taken')
        return username

    def clean(self):
        cleaned = super().clean()
        password = cleaned.get('password')
        if password:
            try:
                validate_password(password, user=User(username=cleaned.get('username', '')))
            except forms.ValidationError as exc:
                self.add_error('password', exc)
        return cleaned
