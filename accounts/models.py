import hashlib
import secrets
from datetime import timedelta

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models
from django.utils import timezone


class UserManager(BaseUserManager):
    def create_user(self, username, password=None, **extra_fields):
        if not username:
            raise ValueError('Username is required')
        user = self.model(username=username.strip(), **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_admin(self, username, password=None, **extra_fields):
        extra_fields.setdefault('role', User.Role.ADMIN)
        return self.create_user(username, password, **extra_fields)

    def create_superuser(self, username, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        return self.create_admin(username, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    class Role(models.TextChoices):
        USER = 'user', 'User'
        ADMIN = 'admin', 'Admin'

    username = models.CharField(max_length=150, unique=True)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.USER)
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = 'username'
    REQUIRED_FIELDS = []

    @property
    def is_admin(self):
        return self.is_active and self.role == self.Role.ADMIN

    def __str__(self):
        return self.username


class UserSession(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='user_sessions')
    session_token = models.CharField(max_length=128, unique=True)
    expires_at = models.DateTimeField()
    device_info = models.CharField(max_length=255, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    @classmethod
    def create_session(cls, user, *, ip_address='', device_info=''):
        raw_token = secrets.token_urlsafe(48)
        expires_at = timezone.now() + timedelta(seconds=settings.TOKEN_SESSION_IDLE_TIMEOUT_SECONDS)
        session = cls.objects.create(
            user=user,
            session_token=cls.digest_token(raw_token),
            expires_at=expires_at,
            ip_address=ip_address or None,
            device_info=device_info[:255],
        )
        return raw_token, session

    @staticmethod
    def digest_token(raw_token):
        return hashlib.sha256(raw_token.encode()).hexdigest()

    def touch(self):
        self.expires_at = timezone.now() + timedelta(seconds=settings.TOKEN_SESSION_IDLE_TIMEOUT_SECONDS)
        self.save(update_fields=['expires_at'])


class AdminAuditLog(models.Model):
    admin_user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE)
    event = models.CharField(max_length=64)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f'{self.admin_user_id}:{self.event}'
