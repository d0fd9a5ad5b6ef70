import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='PremiumCode',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('resource_id', models.CharField(db_index=True, max_length=128)),
                ('value', models.CharField(max_length=255)),
                ('redeemed_by', models.CharField(blank=True, max_length=128, null=True)),
                ('redeemed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by_admin', models.ForeignKey(blank=True, null=True, on_delete=models.deletion.SET_NULL, related_name='issued_premium_codes', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at', '-id'],
                'indexes': [models.Index(fields=['resource_id', 'value'], name='premium_code_lookup_idx')],
                'constraints': [
                    models.CheckConstraint(
                        condition=models.Q(('redeemed_by__isnull', True), ('redeemed_at__isnull', True))
                        | models.Q(('redeemed_by__isnull', False), ('redeemed_at__isnull', False)),
                        name='premium_code_redemption_pair',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='AccessGrant',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('client_id', models.CharField(max_length=128)),
                ('resource_id', models.CharField(max_length=128)),
                ('code_value_used', models.CharField(max_length=255)),
                ('granted_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'ordering': ['-granted_at'],
                'indexes': [models.Index(fields=['client_id', 'resource_id'], name='access_grant_pair_idx')],
            },
        ),
        migrations.CreateModel(
            name='FailedCodeAttempt',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('resource_id', models.CharField(blank=True, max_length=128)),
                ('code_value', models.CharField(blank=True, max_length=255)),
                ('client_id', models.CharField(blank=True, max_length=128)),
                ('ip_address', models.GenericIPAddressField(blank=True, null=True)),
                ('reason', models.CharField(max_length=64)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={'ordering': ['-created_at']},
        ),
    ]
