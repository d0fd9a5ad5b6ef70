import secrets
import string

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

RESOURCE_ID_MAX_LENGTH = 128
CODE_VALUE_MAX_LENGTH = 255
CLIENT_ID_MAX_LENGTH = 255


class PremiumCodeQuerySet(models.QuerySet):
    def for_resource(self, resource_id):
        return self.filter(resource_id=resource_id)

    def matching(self, resource_id, value):
        return self.filter(resource_id=resource_id, value=value)

    def unredeemed(self):
        return self.filter(redeemed_by__isnull=True)

    def newest_first(self):
        return self.order_by('-created_at', '-id')

    def claim(self, code_id, client_id, *, at=None):
        """Mark one code redeemed, but only if nobody has redeemed it yet.

        Runs as a single conditional UPDATE and returns the number of rows it
        changed: 1 for the caller that won the code, 0 for everyone else.
        """
        return self.filter(pk=code_id, redeemed_by__isnull=True).update(
            redeemed_by=client_id,
            redeemed_at=at or timezone.now(),
        )


class PremiumCode(models.Model):
    resource_id = models.CharField(max_length=RESOURCE_ID_MAX_LENGTH, db_index=True)
    value = models.CharField(max_length=CODE_VALUE_MAX_LENGTH)
    redeemed_by = models.CharField(max_length=CLIENT_ID_MAX_LENGTH, null=True, blank=True)
    redeemed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    created_by_admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='issued_premium_codes',
    )

    objects = PremiumCodeQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['resource_id', 'value'], name='premium_code_lookup_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(redeemed_by__isnull=True, redeemed_at__isnull=True)
                    | Q(redeemed_by__isnull=False, redeemed_at__isnull=False)
                ),
                name='premium_code_redemption_pair',
            ),
        ]

    @property
    def is_redeemed(self):
        return self.redeemed_by is not None

    @staticmethod
    def generate_value(length=None):
        alphabet = string.ascii_uppercase + string.digits
        length = length or settings.PREMIUM_CODE_GENERATED_LENGTH
        return ''.join(secrets.choice(alphabet) for _ in range(length))

    def as_dict(self):
        return {
            'id': self.id,
            'resource_id': self.resource_id,
            'code': self.value,
            'redeemed_by': self.redeemed_by,
            'redeemed_at': self.redeemed_at.isoformat() if self.redeemed_at else None,
            'created_at': self.created_at.isoformat(),
        }

    def __str__(self):
        return f'{self.resource_id}:{self.value}'


class AccessGrantQuerySet(models.QuerySet):
    def for_pair(self, client_id, resource_id):
        return self.filter(client_id=client_id, resource_id=resource_id)


class AccessGrant(models.Model):
    client_id = models.CharField(max_length=CLIENT_ID_MAX_LENGTH)
    resource_id = models.CharField(max_length=RESOURCE_ID_MAX_LENGTH)
    code_value_used = models.CharField(max_length=CODE_VALUE_MAX_LENGTH)
    granted_at = models.DateTimeField(default=timezone.now)

    objects = AccessGrantQuerySet.as_manager()

    class Meta:
        ordering = ['-granted_at']
        indexes = [
            models.Index(fields=['client_id', 'resource_id'], name='access_grant_pair_idx'),
        ]

    def __str__(self):
        return f'{self.client_id} -> {self.resource_id}'


class FailedCodeAttempt(models.Model):
    resource_id = models.CharField(max_length=RESOURCE_ID_MAX_LENGTH, blank=True)
    code_value = models.CharField(max_length=CODE_VALUE_MAX_LENGTH, blank=True)
    client_id = models.CharField(max_length=CLIENT_ID_MAX_LENGTH, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    reason = models.CharField(max_length=64)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
