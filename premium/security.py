import logging

from django.conf import settings
from django.core.cache import cache
from django.db import DatabaseError

from .models import CLIENT_ID_MAX_LENGTH, CODE_VALUE_MAX_LENGTH, RESOURCE_ID_MAX_LENGTH, FailedCodeAttempt

logger = logging.getLogger(__name__)


def _rate_key(ip: str, client_id: str):
    return f'code-rate:{ip}:{client_id}'


def _lock_key(ip: str, client_id: str):
    return f'code-lock:{ip}:{client_id}'


def register_code_failure(ip: str, client_id: str):
    key = _rate_key(ip, client_id)
    attempts = cache.get(key, 0) + 1
    cache.set(key, attempts, timeout=settings.CODE_RATE_LIMIT_WINDOW_SECONDS)
    if attempts >= settings.CODE_RATE_LIMIT_ATTEMPTS:
        cache.set(_lock_key(ip, client_id), True, timeout=settings.CODE_RATE_LIMIT_LOCK_SECONDS)
        logger.warning('premium_code_entry_locked', extra={'ip_address': ip, 'client_id': client_id})
    return attempts


def clear_code_failures(ip: str, client_id: str):
    cache.delete(_rate_key(ip, client_id))
    cache.delete(_lock_key(ip, client_id))


def is_code_locked(ip: str, client_id: str):
    return bool(cache.get(_lock_key(ip, client_id)))


def log_failed_attempt(*, resource_id, code_value, client_id, ip, reason):
    # Losing the audit row must not change the redemption response.
    try:
        FailedCodeAttempt.objects.create(
            resource_id=resource_id[:RESOURCE_ID_MAX_LENGTH],
            code_value=code_value[:CODE_VALUE_MAX_LENGTH],
            client_id=client_id[:CLIENT_ID_MAX_LENGTH],
            ip_address=ip or None,
            reason=reason,
        )
    except DatabaseError:
        logger.error(
            'premium_failed_attempt_not_recorded',
            exc_info=True,
            extra={'resource_id': resource_id, 'client_id': client_id, 'ip_address': ip, 'reason': reason},
        )
