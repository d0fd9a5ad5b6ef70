import json
import logging

from django.conf import settings
from django.core.cache import cache

from .models import AdminAuditLog

logger = logging.getLogger(__name__)


class BadPayload(ValueError):
    pass


def get_client_ip(request):
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR', '')


def read_payload(request):
    """Request body as a dict: JSON when the client sends JSON, form fields otherwise."""
    if request.content_type == 'application/json':
        try:
            data = json.loads(request.body or b'{}')
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise BadPayload('Malformed JSON body') from exc
        if not isinstance(data, dict):
            raise BadPayload('JSON body must be an object')
        return data
    return request.POST.dict()


def auth_user(request):
    session = getattr(request, 'authenticated_session', None)
    if session:
        return session.user
    return None


def admin_user(request):
    user = auth_user(request)
    if user and user.is_admin:
        return user
    return None


def is_login_rate_limited(identifier):
    return bool(cache.get(f'login-lock:{identifier}'))


def register_login_failure(identifier):
    attempts_key = f'login-attempts:{identifier}'
    attempts = cache.get(attempts_key, 0) + 1
    cache.set(attempts_key, attempts, timeout=settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS)
    if attempts >= settings.LOGIN_RATE_LIMIT_ATTEMPTS:
        cache.set(f'login-lock:{identifier}', True, timeout=settings.LOGIN_RATE_LIMIT_LOCK_SECONDS)
        logger.warning('admin_login_locked', extra={'reason': identifier})
    return attempts


def clear_login_failures(identifier):
    cache.delete(f'login-attempts:{identifier}')
    cache.delete(f'login-lock:{identifier}')


def record_admin_event(user, event, *, request=None, metadata=None):
    AdminAuditLog.objects.create(
        admin_user=user,
        event=event,
        ip_address=(get_client_ip(request) if request else None) or None,
        metadata=metadata or {},
    )
    logger.info(event, extra={'admin_id': user.id, 'username': user.username})
