import logging

from django.http import HttpResponseForbidden, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from accounts.utils import BadPayload, admin_user, get_client_ip, read_payload, record_admin_event

from . import services
from .exceptions import StorageError
from .models import CLIENT_ID_MAX_LENGTH, PremiumCode
from .security import clear_code_failures, is_code_locked, log_failed_attempt, register_code_failure

logger = logging.getLogger(__name__)


def _text(data, key):
    value = data.get(key)
    if value is None:
        return ''
    return value if isinstance(value, str) else str(value)


def _storage_failure(exc, **body):
    return JsonResponse({**body, 'error': str(exc)}, status=500)


@csrf_exempt
@require_POST
def redeem_code(request):
    try:
        payload = read_payload(request)
    except BadPayload as exc:
        return JsonResponse({'valid': False, 'error': str(exc)}, status=400)

    resource_id = _text(payload, 'resource_id')
    code_value = _text(payload, 'code')
    client_id = _text(payload, 'client_id')
    if not client_id:
        return JsonResponse({'valid': False, 'error': 'client_id is required'}, status=400)
    if len(client_id) > CLIENT_ID_MAX_LENGTH:
        return JsonResponse({'valid': False, 'error': f'client_id must be at most {CLIENT_ID_MAX_LENGTH} characters'}, status=400)

    ip = get_client_ip(request)
    if is_code_locked(ip, client_id):
        log_failed_attempt(resource_id=resource_id, code_value=code_value, client_id=client_id, ip=ip, reason='locked')
        return JsonResponse({'valid': False, 'error': 'Too many attempts. Try later.'}, status=429)

    try:
        result = services.redeem(resource_id, code_value, client_id)
    except StorageError as exc:
        return _storage_failure(exc, valid=False)

    if result.valid:
        clear_code_failures(ip, client_id)
    else:
        register_code_failure(ip, client_id)
        log_failed_attempt(resource_id=resource_id, code_value=code_value, client_id=client_id, ip=ip, reason='invalid')
    return JsonResponse(result.as_dict())


@require_GET
def check_access(request):
    client_id = request.GET.get('client_id', '')
    resource_id = request.GET.get('resource_id', '')
    try:
        allowed = services.has_access(client_id, resource_id)
    except StorageError as exc:
        return _storage_failure(exc)
    return JsonResponse({'has_access': allowed})


@require_GET
def list_codes(request, resource_id):
    if not admin_user(request):
        return HttpResponseForbidden('Admin required')
    try:
        codes = services.list_codes(resource_id)
    except StorageError as exc:
        return _storage_failure(exc)
    return JsonResponse({'codes': [code.as_dict() for code in codes]})


@csrf_exempt
@require_POST
def issue_code(request, resource_id):
    user = admin_user(request)
    if not user:
        return HttpResponseForbidden('Admin required')
    try:
        payload = read_payload(request)
    except BadPayload as exc:
        return JsonResponse({'error': str(exc)}, status=400)

    value = _text(payload, 'code') if 'code' in payload else PremiumCode.generate_value()
    try:
        code = services.issue_code(resource_id, value, created_by=user)
    except ValueError as exc:
        return JsonResponse({'error': str(exc)}, status=400)
    except StorageError as exc:
        return _storage_failure(exc)

    record_admin_event(user, 'premium_code_issued', request=request, metadata={'resource_id': resource_id, 'code_id': code.id})
    return JsonResponse({'success': True, 'code': code.as_dict()}, status=201)


@csrf_exempt
@require_POST
def delete_code(request, code_id):
    user = admin_user(request)
    if not user:
        return HttpResponseForbidden('Admin required')
    try:
        deleted = services.delete_code(code_id)
    except StorageError as exc:
        return _storage_failure(exc)
    # A missing id is not an error; the code is gone either way.
    if deleted:
        record_admin_event(user, 'premium_code_deleted', request=request, metadata={'code_id': code_id})
    return JsonResponse({'success': True, 'deleted': deleted})
