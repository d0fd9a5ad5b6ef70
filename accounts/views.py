import logging

from django.contrib.auth import get_user_model
from django.http import HttpResponseForbidden, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from .forms import AdminLoginForm, CreateAdminForm
from .models import UserSession
from .utils import (
    BadPayload,
    admin_user,
    clear_login_failures,
    get_client_ip,
    is_login_rate_limited,
    read_payload,
    record_admin_event,
    register_login_failure,
)

User = get_user_model()

logger = logging.getLogger(__name__)


def _identifier(request, username):
    return f'{get_client_ip(request)}:admin:{username.lower()}'


def _form_errors(form):
    return {field: [str(e) for e in errors] for field, errors in form.errors.items()}


@csrf_exempt
@require_POST
def admin_login(request):
    try:
        form = AdminLoginForm(read_payload(request))
    except BadPayload as exc:
        return JsonResponse({'error': str(exc)}, status=400)
    if not form.is_valid():
        return JsonResponse({'error': 'Username and password are required', 'fields': _form_errors(form)}, status=400)

    username = form.cleaned_data['username'].strip()
    identifier = _identifier(request, username)
    if is_login_rate_limited(identifier):
        logger.warning('admin_login_rate_limited', extra={'username': username, 'ip_address': get_client_ip(request)})
        return JsonResponse({'error': 'Too many attempts. Please try again later.'}, status=429)

    user = User.objects.filter(username__iexact=username, role=User.Role.ADMIN, is_active=True).first()
    if not user or not user.check_password(form.cleaned_data['password']):
        register_login_failure(identifier)
        logger.info('admin_login_failed', extra={'username': username, 'ip_address': get_client_ip(request)})
        return JsonResponse({'error': 'Invalid credentials'}, status=401)

    clear_login_failures(identifier)
    raw_token, session = UserSession.create_session(
        user,
        ip_address=get_client_ip(request),
        device_info=request.META.get('HTTP_USER_AGENT', ''),
    )
    record_admin_event(user, 'admin_login', request=request)
    response = JsonResponse({'success': True, 'token': raw_token, 'expires_at': session.expires_at.isoformat()})
    response.set_cookie('session_token', raw_token, secure=True, httponly=True, samesite='Lax')
    return response


@csrf_exempt
@require_POST
def logout_view(request):
    session = getattr(request, 'authenticated_session', None)
    if session:
        if session.user.is_admin:
            record_admin_event(session.user, 'admin_logout', request=request)
        session.delete()
    response = JsonResponse({'success': True})
    response.delete_cookie('session_token')
    return response


@csrf_exempt
@require_POST
def create_admin(request):
    user = admin_user(request)
    if not user:
        return HttpResponseForbidden('Admin required')
    try:
        form = CreateAdminForm(read_payload(request))
    except BadPayload as exc:
        return JsonResponse({'error': str(exc)}, status=400)
    if not form.is_valid():
        return JsonResponse({'error': 'Invalid admin details', 'fields': _form_errors(form)}, status=400)

    new_admin = User.objects.create_admin(form.cleaned_data['username'], form.cleaned_data['password'])
    record_admin_event(user, 'admin_created', request=request, metadata={'new_admin_id': new_admin.id})
    return JsonResponse({'success': True, 'admin': {'id': new_admin.id, 'username': new_admin.username}}, status=201)
