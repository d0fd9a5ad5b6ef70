from django.utils import timezone

from .models import UserSession


def _raw_token(request):
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header.removeprefix('Bearer ').strip()
    return request.COOKIES.get('session_token', '').strip()


class TokenSessionMiddleware:
    """Resolves an admin token session from the bearer header or session cookie.

    Sliding expiry: every authenticated request pushes ``expires_at`` forward by
    the idle timeout. Expired sessions are deleted on sight.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.authenticated_session = None
        raw_token = _raw_token(request)
        if raw_token:
            digest = UserSession.digest_token(raw_token)
            session = UserSession.objects.filter(session_token=digest).select_related('user').first()
            if session and session.expires_at <= timezone.now():
                session.delete()
            elif session and session.user.is_active:
                request.user = session.user
                request.authenticated_session = session
                session.touch()
        return self.get_response(request)
