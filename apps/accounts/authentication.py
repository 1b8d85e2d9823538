from django.conf import settings
from rest_framework.authentication import BaseAuthentication, get_authorization_header

from apps.core.exceptions import InvalidToken
from .models import User
from .session import verify_session


def get_request_tokens(request):
    """Candidate tokens in order: the auth cookie, then ``Authorization: Bearer``."""
    tokens = []
    cookie = request.COOKIES.get(settings.AUTH_COOKIE_NAME)
    if cookie:
        tokens.append(cookie)

    auth = get_authorization_header(request).split()
    if len(auth) == 2 and auth[0].lower() == b'bearer':
        try:
            tokens.append(auth[1].decode())
        except UnicodeError:
            raise InvalidToken()
    return tokens


class SessionTokenAuthentication(BaseAuthentication):
    """
    DRF authentication backed by signed session tokens.

    Returns ``(user, identity)`` so views can read ``request.auth`` as the
    trusted identity. A missing token is not an error here; the role guard
    decides whether the view needs one. A cookie that fails verification
    falls through to the bearer header before the request is rejected.
    """

    keyword = 'Bearer'

    def authenticate(self, request):
        tokens = get_request_tokens(request)
        if not tokens:
            return None

        for token in tokens:
            try:
                return self.authenticate_token(token)
            except InvalidToken as exc:
                error = exc
        raise error

    def authenticate_token(self, token):
        identity = verify_session(token)
        user = User.objects.filter(pk=identity.user_id, is_active=True).first()
        if user is None or user.role != identity.role:
            raise InvalidToken()
        return user, identity

    def authenticate_header(self, request):
        return self.keyword
