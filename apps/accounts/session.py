"""
Signed session tokens.

A token is a ``django.core.signing`` payload carrying the caller's identity.
It is verified locally with ``SECRET_KEY`` and expires after
``SESSION_TOKEN_MAX_AGE`` seconds; there is no refresh, an expired token
forces a new login.
"""

from dataclasses import asdict, dataclass

from django.conf import settings
from django.core import signing

from apps.core.exceptions import InvalidToken
from .models import Role

DEFAULT_SALT = 'apps.accounts.session'
DEFAULT_MAX_AGE = 60 * 60 * 24


@dataclass(frozen=True)
class SessionIdentity:
    """Request-scoped identity injected by the authorization guard."""

    user_id: str
    email: str
    role: Role
    company_id: str | None = None
    first_name: str = ''
    last_name: str = ''

    @classmethod
    def for_user(cls, user):
        return cls(
            user_id=str(user.pk),
            email=user.email,
            role=Role(user.role),
            company_id=str(user.company_id) if user.company_id else None,
            first_name=user.first_name,
            last_name=user.last_name,
        )

    def as_payload(self):
        data = asdict(self)
        data['role'] = str(self.role)
        return data


def _salt():
    return getattr(settings, 'SESSION_TOKEN_SALT', DEFAULT_SALT)


def max_age():
    return getattr(settings, 'SESSION_TOKEN_MAX_AGE', DEFAULT_MAX_AGE)


def issue_session(identity: SessionIdentity) -> str:
    return signing.dumps(identity.as_payload(), salt=_salt(), compress=True)


def verify_session(token: str) -> SessionIdentity:
    """Return the identity inside ``token`` or raise ``InvalidToken``."""
    try:
        payload = signing.loads(token, salt=_salt(), max_age=max_age())
    except signing.SignatureExpired:
        raise InvalidToken('Session expired')
    except signing.BadSignature:
        raise InvalidToken()

    try:
        return SessionIdentity(
            user_id=payload['user_id'],
            email=payload['email'],
            role=Role(payload['role']),
            company_id=payload.get('company_id'),
            first_name=payload.get('first_name', ''),
            last_name=payload.get('last_name', ''),
        )
    except (KeyError, TypeError, ValueError):
        raise InvalidToken()


def set_session_cookie(response, token):
    response.set_cookie(
        settings.AUTH_COOKIE_NAME,
        token,
        max_age=max_age(),
        path='/',
        httponly=True,
        samesite='Lax',
        secure=getattr(settings, 'AUTH_COOKIE_SECURE', False),
    )
    return response


def clear_session_cookie(response):
    response.delete_cookie(settings.AUTH_COOKIE_NAME, path='/', samesite='Lax')
    return response
