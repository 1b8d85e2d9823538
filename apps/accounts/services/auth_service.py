import logging

from django.contrib.auth import authenticate
from django.contrib.auth.signals import user_logged_in
from django.core.exceptions import ValidationError

from apps.core.exceptions import InvalidCredentials, RateLimited
from ..session import SessionIdentity, issue_session
from ..signals import is_blocked

logger = logging.getLogger(__name__)


def login(request, *, login_code=None, email=None, password=None):
    """Authenticate one of the three login modes and issue a session token.

    - ``login_code``: any active user with that code
    - ``email`` + ``password``: super admins only
    - ``email`` + ``login_code``: customer admins only

    Returns ``(user, identity, token)``.
    """
    login_code = (login_code or '').strip()
    email = (email or '').strip().lower()

    if password:
        if not email:
            raise ValidationError({'email': 'Email is required.'})
        credentials = {'email': email, 'password': password}
    elif login_code:
        credentials = {'login_code': login_code}
        if email:
            credentials['email'] = email
    else:
        raise ValidationError({'login_code': 'Login code is required.'})

    if is_blocked(request, credentials):
        raise RateLimited()

    user = authenticate(request, **credentials)
    if user is None:
        logger.info(f"Failed login for {email or 'login code'}")
        raise InvalidCredentials()

    user_logged_in.send(sender=user.__class__, request=request, user=user)

    identity = SessionIdentity.for_user(user)
    logger.info(f"User {user.pk} logged in as {identity.role}")
    return user, identity, issue_session(identity)
