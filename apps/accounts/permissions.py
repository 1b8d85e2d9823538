from functools import wraps

from apps.core.exceptions import AuthenticationRequired, InsufficientPermissions
from .models import Role
from .session import SessionIdentity


def require_role(*roles):
    """
    Guard a DRF view (or a helper called with the DRF request) by role.

    - no token: ``AuthenticationRequired`` (401)
    - bad or expired token: ``InvalidToken`` (401), raised while DRF
      authenticates the request
    - role not allowed: ``InsufficientPermissions`` (403)

    On success ``request.identity`` holds the caller's ``SessionIdentity``.
    """
    allowed = frozenset(Role(role) for role in roles)

    def decorator(view_func):
        @wraps(view_func)
        def guarded(request, *args, **kwargs):
            identity = request.auth
            if not isinstance(identity, SessionIdentity):
                raise AuthenticationRequired()
            if identity.role not in allowed:
                raise InsufficientPermissions()
            request.identity = identity
            return view_func(request, *args, **kwargs)

        guarded.allowed_roles = allowed
        return guarded

    return decorator
