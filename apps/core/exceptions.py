"""
Error taxonomy for the service desk API.

Every error that crosses the HTTP boundary is one of these DRF exceptions,
Django's ``ValidationError``/``PermissionDenied``, or an unexpected exception
that ends up in ``handler500``. ``api_exception_handler`` renders them all as
``{"error": "..."}``.
"""

from rest_framework import status
from rest_framework.exceptions import APIException


class AuthenticationRequired(APIException):
    """No session token was supplied."""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Authentication required'
    default_code = 'authentication_required'


class InvalidToken(APIException):
    """Token present but unverifiable, expired, or for an unknown user."""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Invalid token'
    default_code = 'invalid_token'


class InsufficientPermissions(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Insufficient permissions'
    default_code = 'insufficient_permissions'


class NotFound(APIException):
    """
    Resource is absent or outside the caller's tenant scope.

    Both cases produce the same response.
    """
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found'
    default_code = 'not_found'


class Conflict(APIException):
    """Uniqueness violation the caller can fix (duplicate email, code...)."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Resource already exists'
    default_code = 'conflict'


class ConflictExhausted(Conflict):
    """A generated unique value kept colliding until the retry budget ran out."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Could not generate a unique value, please try again'
    default_code = 'conflict_exhausted'


class RateLimited(APIException):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_detail = 'Too many failed login attempts. Please try again later.'
    default_code = 'rate_limited'


class InvalidCredentials(APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Invalid credentials'
    default_code = 'invalid_credentials'
