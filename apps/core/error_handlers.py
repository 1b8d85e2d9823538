"""
Error handling for the service desk API.

``api_exception_handler`` is wired in as DRF's ``EXCEPTION_HANDLER`` and the
``handler40x``/``handler500`` views cover everything DRF does not see.
All of them answer with ``{"error": ...}``; field-level detail is only
included while ``DEBUG`` is on.
"""

import logging

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import JsonResponse
from django.views.decorators.cache import never_cache
from django.views.decorators.csrf import requires_csrf_token
from rest_framework import exceptions
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def _django_validation_detail(exc):
    if hasattr(exc, 'error_dict'):
        return {
            ('non_field_errors' if field == '__all__' else field): messages
            for field, messages in exc.message_dict.items()
        }
    return {'non_field_errors': exc.messages}


def _first_message(detail):
    """Pull a single human readable message out of a DRF error detail."""
    if isinstance(detail, dict):
        for value in detail.values():
            return _first_message(value)
        return 'Invalid request'
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else 'Invalid request'
    return str(detail)


def api_exception_handler(exc, context):
    """Render API errors as ``{"error": message}``."""
    if isinstance(exc, DjangoValidationError):
        exc = exceptions.ValidationError(detail=_django_validation_detail(exc))

    response = exception_handler(exc, context)
    if response is None:
        # Unexpected failure: let Django's handler500 produce the body.
        return None

    request = context.get('request')
    path = getattr(request, 'path', '')
    if response.status_code >= 500:
        logger.error(f"API error {response.status_code} for path: {path}: {exc}")
    elif response.status_code in (401, 403):
        logger.warning(f"API {response.status_code} for path: {path}")

    payload = {'error': _first_message(response.data)}
    if settings.DEBUG and isinstance(exc, exceptions.ValidationError):
        payload['details'] = response.data
    response.data = payload
    return response


@never_cache
@requires_csrf_token
def handler404(request, exception=None):
    """Custom 404 error handler."""
    logger.warning(f"404 error for path: {request.path} from IP: {request.META.get('REMOTE_ADDR')}")
    return JsonResponse({'error': 'Resource not found', 'path': request.path}, status=404)


@never_cache
@requires_csrf_token
def handler500(request):
    """Custom 500 error handler; never leaks exception detail."""
    logger.error(f"500 error for path: {request.path} from IP: {request.META.get('REMOTE_ADDR')}")
    return JsonResponse({'error': 'Internal server error'}, status=500)


@never_cache
@requires_csrf_token
def handler403(request, exception=None):
    """Custom 403 error handler."""
    logger.warning(f"403 error for path: {request.path} from IP: {request.META.get('REMOTE_ADDR')}")
    return JsonResponse({'error': 'Access forbidden'}, status=403)


def csrf_failure(request, reason=""):
    """Custom CSRF failure handler."""
    logger.warning(f"CSRF failure for path: {request.path} from IP: {request.META.get('REMOTE_ADDR')} - Reason: {reason}")
    return JsonResponse({'error': 'CSRF verification failed'}, status=403)
