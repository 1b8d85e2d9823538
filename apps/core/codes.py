"""
Human-enterable unique codes.

Codes are never checked before insert. Instead the row is inserted inside a
savepoint and a unique-constraint violation on the code column triggers a
regenerate-and-retry, bounded by ``CODE_GENERATION_MAX_ATTEMPTS``. Concurrent
writers therefore can never persist a duplicate; the worst case is
``ConflictExhausted``.
"""

import logging
import secrets

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.core.exceptions import ConflictExhausted

logger = logging.getLogger(__name__)

# No 0/O or 1/I so codes survive being read over the phone.
COMPANY_CODE_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'
COMPANY_CODE_LENGTH = 7
SERVICE_QUEUE_PREFIX = 'ServQUE'


def generate_company_code():
    return ''.join(secrets.choice(COMPANY_CODE_ALPHABET) for _ in range(COMPANY_CODE_LENGTH))


def generate_login_code():
    """8 upper-case hex characters."""
    return secrets.token_hex(4).upper()


def generate_service_queue_id():
    """Time-derived ticket reference, e.g. ``ServQUE-1718000000000-3FA9``."""
    millis = int(timezone.now().timestamp() * 1000)
    return f"{SERVICE_QUEUE_PREFIX}-{millis}-{secrets.token_hex(2).upper()}"


def create_with_unique_code(model, field, generator, *, values, create=None, max_attempts=None):
    """
    Insert a row whose ``field`` is produced by ``generator``.

    ``create`` defaults to ``model.objects.create`` and receives ``values``
    plus the generated code as keyword arguments. Models that ``full_clean``
    on save report the collision as a ``ValidationError`` instead of an
    ``IntegrityError``; either is retried, and errors that are not caused by
    a code collision are re-raised untouched.
    """
    create = create or model.objects.create
    attempts = max_attempts or getattr(settings, 'CODE_GENERATION_MAX_ATTEMPTS', 10)

    for attempt in range(1, attempts + 1):
        candidate = generator()
        try:
            with transaction.atomic():
                return create(**{**values, field: candidate})
        except (IntegrityError, ValidationError):
            if not model._default_manager.filter(**{field: candidate}).exists():
                raise
            logger.warning(
                f"{model.__name__}.{field} collision on attempt {attempt}/{attempts}, regenerating"
            )

    logger.error(f"Exhausted {attempts} attempts generating a unique {model.__name__}.{field}")
    raise ConflictExhausted(f"Could not generate a unique {field.replace('_', ' ')}")
