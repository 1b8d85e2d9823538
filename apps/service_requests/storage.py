"""
Attachment blob storage.

Files live in Django's ``default_storage`` under
``uploads/<request_id>/<millis>-<original name>``. The timestamp prefix
keeps uploads of the same name apart; the original name is recovered by
stripping everything up to the first ``-``.
"""

import logging
import os

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.files.storage import default_storage
from django.utils import timezone
from django.utils.text import get_valid_filename

logger = logging.getLogger(__name__)

UPLOAD_ROOT = 'uploads'

MIME_TYPES = {
    '.pdf': 'application/pdf',
    '.doc': 'application/msword',
    '.docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    '.xls': 'application/vnd.ms-excel',
    '.xlsx': 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.gif': 'image/gif',
    '.txt': 'text/plain',
}
DEFAULT_MIME_TYPE = 'application/octet-stream'


def mime_type_for(filename):
    """MIME type from the file extension only; content is never sniffed."""
    _, ext = os.path.splitext(filename or '')
    return MIME_TYPES.get(ext.lower(), DEFAULT_MIME_TYPE)


def original_name(stored_name):
    _, sep, rest = stored_name.partition('-')
    return rest if sep else stored_name


def request_dir(request_id):
    return f"{UPLOAD_ROOT}/{request_id}"


def validate_upload(upload):
    name = upload.name or ''
    _, ext = os.path.splitext(name)
    allowed = getattr(settings, 'ALLOWED_UPLOAD_EXTENSIONS', list(MIME_TYPES))
    if ext.lower() not in allowed:
        raise ValidationError({'files': f"File type '{ext or name}' is not allowed."})
    max_size = getattr(settings, 'MAX_ATTACHMENT_SIZE', 10 * 1024 * 1024)
    if upload.size > max_size:
        raise ValidationError({'files': f"{name} exceeds the maximum size of {max_size // (1024 * 1024)}MB."})


def save_upload(request_id, upload):
    """Store ``upload`` for ``request_id`` and return its storage key."""
    safe_name = get_valid_filename(os.path.basename(upload.name))
    millis = int(timezone.now().timestamp() * 1000)
    key = f"{request_dir(request_id)}/{millis}-{safe_name}"
    # Storage may rename on collision; the returned key is authoritative.
    stored_key = default_storage.save(key, upload)
    logger.info(f"Stored attachment {stored_key}")
    return stored_key


def delete_quietly(keys):
    """Remove stored blobs after a failed transaction; errors are only logged."""
    for key in keys:
        try:
            default_storage.delete(key)
        except Exception:
            logger.exception(f"Could not remove orphaned attachment {key}")


def exists(key):
    return default_storage.exists(key)


def open_blob(key):
    return default_storage.open(key, 'rb')
