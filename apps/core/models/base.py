"""
Base abstract models for the service desk.

These models provide common functionality for all domain models:
- Opaque UUID primary keys generated at insert time
- Timestamps
- Append-only enforcement for thread records (notes, attachments, logs)
"""

import uuid

from django.db import models


class UUIDModel(models.Model):
    """
    Abstract base with a collision-resistant primary key.

    Identifiers are never sequential so they cannot be used to enumerate
    records belonging to other companies.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    class Meta:
        abstract = True


class TimeStampedModel(UUIDModel):
    """
    Abstract base model for mutable entities.

    **Tracks:**
    - When it was created
    - When it was last modified
    """

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class AppendOnlyModel(UUIDModel):
    """
    Abstract base model for records that are written once.

    Saving an existing row raises ``ValueError``; there is no update path
    through the workflow, only new rows.
    """

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError(f"{self.__class__.__name__} records are append-only")
        super().save(*args, **kwargs)
