from django.db import models

from apps.core.models import AppendOnlyModel


class ActivityLog(AppendOnlyModel):
    """Append-only audit trail of business events across the service desk."""

    TYPE_REQUEST_CREATED = 'request_created'
    TYPE_REQUEST_UPDATED = 'request_updated'
    TYPE_REQUEST_ASSIGNED = 'request_assigned'
    TYPE_NOTE_ADDED = 'note_added'
    TYPE_ATTACHMENT_UPLOADED = 'attachment_uploaded'
    TYPE_STATUS_CHANGED = 'status_changed'
    TYPE_USER_CREATED = 'user_created'
    TYPE_USER_UPDATED = 'user_updated'
    TYPE_USER_DELETED = 'user_deleted'
    TYPE_AGENT_CREATED = 'agent_created'
    TYPE_COMPANY_CREATED = 'company_created'
    TYPE_COMPANY_UPDATED = 'company_updated'
    TYPE_COMPANY_DELETED = 'company_deleted'

    TYPE_CHOICES = [
        (TYPE_REQUEST_CREATED, 'Request Created'),
        (TYPE_REQUEST_UPDATED, 'Request Updated'),
        (TYPE_REQUEST_ASSIGNED, 'Request Assigned'),
        (TYPE_NOTE_ADDED, 'Note Added'),
        (TYPE_ATTACHMENT_UPLOADED, 'Attachment Uploaded'),
        (TYPE_STATUS_CHANGED, 'Status Changed'),
        (TYPE_USER_CREATED, 'User Created'),
        (TYPE_USER_UPDATED, 'User Updated'),
        (TYPE_USER_DELETED, 'User Deleted'),
        (TYPE_AGENT_CREATED, 'Agent Created'),
        (TYPE_COMPANY_CREATED, 'Company Created'),
        (TYPE_COMPANY_UPDATED, 'Company Updated'),
        (TYPE_COMPANY_DELETED, 'Company Deleted'),
    ]

    type = models.CharField(max_length=50, choices=TYPE_CHOICES, db_index=True)
    description = models.TextField()
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='activity_logs',
        help_text="User who performed the action"
    )
    # Plain references so the trail survives deletion of what it describes.
    company_id = models.UUIDField(null=True, blank=True, db_index=True)
    service_request_id = models.UUIDField(null=True, blank=True, db_index=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['company_id', '-created_at'], name='activity_company_created_idx'),
            models.Index(fields=['service_request_id', '-created_at'], name='activity_request_created_idx'),
        ]
        verbose_name = 'Activity log'
        verbose_name_plural = 'Activity logs'

    def __str__(self):
        return f"{self.type}: {self.description}"
