from django.db import models
from django.utils import timezone

from apps.core.models import UUIDModel


class Notification(UUIDModel):
    """Per-user inbox entry. Written best-effort by the dispatch step."""

    TYPE_REQUEST_CREATED = 'request_created'
    TYPE_REQUEST_UPDATED = 'request_updated'
    TYPE_REQUEST_ASSIGNED = 'request_assigned'
    TYPE_NOTE_ADDED = 'note_added'
    TYPE_STATUS_CHANGED = 'status_changed'
    TYPE_DUE_DATE_REMINDER = 'due_date_reminder'
    TYPE_USER_CREATED = 'user_created'
    TYPE_COMPANY_CREATED = 'company_created'

    TYPE_CHOICES = [
        (TYPE_REQUEST_CREATED, 'Request Created'),
        (TYPE_REQUEST_UPDATED, 'Request Updated'),
        (TYPE_REQUEST_ASSIGNED, 'Request Assigned'),
        (TYPE_NOTE_ADDED, 'Note Added'),
        (TYPE_STATUS_CHANGED, 'Status Changed'),
        (TYPE_DUE_DATE_REMINDER, 'Due Date Reminder'),
        (TYPE_USER_CREATED, 'User Created'),
        (TYPE_COMPANY_CREATED, 'Company Created'),
    ]

    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='notifications')

    type = models.CharField(max_length=50, choices=TYPE_CHOICES)
    title = models.CharField(max_length=200)
    message = models.TextField()

    # Optional reference to the related request
    service_request = models.ForeignKey(
        'service_requests.ServiceRequest',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='notifications',
    )

    # Notification state
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'notifications_notification'
        indexes = [
            models.Index(fields=['user', '-created_at'], name='notif_user_created_idx'),
            models.Index(fields=['user', 'is_read'], name='notif_user_read_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.title} - {self.user.email}"

    def mark_as_read(self):
        if not self.is_read:
            self.is_read = True
            self.read_at = timezone.now()
            self.save(update_fields=['is_read', 'read_at'])
