"""
Service request (ticket) models.

A ServiceRequest always belongs to one company and moves through
``new -> open -> in_progress -> closed``. Notes and attachments hang off a
request and are append-only.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone
from simple_history.models import HistoricalRecords
from auditlog.registry import auditlog

from apps.core.models import AppendOnlyModel, TimeStampedModel


class ServiceRequestQuerySet(models.QuerySet):
    def overdue(self, now=None):
        now = now or timezone.now()
        return self.filter(due_date__lt=now).exclude(task_status=ServiceRequest.STATUS_CLOSED)


class ServiceRequest(TimeStampedModel):
    STATUS_NEW = 'new'
    STATUS_OPEN = 'open'
    STATUS_IN_PROGRESS = 'in_progress'
    STATUS_CLOSED = 'closed'

    STATUS_CHOICES = [
        (STATUS_NEW, 'New'),
        (STATUS_OPEN, 'Open'),
        (STATUS_IN_PROGRESS, 'In Progress'),
        (STATUS_CLOSED, 'Closed'),
    ]

    # Lifecycle order; moving to a lower index is a reopen.
    STATUS_ORDER = [STATUS_NEW, STATUS_OPEN, STATUS_IN_PROGRESS, STATUS_CLOSED]
    WIP_STATUSES = (STATUS_OPEN, STATUS_IN_PROGRESS)

    CATEGORY_POLICY_INQUIRY = 'policy_inquiry'
    CATEGORY_CLAIMS_PROCESSING = 'claims_processing'
    CATEGORY_ACCOUNT_UPDATE = 'account_update'
    CATEGORY_TECHNICAL_SUPPORT = 'technical_support'
    CATEGORY_BILLING_INQUIRY = 'billing_inquiry'
    CATEGORY_OTHER = 'other'

    CATEGORY_CHOICES = [
        (CATEGORY_POLICY_INQUIRY, 'Policy Inquiry'),
        (CATEGORY_CLAIMS_PROCESSING, 'Claims Processing'),
        (CATEGORY_ACCOUNT_UPDATE, 'Account Update'),
        (CATEGORY_TECHNICAL_SUPPORT, 'Technical Support'),
        (CATEGORY_BILLING_INQUIRY, 'Billing Inquiry'),
        (CATEGORY_OTHER, 'Other'),
    ]

    service_queue_id = models.CharField(
        max_length=40,
        unique=True,
        help_text="Human-readable ticket reference"
    )
    client = models.CharField(max_length=255, help_text="Name of the requester")
    company = models.ForeignKey(
        'companies.Company',
        on_delete=models.PROTECT,
        related_name='service_requests',
        help_text="Company this request belongs to"
    )
    task_status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_NEW, db_index=True)
    service_request_narrative = models.TextField()
    service_queue_category = models.CharField(max_length=30, choices=CATEGORY_CHOICES)
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_requests',
    )
    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='created_requests',
        help_text="User who created or assigned the request"
    )
    due_date = models.DateTimeField(null=True, blank=True, db_index=True)
    modified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='modified_requests',
    )

    history = HistoricalRecords()

    objects = ServiceRequestQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['company', 'task_status'], name='sr_company_status_idx'),
            models.Index(fields=['company', 'created_at'], name='sr_company_created_idx'),
            models.Index(fields=['assigned_to', 'task_status'], name='sr_assignee_status_idx'),
        ]

    def __str__(self):
        return f"{self.service_queue_id} - {self.client}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            original = type(self).objects.filter(pk=self.pk).values_list('company_id', flat=True).first()
            if original is not None and original != self.company_id:
                raise ValueError("A service request cannot move to another company")
        super().save(*args, **kwargs)

    @property
    def is_overdue(self):
        return bool(self.due_date and self.due_date < timezone.now() and self.task_status != self.STATUS_CLOSED)

    @classmethod
    def is_backward_transition(cls, current, new):
        return cls.STATUS_ORDER.index(new) < cls.STATUS_ORDER.index(current)


class RequestNote(AppendOnlyModel):
    request = models.ForeignKey(ServiceRequest, on_delete=models.CASCADE, related_name='notes')
    author = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='request_notes')
    note_content = models.TextField()
    is_internal = models.BooleanField(
        default=False,
        help_text="Internal notes are hidden from customer-facing reads"
    )

    class Meta:
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['request', 'created_at'], name='note_request_created_idx'),
        ]

    def __str__(self):
        return f"Note on {self.request_id} by {self.author_id}"


class RequestAttachment(AppendOnlyModel):
    request = models.ForeignKey(ServiceRequest, on_delete=models.CASCADE, related_name='attachments')
    file_name = models.CharField(max_length=255, help_text="Original file name shown to users")
    file_path = models.CharField(max_length=500, unique=True, help_text="Storage key of the stored blob")
    file_size = models.PositiveIntegerField()
    mime_type = models.CharField(max_length=100)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='request_attachments',
    )

    class Meta:
        ordering = ['created_at']

    def __str__(self):
        return self.file_name

    @property
    def stored_name(self):
        return self.file_path.rsplit('/', 1)[-1]


auditlog.register(ServiceRequest)
