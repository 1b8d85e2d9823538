import logging
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from apps.audit.models import ActivityLog
from .events import WorkflowEvent
from .models import Notification

logger = logging.getLogger(__name__)


class NotificationDeliveryService:
    """Dispatch notifications to delivery channels.

    The inbox row is written synchronously; e-mail goes through Celery once
    the surrounding transaction commits so a rolled back operation never
    mails anyone.
    """

    @staticmethod
    def queue_email(payload, recipient_id):
        from .tasks import send_event_email

        def _send():
            try:
                send_event_email.delay(payload, str(recipient_id))
            except Exception:
                logger.exception(f"Could not queue {payload.get('notification_type')} e-mail for {recipient_id}")

        transaction.on_commit(_send)


class NotificationService:

    @staticmethod
    def create_notification(*, user_id, type, title, message, service_request_id=None):
        return Notification.objects.create(
            user_id=user_id,
            type=type,
            title=title[:200],
            message=message,
            service_request_id=service_request_id,
        )

    @staticmethod
    def record_activity(event: WorkflowEvent):
        return ActivityLog.objects.create(
            type=event.activity_type,
            description=event.description,
            user_id=event.actor_id,
            company_id=event.company_id,
            service_request_id=event.request_id,
        )

    @staticmethod
    def notify(event_type, recipient_id, payload):
        """Fire-and-forget inbox entry plus e-mail for one recipient.

        Never raises: failures are logged and the calling operation carries
        on. Returns the Notification or ``None`` when it could not be written.
        """
        notification = None
        try:
            with transaction.atomic():
                notification = NotificationService.create_notification(
                    user_id=recipient_id,
                    type=event_type,
                    title=payload.get('title') or dict(Notification.TYPE_CHOICES).get(event_type, event_type),
                    message=payload.get('description', ''),
                    service_request_id=payload.get('request_id'),
                )
        except Exception:
            logger.exception(f"Failed to write {event_type} notification for {recipient_id}")

        try:
            NotificationDeliveryService.queue_email({**payload, 'notification_type': event_type}, recipient_id)
        except Exception:
            logger.exception(f"Failed to schedule {event_type} e-mail for {recipient_id}")
        return notification

    @staticmethod
    def dispatch_events(events):
        """Consume the events returned by a workflow or management operation."""
        for event in events or ():
            try:
                with transaction.atomic():
                    NotificationService.record_activity(event)
            except Exception:
                logger.exception(f"Failed to record {event.activity_type} activity")

            if not event.notification_type:
                continue
            payload = event.payload()
            for recipient_id in event.recipient_ids:
                NotificationService.notify(event.notification_type, recipient_id, payload)

    @staticmethod
    def get_user_notifications(*, user_id, limit=20, unread_only=False, types=None):
        qs = Notification.objects.filter(user_id=user_id)
        if unread_only:
            qs = qs.filter(is_read=False)
        if types:
            if isinstance(types, str):
                types = [types]
            qs = qs.filter(type__in=types)
        return qs.order_by('-created_at')[:limit]

    @staticmethod
    def get_unread_count(*, user_id):
        return Notification.objects.filter(user_id=user_id, is_read=False).count()

    @staticmethod
    def mark_all_as_read(*, user_id):
        return Notification.objects.filter(user_id=user_id, is_read=False).update(
            is_read=True, read_at=timezone.now()
        )

    @staticmethod
    def cleanup_old_notifications(*, days=90):
        cutoff_date = timezone.now() - timedelta(days=days)
        deleted, _ = Notification.objects.filter(created_at__lt=cutoff_date, is_read=True).delete()
        return deleted


class NotificationGenerator:

    @staticmethod
    def generate_due_date_reminders(now=None):
        """Remind assignees about open requests due within the next day."""
        from apps.service_requests.models import ServiceRequest

        now = now or timezone.now()
        today = timezone.localdate(now)
        due_soon = ServiceRequest.objects.filter(
            due_date__gte=now,
            due_date__lt=now + timedelta(days=1),
            assigned_to__isnull=False,
            assigned_to__is_active=True,
        ).exclude(task_status=ServiceRequest.STATUS_CLOSED)

        sent = 0
        for service_request in due_soon:
            already_sent = Notification.objects.filter(
                user_id=service_request.assigned_to_id,
                type=Notification.TYPE_DUE_DATE_REMINDER,
                service_request=service_request,
                created_at__date=today,
            ).exists()
            if already_sent:
                continue

            due = timezone.localtime(service_request.due_date).strftime('%B %d, %Y %H:%M')
            NotificationService.notify(
                Notification.TYPE_DUE_DATE_REMINDER,
                service_request.assigned_to_id,
                {
                    'title': f"Service request {service_request.service_queue_id} is due soon",
                    'description': f"Service request {service_request.service_queue_id} for "
                                   f"{service_request.client} is due on {due}.",
                    'request_id': str(service_request.pk),
                    'company_id': str(service_request.company_id),
                    'context': {'service_queue_id': service_request.service_queue_id, 'due_date': due},
                },
            )
            sent += 1
        return sent


dispatch_events = NotificationService.dispatch_events
notify = NotificationService.notify
