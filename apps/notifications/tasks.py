import logging

from celery import shared_task
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import send_mail

from .emails import render_event_email
from .services import NotificationGenerator, NotificationService

logger = logging.getLogger(__name__)

User = get_user_model()


@shared_task(bind=True, ignore_result=True)
def send_event_email(self, payload, recipient_id):
    """Send the e-mail for one notification event to one user.

    Delivery is best effort: failures are logged and never retried into the
    request that caused them.
    """
    recipient = User.objects.filter(pk=recipient_id, is_active=True).first()
    if recipient is None or not recipient.email:
        logger.info(f"Skipping e-mail for missing or inactive user {recipient_id}")
        return False

    subject, body = render_event_email(payload, recipient)
    try:
        send_mail(
            subject=subject,
            message=body,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient.email],
            fail_silently=False,
        )
    except Exception:
        logger.exception(f"Failed to send {payload.get('notification_type')} e-mail to {recipient.email}")
        return False
    logger.info(f"Sent {payload.get('notification_type')} e-mail to {recipient.email}")
    return True


@shared_task(bind=True, ignore_result=True)
def send_due_date_reminders(self):
    """Daily reminder for assignees of requests that fall due within a day."""
    sent = NotificationGenerator.generate_due_date_reminders()
    logger.info(f"Sent {sent} due date reminders")
    return f"Sent {sent} reminders"


@shared_task(bind=True, ignore_result=True)
def cleanup_old_notifications(self):
    """Delete read notifications older than 90 days."""
    deleted_count = NotificationService.cleanup_old_notifications(days=90)
    return f"Deleted {deleted_count} old notifications"
