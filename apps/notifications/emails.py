"""Plain-text e-mail rendering for notification events."""

from django.conf import settings
from django.template import TemplateDoesNotExist
from django.template.loader import render_to_string

TEMPLATE_DIR = 'notifications/email'


def action_url(payload):
    base = getattr(settings, 'APP_URL', '').rstrip('/')
    if payload.get('request_id'):
        return f"{base}/requests/{payload['request_id']}"
    return f"{base}/login"


def render_event_email(payload, recipient):
    """Return ``(subject, body)`` for ``payload`` addressed to ``recipient``."""
    notification_type = payload.get('notification_type') or payload.get('activity_type') or 'generic'
    subject = payload.get('title') or payload.get('description') or 'Helpdesk notification'
    context = {
        **payload.get('context', {}),
        'recipient_name': recipient.get_full_name() or recipient.email,
        'title': subject,
        'description': payload.get('description', ''),
        'action_url': action_url(payload),
        'app_url': getattr(settings, 'APP_URL', ''),
    }

    try:
        body = render_to_string(f"{TEMPLATE_DIR}/{notification_type}.txt", context)
    except TemplateDoesNotExist:
        body = (
            f"Hello {context['recipient_name']},\n\n"
            f"{context['description']}\n\n"
            f"View it here: {context['action_url']}\n"
        )
    return subject, body.strip() + '\n'
