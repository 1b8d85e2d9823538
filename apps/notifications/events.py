"""
Post-commit events.

Workflow and management services never send mail or write inbox rows
themselves. They return a ``WorkflowResult`` whose ``events`` list is handed
to ``NotificationService.dispatch_events`` by the calling view, so the
services stay free of network collaborators and are tested by inspecting
the events they return.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class WorkflowEvent:
    activity_type: str
    description: str
    actor_id: str | None = None
    company_id: str | None = None
    request_id: str | None = None
    notification_type: str | None = None
    recipient_ids: tuple = ()
    title: str = ''
    context: dict = field(default_factory=dict)

    def payload(self):
        """JSON-safe representation handed to Celery."""
        return {
            'activity_type': self.activity_type,
            'notification_type': self.notification_type,
            'description': self.description,
            'title': self.title,
            'actor_id': self.actor_id,
            'company_id': self.company_id,
            'request_id': self.request_id,
            'context': {key: str(value) for key, value in self.context.items()},
        }


@dataclass
class WorkflowResult:
    instance: Any
    events: list = field(default_factory=list)


def recipients_excluding(actor_id, *user_ids):
    """Distinct, non-empty user ids other than the actor, in order."""
    seen = []
    for user_id in user_ids:
        if not user_id:
            continue
        user_id = str(user_id)
        if user_id == str(actor_id) or user_id in seen:
            continue
        seen.append(user_id)
    return tuple(seen)
