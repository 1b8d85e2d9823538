import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from apps.audit.models import ActivityLog
from apps.companies.models import Company
from apps.core.codes import create_with_unique_code, generate_login_code
from apps.core.exceptions import Conflict
from apps.notifications.events import WorkflowEvent, WorkflowResult
from apps.notifications.models import Notification
from ..models import Agent, Role, User

logger = logging.getLogger(__name__)


def list_agents():
    return Agent.objects.select_related('user').order_by('-created_at')


def available_agents():
    """Agents a customer may pick from: active profile and active user."""
    return (
        Agent.objects.select_related('user')
        .filter(is_active=True, user__is_active=True)
        .order_by('user__first_name', 'user__last_name')
    )


def _validate_company_ids(company_ids):
    company_ids = [str(cid) for cid in company_ids or []]
    known = {str(pk) for pk in Company.objects.filter(pk__in=company_ids).values_list('pk', flat=True)}
    missing = [cid for cid in company_ids if cid not in known]
    if missing:
        raise ValidationError({'assigned_company_ids': f"Unknown companies: {', '.join(missing)}"})
    # Keep the caller's order, drop repeats.
    return list(dict.fromkeys(company_ids))


@transaction.atomic
def create_agent(*, identity, first_name, last_name, email, assigned_company_ids=None) -> WorkflowResult:
    """Create an agent user with a generated login code and its Agent profile."""
    first_name = (first_name or '').strip()
    last_name = (last_name or '').strip()
    email = (email or '').strip().lower()
    if not first_name:
        raise ValidationError({'first_name': 'First name is required.'})
    if not last_name:
        raise ValidationError({'last_name': 'Last name is required.'})
    if User.objects.filter(email__iexact=email).exists():
        raise Conflict('A user with this email already exists')

    company_ids = _validate_company_ids(assigned_company_ids)

    user = create_with_unique_code(
        User,
        'login_code',
        generate_login_code,
        values={'email': email, 'first_name': first_name, 'last_name': last_name, 'role': Role.AGENT},
        create=User.objects.create_user,
    )
    agent = Agent.objects.create(user=user, assigned_company_ids=company_ids)
    logger.info(f"Agent {agent.pk} created for user {user.pk} covering {len(company_ids)} companies")

    event = WorkflowEvent(
        activity_type=ActivityLog.TYPE_AGENT_CREATED,
        notification_type=Notification.TYPE_USER_CREATED,
        title='Welcome to the service queue',
        description=f"Agent {user.get_full_name()} created",
        actor_id=identity.user_id,
        recipient_ids=(str(user.pk),),
        context={'login_code': user.login_code, 'company_name': 'Service Queue Platform'},
    )
    return WorkflowResult(agent, [event])

