"""Customer admin management of the users in their own company."""

import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from apps.audit.models import ActivityLog
from apps.core.exceptions import Conflict, InsufficientPermissions, NotFound
from apps.notifications.events import WorkflowEvent, WorkflowResult
from apps.notifications.models import Notification
from ..models import Role, User

logger = logging.getLogger(__name__)

MIN_LOGIN_CODE_LENGTH = 7


def _require_customer_admin(identity):
    if identity.role != Role.CUSTOMER_ADMIN or not identity.company_id:
        raise InsufficientPermissions()


def _ensure_unique(*, email, login_code, exclude_pk=None):
    users = User.objects.all()
    if exclude_pk is not None:
        users = users.exclude(pk=exclude_pk)
    if users.filter(email__iexact=email).exists():
        raise Conflict('A user with this email already exists')
    if users.filter(login_code=login_code).exists():
        raise Conflict('This login code is already in use')


def _clean_fields(*, first_name, last_name, email, login_code):
    values = {
        'first_name': (first_name or '').strip(),
        'last_name': (last_name or '').strip(),
        'email': (email or '').strip().lower(),
        'login_code': (login_code or '').strip(),
    }
    errors = {}
    if not values['first_name']:
        errors['first_name'] = 'First name is required.'
    if not values['last_name']:
        errors['last_name'] = 'Last name is required.'
    if not values['email']:
        errors['email'] = 'Email is required.'
    if len(values['login_code']) < MIN_LOGIN_CODE_LENGTH:
        errors['login_code'] = f"Login code must be at least {MIN_LOGIN_CODE_LENGTH} characters."
    if errors:
        raise ValidationError(errors)
    return values


def list_company_users(identity):
    """Active plain customers of the caller's company, newest first."""
    _require_customer_admin(identity)
    return (
        User.objects.filter(company_id=identity.company_id, role=Role.CUSTOMER, is_active=True)
        .exclude(pk=identity.user_id)
        .order_by('-created_at')
    )


def get_company_user(identity, user_id):
    _require_customer_admin(identity)
    user = User.objects.filter(pk=user_id, company_id=identity.company_id, role=Role.CUSTOMER).first()
    if user is None:
        raise NotFound('User not found or does not belong to your company')
    return user


@transaction.atomic
def create_company_user(identity, *, first_name, last_name, email, login_code) -> WorkflowResult:
    _require_customer_admin(identity)
    values = _clean_fields(first_name=first_name, last_name=last_name, email=email, login_code=login_code)
    _ensure_unique(email=values['email'], login_code=values['login_code'])

    user = User.objects.create_user(role=Role.CUSTOMER, company_id=identity.company_id, **values)
    logger.info(f"Customer user {user.pk} created in company {identity.company_id}")

    event = WorkflowEvent(
        activity_type=ActivityLog.TYPE_USER_CREATED,
        notification_type=Notification.TYPE_USER_CREATED,
        title='Your account is ready',
        description=f"User {user.get_full_name()} created",
        actor_id=identity.user_id,
        company_id=identity.company_id,
        recipient_ids=(str(user.pk),),
        context={
            'login_code': user.login_code,
            'company_name': user.company.company_name,
        },
    )
    return WorkflowResult(user, [event])


@transaction.atomic
def update_company_user(identity, user_id, *, first_name, last_name, email, login_code) -> WorkflowResult:
    user = get_company_user(identity, user_id)
    values = _clean_fields(first_name=first_name, last_name=last_name, email=email, login_code=login_code)
    _ensure_unique(email=values['email'], login_code=values['login_code'], exclude_pk=user.pk)

    for name, value in values.items():
        setattr(user, name, value)
    user.save()

    event = WorkflowEvent(
        activity_type=ActivityLog.TYPE_USER_UPDATED,
        description=f"User {user.get_full_name()} updated",
        actor_id=identity.user_id,
        company_id=identity.company_id,
    )
    return WorkflowResult(user, [event])


def _has_history(user):
    return (
        user.created_requests.exists()
        or user.request_notes.exists()
        or user.request_attachments.exists()
    )


@transaction.atomic
def delete_company_user(identity, user_id) -> WorkflowResult:
    """Remove a customer; users who authored requests or notes are deactivated instead."""
    _require_customer_admin(identity)
    if str(user_id) == str(identity.user_id):
        raise ValidationError({'user_id': 'You cannot delete your own account'})
    user = get_company_user(identity, user_id)
    name = user.get_full_name()

    if _has_history(user):
        user.is_active = False
        user.login_code = None
        user.save()
        deactivated = True
    else:
        user.delete()
        deactivated = False
    logger.info(f"Customer user {user_id} {'deactivated' if deactivated else 'deleted'}")

    event = WorkflowEvent(
        activity_type=ActivityLog.TYPE_USER_DELETED,
        description=f"User {name} {'deactivated' if deactivated else 'deleted'}",
        actor_id=identity.user_id,
        company_id=identity.company_id,
    )
    return WorkflowResult(None if not deactivated else user, [event])
