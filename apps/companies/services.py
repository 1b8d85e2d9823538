import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from apps.accounts.models import Agent, Role, User
from apps.audit.models import ActivityLog
from apps.core.codes import create_with_unique_code, generate_company_code
from apps.core.exceptions import Conflict, NotFound
from apps.notifications.events import WorkflowEvent, WorkflowResult
from apps.notifications.models import Notification
from .models import Company

logger = logging.getLogger(__name__)

DETAIL_ROLES = (Role.CUSTOMER, Role.CUSTOMER_ADMIN)
MIN_LOGIN_CODE_LENGTH = 7


def get_company(company_id) -> Company:
    company = Company.objects.filter(pk=company_id).first()
    if company is None:
        raise NotFound('Customer not found')
    return company


def _ensure_email_available(email, *, exclude_pk=None):
    qs = Company.objects.filter(email__iexact=email)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    if qs.exists():
        raise Conflict('A company with this email already exists')


@transaction.atomic
def create_company(*, identity, company_name: str, primary_contact: str, email: str, phone: str = "") -> WorkflowResult:
    company_name = (company_name or "").strip()
    primary_contact = (primary_contact or "").strip()
    email = (email or "").strip().lower()

    if not company_name:
        raise ValidationError({"company_name": "Company name is required."})
    if not primary_contact:
        raise ValidationError({"primary_contact": "Primary contact is required."})
    if not email:
        raise ValidationError({"email": "Email is required."})

    _ensure_email_available(email)

    company = create_with_unique_code(
        Company,
        'company_code',
        generate_company_code,
        values={
            'company_name': company_name,
            'primary_contact': primary_contact,
            'phone': (phone or "").strip(),
            'email': email,
        },
    )
    logger.info(f"Company {company.pk} created with code {company.company_code}")

    super_admin_ids = User.objects.filter(
        role=Role.SUPER_ADMIN, is_active=True
    ).exclude(pk=identity.user_id).values_list('pk', flat=True)

    event = WorkflowEvent(
        activity_type=ActivityLog.TYPE_COMPANY_CREATED,
        notification_type=Notification.TYPE_COMPANY_CREATED,
        title='New customer created',
        description=f"Customer {company.company_name} created",
        actor_id=identity.user_id,
        company_id=str(company.pk),
        recipient_ids=tuple(str(pk) for pk in super_admin_ids),
        context={'company_name': company.company_name, 'company_code': company.company_code},
    )
    return WorkflowResult(company, [event])


@transaction.atomic
def update_company(*, identity, company: Company, **fields) -> WorkflowResult:
    """Partial update of the company profile fields."""
    allowed = ('company_name', 'primary_contact', 'phone', 'email')
    changed = []
    for name in allowed:
        if name not in fields or fields[name] is None:
            continue
        value = str(fields[name]).strip()
        if name == 'email':
            value = value.lower()
            _ensure_email_available(value, exclude_pk=company.pk)
        if name != 'phone' and not value:
            raise ValidationError({name: "This field may not be blank."})
        setattr(company, name, value)
        changed.append(name)

    if not changed:
        return WorkflowResult(company, [])

    company.full_clean(validate_unique=False)
    company.save()

    event = WorkflowEvent(
        activity_type=ActivityLog.TYPE_COMPANY_UPDATED,
        description=f"Customer {company.company_name} updated ({', '.join(changed)})",
        actor_id=identity.user_id,
        company_id=str(company.pk),
    )
    return WorkflowResult(company, [event])


@transaction.atomic
def update_company_details(*, identity, company: Company, company_name: str, first_name: str, last_name: str,
                           email: str, login_code: str, role: str = Role.CUSTOMER_ADMIN) -> WorkflowResult:
    """Update the company and its primary user together.

    The primary user is created when the company has none yet. Both rows are
    written in one transaction so a rejected user change leaves the company
    untouched.
    """
    company_name = (company_name or "").strip()
    first_name = (first_name or "").strip()
    last_name = (last_name or "").strip()
    email = (email or "").strip().lower()
    login_code = (login_code or "").strip()

    errors = {}
    if not company_name:
        errors["company_name"] = "Company name is required."
    if not first_name:
        errors["first_name"] = "First name is required."
    if not last_name:
        errors["last_name"] = "Last name is required."
    if not email:
        errors["email"] = "Email is required."
    if len(login_code) < MIN_LOGIN_CODE_LENGTH:
        errors["login_code"] = f"Login code must be at least {MIN_LOGIN_CODE_LENGTH} characters."
    if role not in DETAIL_ROLES:
        errors["role"] = "Role must be customer or customer_admin."
    if errors:
        raise ValidationError(errors)

    _ensure_email_available(email, exclude_pk=company.pk)

    company.company_name = company_name
    company.primary_contact = f"{first_name} {last_name}"
    company.email = email
    company.full_clean(validate_unique=False)
    company.save()

    user = company.get_primary_user() or company.users.order_by('created_at').first()
    created = user is None
    if created:
        user = User.objects.create_user(
            email=email,
            first_name=first_name,
            last_name=last_name,
            login_code=login_code,
            role=role,
            company=company,
        )
    else:
        user.first_name = first_name
        user.last_name = last_name
        user.email = email
        user.login_code = login_code
        user.role = role
        user.save()

    logger.info(f"Company {company.pk} details updated; primary user {user.pk} {'created' if created else 'updated'}")

    events = [
        WorkflowEvent(
            activity_type=ActivityLog.TYPE_COMPANY_UPDATED,
            description=f"Customer {company.company_name} details updated",
            actor_id=identity.user_id,
            company_id=str(company.pk),
        ),
        WorkflowEvent(
            activity_type=ActivityLog.TYPE_USER_CREATED if created else ActivityLog.TYPE_USER_UPDATED,
            notification_type=Notification.TYPE_USER_CREATED if created else None,
            title='Your account is ready' if created else '',
            description=f"{user.get_full_name()} {'created' if created else 'updated'} as {user.get_role_display()}",
            actor_id=identity.user_id,
            company_id=str(company.pk),
            recipient_ids=(str(user.pk),) if created else (),
            context={'login_code': login_code, 'company_name': company.company_name},
        ),
    ]
    return WorkflowResult(company, events)


@transaction.atomic
def reset_company_code(*, identity, company: Company) -> WorkflowResult:
    """Issue a fresh company code, keeping the primary contact's login in step."""
    old_code = company.company_code
    primary = company.users.filter(login_code=old_code).first()

    def _apply(**values):
        Company.objects.filter(pk=company.pk).update(updated_at=timezone.now(), **values)
        company.company_code = values['company_code']
        return company

    create_with_unique_code(Company, 'company_code', generate_company_code, values={}, create=_apply)

    if primary is not None:
        primary.login_code = company.company_code
        primary.save()

    logger.info(f"Company {company.pk} code reset")
    event = WorkflowEvent(
        activity_type=ActivityLog.TYPE_COMPANY_UPDATED,
        description=f"Customer code reset for {company.company_name}",
        actor_id=identity.user_id,
        company_id=str(company.pk),
        context={'old_company_code': old_code, 'company_code': company.company_code},
    )
    return WorkflowResult(company, [event])


@transaction.atomic
def delete_company(*, identity, company: Company) -> WorkflowResult:
    """Delete a company and its users; refused while any request references it."""
    if company.service_requests.exists():
        raise ValidationError({"company": "Cannot delete customer with active service requests"})

    company_id = str(company.pk)
    name = company.company_name

    for agent in Agent.objects.select_for_update().all():
        if company_id in agent.assigned_company_ids:
            agent.assigned_company_ids = [cid for cid in agent.assigned_company_ids if cid != company_id]
            agent.save()

    deleted_users, _ = company.users.all().delete()
    company.delete()
    logger.info(f"Company {company_id} deleted with {deleted_users} user row(s)")

    event = WorkflowEvent(
        activity_type=ActivityLog.TYPE_COMPANY_DELETED,
        description=f"Customer {name} deleted",
        actor_id=identity.user_id,
    )
    return WorkflowResult(None, [event])
