"""
Service request workflow.

Each operation takes the caller's ``SessionIdentity``, applies the tenant
scoping rule, validates its input before touching the database and returns
a ``WorkflowResult``. Side effects (activity log, inbox, e-mail) are only
described by the returned events; the caller dispatches them.

Status transitions:

=================  ==================  ==================
role               forward             backward (reopen)
=================  ==================  ==================
super_admin        yes                 yes
customer_admin     yes                 yes
agent              yes                 no
customer           yes                 no
=================  ==================  ==================

Forward may skip states (``new -> closed``). Setting the current status
again is rejected.
"""

import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from apps.accounts.models import Agent, Role, User
from apps.audit.models import ActivityLog
from apps.companies.models import Company
from apps.core.codes import create_with_unique_code, generate_service_queue_id
from apps.core.exceptions import InsufficientPermissions, NotFound
from apps.notifications.events import WorkflowEvent, WorkflowResult, recipients_excluding
from apps.notifications.models import Notification
from . import storage
from .filters import ServiceRequestFilter
from .models import RequestAttachment, RequestNote, ServiceRequest
from .scoping import get_request_for, scope_requests, sees_internal_notes

logger = logging.getLogger(__name__)

CREATE_ROLES = (Role.SUPER_ADMIN, Role.CUSTOMER_ADMIN, Role.CUSTOMER)
ASSIGN_ROLES = (Role.SUPER_ADMIN, Role.CUSTOMER_ADMIN, Role.AGENT)
REOPEN_ROLES = (Role.SUPER_ADMIN, Role.CUSTOMER_ADMIN)
EDIT_FIELDS = ('client', 'service_request_narrative', 'service_queue_category', 'due_date')


def _require(identity, roles):
    if identity.role not in roles:
        raise InsufficientPermissions()


def _actor_name(user_id):
    user = User.objects.filter(pk=user_id).only('first_name', 'last_name', 'email').first()
    if user is None:
        return 'Unknown'
    return user.get_full_name() or user.email


def _resolve_company(identity, company_id):
    role = identity.role
    if role == Role.SUPER_ADMIN:
        if not company_id:
            raise ValidationError({'company_id': 'Company selection is required.'})
        company = Company.objects.filter(pk=company_id).first()
        if company is None:
            raise NotFound('Customer not found')
        return company
    if role in (Role.CUSTOMER_ADMIN, Role.CUSTOMER):
        # The caller's own company always wins over anything in the payload.
        company = Company.objects.filter(pk=identity.company_id).first()
        if company is None:
            raise NotFound('Customer not found')
        return company
    # Agents service requests but never open them.
    raise InsufficientPermissions()


def _validate_request_fields(*, client, narrative, category):
    errors = {}
    if not (client or '').strip():
        errors['client'] = 'Client is required.'
    if not (narrative or '').strip():
        errors['service_request_narrative'] = 'Service request narrative is required.'
    if category not in dict(ServiceRequest.CATEGORY_CHOICES):
        errors['service_queue_category'] = 'Invalid service queue category.'
    if errors:
        raise ValidationError(errors)


def _store_attachments(identity, service_request, files, stored_keys):
    """Persist uploads and their rows; appends every written key to ``stored_keys``."""
    attachments = []
    for upload in files:
        key = storage.save_upload(service_request.pk, upload)
        stored_keys.append(key)
        attachments.append(RequestAttachment.objects.create(
            request=service_request,
            file_name=upload.name,
            file_path=key,
            file_size=upload.size,
            mime_type=storage.mime_type_for(upload.name),
            uploaded_by_id=identity.user_id,
        ))
    return attachments


def _attachment_events(identity, service_request, attachments):
    return [
        WorkflowEvent(
            activity_type=ActivityLog.TYPE_ATTACHMENT_UPLOADED,
            description=f"Attachment {attachment.file_name} uploaded to {service_request.service_queue_id}",
            actor_id=identity.user_id,
            company_id=str(service_request.company_id),
            request_id=str(service_request.pk),
        )
        for attachment in attachments
    ]


def create_request(identity, *, client, service_request_narrative, service_queue_category,
                   due_date=None, company_id=None, files=()) -> WorkflowResult:
    _require(identity, CREATE_ROLES)
    company = _resolve_company(identity, company_id)
    _validate_request_fields(client=client, narrative=service_request_narrative, category=service_queue_category)
    files = list(files or ())
    for upload in files:
        storage.validate_upload(upload)

    assignee = company.get_primary_user()
    stored_keys = []
    try:
        with transaction.atomic():
            service_request = create_with_unique_code(
                ServiceRequest,
                'service_queue_id',
                generate_service_queue_id,
                values={
                    'client': client.strip(),
                    'company': company,
                    'task_status': ServiceRequest.STATUS_NEW,
                    'service_request_narrative': service_request_narrative.strip(),
                    'service_queue_category': service_queue_category,
                    'assigned_by_id': identity.user_id,
                    'assigned_to': assignee,
                    'due_date': due_date,
                },
            )
            attachments = _store_attachments(identity, service_request, files, stored_keys)
    except Exception:
        storage.delete_quietly(stored_keys)
        raise

    logger.info(
        f"Service request {service_request.service_queue_id} created for company {company.pk} "
        f"with {len(attachments)} attachment(s)"
    )

    events = [WorkflowEvent(
        activity_type=ActivityLog.TYPE_REQUEST_CREATED,
        notification_type=Notification.TYPE_REQUEST_CREATED,
        title=f"New service request {service_request.service_queue_id}",
        description=f"Service request {service_request.service_queue_id} created for {service_request.client}",
        actor_id=identity.user_id,
        company_id=str(company.pk),
        request_id=str(service_request.pk),
        recipient_ids=recipients_excluding(identity.user_id, service_request.assigned_to_id),
        context={
            'service_queue_id': service_request.service_queue_id,
            'client': service_request.client,
            'category': service_request.get_service_queue_category_display(),
            'created_by': _actor_name(identity.user_id),
            'priority': 'High' if due_date else 'Normal',
        },
    )]
    events.extend(_attachment_events(identity, service_request, attachments))
    return WorkflowResult(service_request, events)


def list_requests(identity, params=None):
    """Scoped and filtered queryset of service requests."""
    queryset = scope_requests(identity).select_related('company', 'assigned_to', 'assigned_by')
    filterset = ServiceRequestFilter(params or {}, queryset=queryset)
    if not filterset.is_valid():
        raise ValidationError({
            field: [error['message'] for error in errors]
            for field, errors in filterset.errors.get_json_data().items()
        })
    return filterset.qs


def visible_notes(identity, service_request):
    notes = service_request.notes.select_related('author')
    if not sees_internal_notes(identity):
        notes = notes.filter(is_internal=False)
    return notes


def get_request(identity, request_id):
    """Return ``(request, notes, attachments)`` as the caller may see them."""
    service_request = get_request_for(identity, request_id)
    attachments = service_request.attachments.select_related('uploaded_by')
    return service_request, visible_notes(identity, service_request), attachments


def _can_be_assigned(user, service_request):
    if not user.is_active:
        return False
    role = Role(user.role)
    if role == Role.SUPER_ADMIN:
        return True
    if role == Role.AGENT:
        agent = Agent.objects.filter(user=user).first()
        return agent is not None and agent.covers(service_request.company_id)
    if role in (Role.CUSTOMER_ADMIN, Role.CUSTOMER):
        return user.company_id == service_request.company_id
    return False


@transaction.atomic
def assign_request(identity, request_id, *, assigned_to_id) -> WorkflowResult:
    _require(identity, ASSIGN_ROLES)
    service_request = get_request_for(identity, request_id, for_update=True)

    assignee = None
    if assigned_to_id:
        assignee = User.objects.filter(pk=assigned_to_id).first()
        if assignee is None or not _can_be_assigned(assignee, service_request):
            raise ValidationError({'assigned_to': 'This user cannot be assigned to the request.'})

    if service_request.assigned_to_id == (assignee.pk if assignee else None):
        return WorkflowResult(service_request, [])

    service_request.assigned_to = assignee
    service_request.modified_by_id = identity.user_id
    service_request.save(update_fields=['assigned_to', 'modified_by', 'updated_at'])

    target = (assignee.get_full_name() or assignee.email) if assignee else 'nobody'
    logger.info(f"Service request {service_request.service_queue_id} assigned to {assignee.pk if assignee else None}")

    event = WorkflowEvent(
        activity_type=ActivityLog.TYPE_REQUEST_ASSIGNED,
        notification_type=Notification.TYPE_REQUEST_ASSIGNED,
        title=f"Service request {service_request.service_queue_id} assigned to you",
        description=f"Service request {service_request.service_queue_id} assigned to {target}",
        actor_id=identity.user_id,
        company_id=str(service_request.company_id),
        request_id=str(service_request.pk),
        recipient_ids=recipients_excluding(identity.user_id, assignee.pk if assignee else None),
        context={
            'service_queue_id': service_request.service_queue_id,
            'client': service_request.client,
            'assigned_by': _actor_name(identity.user_id),
        },
    )
    return WorkflowResult(service_request, [event])


def check_transition(identity, current, new):
    if new not in dict(ServiceRequest.STATUS_CHOICES):
        raise ValidationError({'task_status': 'Invalid status.'})
    if new == current:
        raise ValidationError({'task_status': f"Request is already {new}."})
    if ServiceRequest.is_backward_transition(current, new) and identity.role not in REOPEN_ROLES:
        raise InsufficientPermissions('Only administrators can move a request back to an earlier status')


@transaction.atomic
def change_status(identity, request_id, *, task_status) -> WorkflowResult:
    service_request = get_request_for(identity, request_id, for_update=True)
    previous = service_request.task_status
    check_transition(identity, previous, task_status)

    service_request.task_status = task_status
    service_request.modified_by_id = identity.user_id
    service_request.save(update_fields=['task_status', 'modified_by', 'updated_at'])

    reopened = ServiceRequest.is_backward_transition(previous, task_status)
    logger.info(
        f"Service request {service_request.service_queue_id} {previous} -> {task_status}"
        f"{' (reopened)' if reopened else ''}"
    )

    event = WorkflowEvent(
        activity_type=ActivityLog.TYPE_STATUS_CHANGED,
        notification_type=Notification.TYPE_STATUS_CHANGED,
        title=f"Service request {service_request.service_queue_id} is now {service_request.get_task_status_display()}",
        description=(
            f"Service request {service_request.service_queue_id} "
            f"{'reopened' if reopened else 'moved'} from {previous} to {task_status}"
        ),
        actor_id=identity.user_id,
        company_id=str(service_request.company_id),
        request_id=str(service_request.pk),
        recipient_ids=recipients_excluding(
            identity.user_id, service_request.assigned_to_id, service_request.assigned_by_id
        ),
        context={
            'service_queue_id': service_request.service_queue_id,
            'old_status': previous,
            'new_status': task_status,
            'updated_by': _actor_name(identity.user_id),
        },
    )
    return WorkflowResult(service_request, [event])


@transaction.atomic
def update_request(identity, request_id, **fields) -> WorkflowResult:
    """Edit the descriptive fields of a request; company and status are not editable here."""
    service_request = get_request_for(identity, request_id, for_update=True)
    unknown = set(fields) - set(EDIT_FIELDS)
    if unknown:
        raise ValidationError({name: 'This field cannot be changed.' for name in sorted(unknown)})

    changed = [name for name in EDIT_FIELDS if name in fields and getattr(service_request, name) != fields[name]]
    if not changed:
        return WorkflowResult(service_request, [])

    for name in changed:
        setattr(service_request, name, fields[name])
    _validate_request_fields(
        client=service_request.client,
        narrative=service_request.service_request_narrative,
        category=service_request.service_queue_category,
    )
    service_request.modified_by_id = identity.user_id
    service_request.save(update_fields=[*changed, 'modified_by', 'updated_at'])

    event = WorkflowEvent(
        activity_type=ActivityLog.TYPE_REQUEST_UPDATED,
        notification_type=Notification.TYPE_REQUEST_UPDATED,
        title=f"Service request {service_request.service_queue_id} updated",
        description=f"Service request {service_request.service_queue_id} updated ({', '.join(changed)})",
        actor_id=identity.user_id,
        company_id=str(service_request.company_id),
        request_id=str(service_request.pk),
        recipient_ids=recipients_excluding(
            identity.user_id, service_request.assigned_to_id, service_request.assigned_by_id
        ),
        context={'service_queue_id': service_request.service_queue_id},
    )
    return WorkflowResult(service_request, [event])


@transaction.atomic
def add_note(identity, request_id, *, note_content, is_internal=False) -> WorkflowResult:
    service_request = get_request_for(identity, request_id)
    note_content = (note_content or '').strip()
    if not note_content:
        raise ValidationError({'note_content': 'Note content is required.'})
    if is_internal and not sees_internal_notes(identity):
        raise InsufficientPermissions('Customers cannot add internal notes')

    note = RequestNote.objects.create(
        request=service_request,
        author_id=identity.user_id,
        note_content=note_content,
        is_internal=bool(is_internal),
    )

    recipients = recipients_excluding(
        identity.user_id, service_request.assigned_to_id, service_request.assigned_by_id
    )
    if note.is_internal:
        # Internal notes only reach staff, never the customer side.
        recipients = tuple(
            str(pk) for pk in User.objects.filter(
                pk__in=recipients, role__in=(Role.SUPER_ADMIN, Role.AGENT)
            ).values_list('pk', flat=True)
        )

    # Internal note activity stays off the company feed customers read.
    event = WorkflowEvent(
        activity_type=ActivityLog.TYPE_NOTE_ADDED,
        notification_type=Notification.TYPE_NOTE_ADDED,
        title=f"New note on {service_request.service_queue_id}",
        description=f"{'Internal note' if note.is_internal else 'Note'} added to {service_request.service_queue_id}",
        actor_id=identity.user_id,
        company_id=None if note.is_internal else str(service_request.company_id),
        request_id=str(service_request.pk),
        recipient_ids=recipients,
        context={
            'service_queue_id': service_request.service_queue_id,
            'note_content': note.note_content,
            'added_by': _actor_name(identity.user_id),
        },
    )
    return WorkflowResult(note, [event])


def add_attachments(identity, request_id, *, files) -> WorkflowResult:
    service_request = get_request_for(identity, request_id)
    files = list(files or ())
    if not files:
        raise ValidationError({'files': 'At least one file is required.'})
    for upload in files:
        storage.validate_upload(upload)

    stored_keys = []
    try:
        with transaction.atomic():
            attachments = _store_attachments(identity, service_request, files, stored_keys)
    except Exception:
        storage.delete_quietly(stored_keys)
        raise

    return WorkflowResult(attachments, _attachment_events(identity, service_request, attachments))


def open_attachment(identity, request_id, stored_name):
    """Return ``(file, original name, mime type)`` for a stored attachment."""
    service_request = get_request_for(identity, request_id)
    if not stored_name or '/' in stored_name or '\\' in stored_name or stored_name.startswith('.'):
        raise NotFound('File not found')

    key = f"{storage.request_dir(service_request.pk)}/{stored_name}"
    attachment = service_request.attachments.filter(file_path=key).first()
    if attachment is None or not storage.exists(key):
        raise NotFound('File not found')

    file_name = attachment.file_name or storage.original_name(stored_name)
    return storage.open_blob(key), file_name, storage.mime_type_for(file_name)
