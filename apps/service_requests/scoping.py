"""
Tenant scoping for service requests.

Every read or write of a ServiceRequest goes through ``scope_requests`` so a
caller only ever sees:

- super_admin: everything
- agent: requests of the companies in their Agent profile, plus requests
  assigned to them personally
- customer_admin / customer: requests of their own company

Anything outside that scope is reported as not found.
"""

from django.db.models import Q

from apps.accounts.models import Agent, Role
from apps.core.exceptions import InsufficientPermissions, NotFound
from .models import ServiceRequest


def agent_company_ids(user_id):
    """Company ids an agent services; empty for a missing or inactive profile."""
    agent = Agent.objects.filter(user_id=user_id, is_active=True).only('assigned_company_ids').first()
    if agent is None:
        return []
    return list(agent.assigned_company_ids)


def scope_requests(identity, queryset=None):
    queryset = ServiceRequest.objects.all() if queryset is None else queryset
    role = identity.role

    if role == Role.SUPER_ADMIN:
        return queryset
    if role == Role.AGENT:
        return queryset.filter(
            Q(company_id__in=agent_company_ids(identity.user_id)) | Q(assigned_to_id=identity.user_id)
        )
    if role in (Role.CUSTOMER_ADMIN, Role.CUSTOMER):
        if not identity.company_id:
            return queryset.none()
        return queryset.filter(company_id=identity.company_id)
    raise InsufficientPermissions()


def get_request_for(identity, request_id, *, for_update=False):
    """Fetch a request within the caller's scope or raise ``NotFound``."""
    queryset = scope_requests(identity).select_related('company', 'assigned_to', 'assigned_by', 'modified_by')
    if for_update:
        queryset = queryset.select_for_update(of=('self',))
    request = queryset.filter(pk=request_id).first()
    if request is None:
        raise NotFound('Service request not found')
    return request


def sees_internal_notes(identity):
    return identity.role in (Role.SUPER_ADMIN, Role.AGENT)
