"""
Read-only reporting over service requests.

Every function takes an already scoped queryset (or scopes it itself from
the caller's identity) and an explicit ``now`` so results are deterministic.
Nothing here is persisted.
"""

from datetime import datetime, timedelta

from django.db.models import Count, Q
from django.db.models.functions import TruncMonth
from django.core.exceptions import ValidationError
from django.utils import timezone

from apps.accounts.models import Role
from apps.audit.models import ActivityLog
from apps.companies.models import Company
from apps.core.exceptions import InsufficientPermissions
from apps.service_requests.filters import ServiceRequestFilter
from apps.service_requests.models import ServiceRequest
from apps.service_requests.scoping import scope_requests

MONTHS_IN_SERIES = 12
REPORT_FILTERS = ('customer_id', 'date_range', 'date_from', 'date_to')


def status_counts(queryset):
    counts = {status: 0 for status in ServiceRequest.STATUS_ORDER}
    rows = queryset.order_by().values('task_status').annotate(total=Count('id'))
    for row in rows:
        if row['task_status'] in counts:
            counts[row['task_status']] = row['total']
    return counts


def past_due_count(queryset, now):
    return queryset.overdue(now).count()


def percentage_change(current, previous):
    if previous == 0:
        return 100 if current > 0 else 0
    return round((current - previous) / previous * 100)


def week_start(now):
    """Local midnight of the Sunday that starts the week containing ``now``."""
    local = timezone.localtime(now)
    days_since_sunday = (local.weekday() + 1) % 7
    start = local - timedelta(days=days_since_sunday)
    return start.replace(hour=0, minute=0, second=0, microsecond=0)


def _bucket_counts(queryset, now):
    counts = status_counts(queryset)
    return {
        'total': sum(counts.values()),
        'new': counts[ServiceRequest.STATUS_NEW],
        'wip': sum(counts[status] for status in ServiceRequest.WIP_STATUSES),
        'closed': counts[ServiceRequest.STATUS_CLOSED],
        'past_due': past_due_count(queryset, now),
    }


def weekly_change(queryset, now):
    """Percentage change of requests created this week against the week before."""
    current_start = week_start(now)
    previous_start = current_start - timedelta(days=7)
    current = _bucket_counts(
        queryset.filter(created_at__gte=current_start, created_at__lt=current_start + timedelta(days=7)), now
    )
    previous = _bucket_counts(
        queryset.filter(created_at__gte=previous_start, created_at__lt=current_start), now
    )
    return {bucket: percentage_change(current[bucket], previous[bucket]) for bucket in current}


def _month_start(year, month):
    while month < 1:
        month += 12
        year -= 1
    while month > 12:
        month -= 12
        year += 1
    return timezone.make_aware(datetime(year, month, 1))


def _month_key(value):
    value = timezone.localtime(value) if timezone.is_aware(value) else value
    return value.year, value.month


def monthly_series(queryset, now):
    """Counts for the trailing twelve calendar months, oldest first."""
    local = timezone.localtime(now)
    starts = [_month_start(local.year, local.month - offset) for offset in range(MONTHS_IN_SERIES - 1, -1, -1)]
    end = _month_start(local.year, local.month + 1)

    in_window = queryset.filter(created_at__gte=starts[0], created_at__lt=end).order_by()
    by_status = {}
    rows = in_window.annotate(month=TruncMonth('created_at')).values('month', 'task_status').annotate(total=Count('id'))
    for row in rows:
        by_status[(_month_key(row['month']), row['task_status'])] = row['total']

    past_due = {}
    rows = in_window.overdue(now).annotate(month=TruncMonth('created_at')).values('month').annotate(total=Count('id'))
    for row in rows:
        past_due[_month_key(row['month'])] = row['total']

    series = []
    for start in starts:
        key = (start.year, start.month)
        series.append({
            'month': start.strftime('%b'),
            'new_tickets': by_status.get((key, ServiceRequest.STATUS_NEW), 0),
            'wip_tickets': sum(by_status.get((key, status), 0) for status in ServiceRequest.WIP_STATUSES),
            'closed_tickets': by_status.get((key, ServiceRequest.STATUS_CLOSED), 0),
            'total_past_due': past_due.get(key, 0),
        })
    return series


def _filtered(queryset, params, names):
    data = {name: params[name] for name in names if params.get(name) not in (None, '', 'all')}
    filterset = ServiceRequestFilter(data, queryset=queryset)
    if not filterset.is_valid():
        raise ValidationError({
            field: [error['message'] for error in errors]
            for field, errors in filterset.errors.get_json_data().items()
        })
    return filterset.qs


def build_report(identity, params=None, now=None):
    """Dashboard report for the caller's scope.

    Totals honour the customer and date filters; the weekly change and the
    monthly series only honour the customer filter since they carry their
    own time window.
    """
    params = params or {}
    now = now or timezone.now()
    scoped = scope_requests(identity)
    by_customer = _filtered(scoped, params, ('customer_id',))
    filtered = _filtered(scoped, params, REPORT_FILTERS)

    counts = status_counts(filtered)
    return {
        'summary': {
            'total_tickets': sum(counts.values()),
            'total_new_tickets': counts[ServiceRequest.STATUS_NEW],
            'total_wip_tickets': sum(counts[status] for status in ServiceRequest.WIP_STATUSES),
            'total_closed_tickets': counts[ServiceRequest.STATUS_CLOSED],
            'total_tasks_past_due': past_due_count(filtered, now),
            'status_counts': counts,
            'weekly_change': weekly_change(by_customer, now),
        },
        'monthly_data': monthly_series(by_customer, now),
    }


def agent_summary(identity, now=None):
    if identity.role != Role.AGENT:
        raise InsufficientPermissions()
    now = now or timezone.now()
    scoped = scope_requests(identity)
    counts = status_counts(scoped)
    return {
        'total': sum(counts.values()),
        **counts,
        'overdue': past_due_count(scoped, now),
    }


def customers_overview():
    """Per-company ticket and user totals for the super admin dashboard."""
    companies = Company.objects.annotate(
        open_tickets=Count(
            'service_requests',
            filter=Q(service_requests__task_status__in=(ServiceRequest.STATUS_NEW, ServiceRequest.STATUS_OPEN)),
            distinct=True,
        ),
        wip_tickets=Count(
            'service_requests',
            filter=Q(service_requests__task_status=ServiceRequest.STATUS_IN_PROGRESS),
            distinct=True,
        ),
        closed_tickets=Count(
            'service_requests',
            filter=Q(service_requests__task_status=ServiceRequest.STATUS_CLOSED),
            distinct=True,
        ),
        total_users=Count('users', filter=Q(users__is_active=True), distinct=True),
    ).order_by('company_name')

    return [
        {
            'id': str(company.pk),
            'company_name': company.company_name,
            'primary_contact': company.primary_contact,
            'email': company.email,
            'open_tickets': company.open_tickets,
            'wip_tickets': company.wip_tickets,
            'closed_tickets': company.closed_tickets,
            'total_users': company.total_users,
        }
        for company in companies
    ]


def customer_activity(identity, limit=15):
    if identity.role not in (Role.CUSTOMER_ADMIN, Role.CUSTOMER) or not identity.company_id:
        raise InsufficientPermissions()
    return ActivityLog.objects.filter(company_id=identity.company_id).select_related('user').order_by('-created_at')[:limit]
