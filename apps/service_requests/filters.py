from datetime import timedelta

import django_filters
from django.db.models import Q
from django.utils import timezone

from .models import ServiceRequest

DATE_RANGE_CHOICES = [
    ('today', 'Today'),
    ('week', 'Last 7 days'),
    ('month', 'Last 30 days'),
    ('quarter', 'Last 90 days'),
]
DATE_RANGE_DAYS = {'week': 7, 'month': 30, 'quarter': 90}


def date_range_start(value, now=None):
    """Start of a preset range; ``today`` means since local midnight."""
    now = now or timezone.now()
    if value == 'today':
        return timezone.localtime(now).replace(hour=0, minute=0, second=0, microsecond=0)
    days = DATE_RANGE_DAYS.get(value)
    return now - timedelta(days=days) if days else None


class ServiceRequestFilter(django_filters.FilterSet):
    """
    Query filters for service request lists and reports.

    Always applied to an already scoped queryset; nothing here widens what
    the caller can see.
    """

    status = django_filters.MultipleChoiceFilter(field_name='task_status', choices=ServiceRequest.STATUS_CHOICES)
    category = django_filters.ChoiceFilter(field_name='service_queue_category', choices=ServiceRequest.CATEGORY_CHOICES)
    client = django_filters.CharFilter(field_name='client', lookup_expr='icontains')
    assigned_to = django_filters.UUIDFilter(field_name='assigned_to_id')
    customer_id = django_filters.UUIDFilter(field_name='company_id')
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')
    date_range = django_filters.ChoiceFilter(choices=DATE_RANGE_CHOICES, method='filter_date_range')
    overdue = django_filters.BooleanFilter(method='filter_overdue')
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = ServiceRequest
        fields = []

    def filter_date_range(self, queryset, name, value):
        start = date_range_start(value)
        return queryset.filter(created_at__gte=start) if start else queryset

    def filter_overdue(self, queryset, name, value):
        if value is None:
            return queryset
        overdue = queryset.overdue()
        return overdue if value else queryset.exclude(pk__in=overdue.values('pk'))

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(service_queue_id__icontains=value)
            | Q(client__icontains=value)
            | Q(service_request_narrative__icontains=value)
            | Q(company__company_name__icontains=value)
        )
