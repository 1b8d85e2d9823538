from datetime import datetime, timedelta

from django.urls import reverse
from django.utils import timezone

from apps.audit.models import ActivityLog
from apps.core.exceptions import InsufficientPermissions
from apps.notifications.services import NotificationService
from apps.reports import services
from apps.service_requests import workflow
from apps.service_requests.models import ServiceRequest
from tests.factories import BaseTestCase, CustomerAdminFactory, identity_for


def local(*args):
    return timezone.make_aware(datetime(*args))


class PercentageChangeTests(BaseTestCase):
    def test_percentage_change(self):
        self.assertEqual(services.percentage_change(0, 0), 0)
        self.assertEqual(services.percentage_change(5, 0), 100)
        self.assertEqual(services.percentage_change(3, 2), 50)
        self.assertEqual(services.percentage_change(1, 3), -67)

    def test_week_starts_on_sunday_midnight(self):
        # 2026-10-21 is a Wednesday.
        self.assertEqual(services.week_start(local(2026, 10, 21, 15, 30)), local(2026, 10, 18))
        self.assertEqual(services.week_start(local(2026, 10, 18, 0, 5)), local(2026, 10, 18))
        self.assertEqual(services.week_start(local(2026, 10, 17, 23, 59)), local(2026, 10, 11))


class ReportTests(BaseTestCase):
    now = None

    def setUp(self):
        super().setUp()
        self.now = local(2026, 10, 21, 12)

    def make(self, created_at, **kwargs):
        service_request = self.create_request(**kwargs)
        ServiceRequest.objects.filter(pk=service_request.pk).update(created_at=created_at)
        return service_request

    def test_weekly_change(self):
        self.make(local(2026, 10, 19, 9))
        self.make(local(2026, 10, 20, 9), task_status=ServiceRequest.STATUS_CLOSED)
        self.make(local(2026, 10, 12, 9))

        change = services.weekly_change(ServiceRequest.objects.all(), self.now)
        self.assertEqual(change['total'], 100)
        self.assertEqual(change['new'], 0)
        self.assertEqual(change['closed'], 100)
        self.assertEqual(change['wip'], 0)

    def test_monthly_series_covers_trailing_twelve_months(self):
        self.make(local(2026, 9, 15, 9), due_date=local(2026, 9, 20))
        self.make(local(2026, 9, 16, 9), task_status=ServiceRequest.STATUS_IN_PROGRESS)
        self.make(local(2026, 10, 2, 9), task_status=ServiceRequest.STATUS_CLOSED, due_date=local(2026, 10, 3))
        self.make(local(2025, 10, 2, 9))

        series = services.monthly_series(ServiceRequest.objects.all(), self.now)
        self.assertEqual(len(series), 12)
        self.assertEqual(series[0]['month'], 'Nov')
        self.assertEqual(series[-1]['month'], 'Oct')
        self.assertEqual(series[-2], {
            'month': 'Sep', 'new_tickets': 1, 'wip_tickets': 1, 'closed_tickets': 0, 'total_past_due': 1,
        })
        self.assertEqual(series[-1]['closed_tickets'], 1)
        self.assertEqual(series[-1]['total_past_due'], 0)
        self.assertEqual(sum(entry['new_tickets'] for entry in series), 1)

    def test_build_report_is_scoped_and_filtered(self):
        self.make(local(2026, 10, 19, 9), due_date=local(2026, 10, 20))
        self.make(local(2026, 10, 19, 9), task_status=ServiceRequest.STATUS_OPEN)
        self.make(
            local(2026, 10, 19, 9),
            company=self.other_company,
            assigned_by=CustomerAdminFactory(company=self.other_company),
        )

        summary = services.build_report(identity_for(self.customer), now=self.now)['summary']
        self.assertEqual(summary['total_tickets'], 2)
        self.assertEqual(summary['total_new_tickets'], 1)
        self.assertEqual(summary['total_wip_tickets'], 1)
        self.assertEqual(summary['total_tasks_past_due'], 1)

        report = services.build_report(
            identity_for(self.super_admin), {'customer_id': str(self.other_company.pk)}, now=self.now
        )
        self.assertEqual(report['summary']['total_tickets'], 1)
        self.assertEqual(report['monthly_data'][-1]['new_tickets'], 1)

        report = services.build_report(identity_for(self.super_admin), {'date_from': '2026-10-20'}, now=self.now)
        self.assertEqual(report['summary']['total_tickets'], 0)
        self.assertEqual(report['monthly_data'][-1]['new_tickets'], 2)

    def test_agent_summary(self):
        self.make(local(2026, 10, 19, 9), due_date=local(2026, 10, 20))
        self.make(local(2026, 10, 19, 9), task_status=ServiceRequest.STATUS_IN_PROGRESS)
        summary = services.agent_summary(identity_for(self.agent_user), now=self.now)
        self.assertEqual(summary['total'], 2)
        self.assertEqual(summary['in_progress'], 1)
        self.assertEqual(summary['overdue'], 1)
        with self.assertRaises(InsufficientPermissions):
            services.agent_summary(identity_for(self.customer))

    def test_customers_overview(self):
        self.create_request()
        self.create_request(task_status=ServiceRequest.STATUS_CLOSED)
        overview = {row['id']: row for row in services.customers_overview()}
        row = overview[str(self.company.pk)]
        self.assertEqual(row['open_tickets'], 1)
        self.assertEqual(row['closed_tickets'], 1)
        self.assertEqual(row['total_users'], 2)
        self.assertEqual(overview[str(self.other_company.pk)]['open_tickets'], 0)

    def test_customer_activity_is_company_scoped(self):
        ActivityLog.objects.create(type=ActivityLog.TYPE_NOTE_ADDED, description='mine', company_id=self.company.pk)
        ActivityLog.objects.create(
            type=ActivityLog.TYPE_NOTE_ADDED, description='theirs', company_id=self.other_company.pk
        )
        activity = services.customer_activity(identity_for(self.customer))
        self.assertEqual([entry.description for entry in activity], ['mine'])

    def test_customer_activity_leaves_out_internal_notes(self):
        service_request = self.create_request(assigned_to=self.agent_user)
        for note_content, is_internal in (('visible', False), ('staff only', True)):
            result = workflow.add_note(
                identity_for(self.agent_user), service_request.pk,
                note_content=note_content, is_internal=is_internal,
            )
            NotificationService.dispatch_events(result.events)

        self.login_as(self.customer)
        response = self.client.get(reverse('reports:activity'))
        self.assertEqual(response.status_code, 200)
        descriptions = [entry['description'] for entry in response.json()['activity']]
        self.assertEqual(descriptions, [f"Note added to {service_request.service_queue_id}"])
        self.assertFalse(any('Internal note' in description for description in descriptions))
        # Staff still have the row, tied to the request.
        self.assertTrue(ActivityLog.objects.filter(
            service_request_id=service_request.pk, description__startswith='Internal note', company_id__isnull=True
        ).exists())


class ReportApiTests(BaseTestCase):
    def test_report_shape(self):
        self.create_request()
        self.login_as(self.customer_admin)
        response = self.client.get(reverse('reports:report'))
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body['summary']['total_tickets'], 1)
        self.assertEqual(len(body['monthly_data']), 12)
        self.assertEqual(set(body['summary']['weekly_change']), {'total', 'new', 'wip', 'closed', 'past_due'})

    def test_role_restricted_endpoints(self):
        self.login_as(self.customer)
        self.assertEqual(self.client.get(reverse('reports:agent_summary')).status_code, 403)
        self.assertEqual(self.client.get(reverse('reports:customers')).status_code, 403)
        self.assertEqual(self.client.get(reverse('reports:activity')).status_code, 200)

        self.login_as(self.agent_user)
        self.assertEqual(self.client.get(reverse('reports:agent_summary')).status_code, 200)
        self.assertEqual(self.client.get(reverse('reports:activity')).status_code, 403)

        self.login_as(self.super_admin)
        self.assertEqual(self.client.get(reverse('reports:customers')).status_code, 200)
