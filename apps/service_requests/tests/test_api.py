import shutil
import tempfile
from datetime import timedelta
from unittest import mock

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings
from django.urls import reverse
from django.utils import timezone

from apps.audit.models import ActivityLog
from apps.notifications.models import Notification
from apps.notifications.services import NotificationService
from apps.service_requests.models import ServiceRequest
from tests.factories import BaseTestCase, CustomerAdminFactory, RequestNoteFactory


class RequestListApiTests(BaseTestCase):
    def setUp(self):
        super().setUp()
        self.own = self.create_request(client='Alpha Client')
        self.create_request(
            company=self.other_company,
            assigned_by=CustomerAdminFactory(company=self.other_company),
            client='Beta Client',
        )

    def test_list_is_scoped_and_paginated(self):
        self.login_as(self.customer)
        response = self.client.get(reverse('service_requests:list'))
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual([r['id'] for r in body['requests']], [str(self.own.pk)])
        self.assertEqual(body['pagination']['total'], 1)
        self.assertEqual(body['requests'][0]['company_name'], self.company.company_name)

    def test_per_page_is_capped(self):
        self.login_as(self.super_admin)
        response = self.client.get(reverse('service_requests:list'), {'per_page': 1000})
        self.assertEqual(response.json()['pagination']['per_page'], 100)
        self.assertEqual(response.json()['pagination']['total'], 2)

    def test_filters(self):
        overdue = self.overdue_request(client='Gamma Client')
        self.create_request(task_status=ServiceRequest.STATUS_CLOSED)
        self.login_as(self.super_admin)
        url = reverse('service_requests:list')

        response = self.client.get(url, {'overdue': 'true'})
        self.assertEqual([r['id'] for r in response.json()['requests']], [str(overdue.pk)])
        self.assertTrue(response.json()['requests'][0]['is_overdue'])

        response = self.client.get(url, {'search': 'beta'})
        self.assertEqual(response.json()['pagination']['total'], 1)

        response = self.client.get(url, {'status': ServiceRequest.STATUS_CLOSED})
        self.assertEqual(response.json()['pagination']['total'], 1)

        response = self.client.get(url, {'customer_id': str(self.company.pk)})
        self.assertEqual(response.json()['pagination']['total'], 3)

    def test_customer_search_never_reaches_other_companies(self):
        self.login_as(self.customer)
        response = self.client.get(reverse('service_requests:list'), {'search': 'Beta'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['pagination']['total'], 0)
        self.assertEqual(response.json()['requests'], [])

    def test_invalid_filter_is_400(self):
        self.login_as(self.super_admin)
        response = self.client.get(reverse('service_requests:list'), {'date_range': 'decade'})
        self.assertEqual(response.status_code, 400)

    def test_anonymous_is_401(self):
        self.assertEqual(self.client.get(reverse('service_requests:list')).status_code, 401)


class RequestDetailApiTests(BaseTestCase):
    def setUp(self):
        super().setUp()
        self.service_request = self.create_request(assigned_to=self.agent_user)

    def url(self, name, **kwargs):
        return reverse(f'service_requests:{name}', kwargs={'request_id': self.service_request.pk, **kwargs})

    def test_detail_hides_internal_notes_from_customers(self):
        RequestNoteFactory(request=self.service_request, author=self.agent_user, is_internal=True)
        RequestNoteFactory(request=self.service_request, author=self.customer)
        self.login_as(self.customer)
        body = self.client.get(self.url('detail')).json()
        self.assertEqual(len(body['notes']), 1)
        self.assertEqual(body['request']['service_queue_id'], self.service_request.service_queue_id)

    def test_foreign_request_is_404(self):
        self.login_as(CustomerAdminFactory(company=self.other_company))
        response = self.client.get(self.url('detail'))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {'error': 'Service request not found'})

    def test_status_change_writes_activity_and_notifications(self):
        self.login_as(self.customer)
        response = self.client.post(
            self.url('status'), {'task_status': ServiceRequest.STATUS_IN_PROGRESS}, content_type='application/json'
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['request']['task_status'], ServiceRequest.STATUS_IN_PROGRESS)
        self.assertTrue(
            ActivityLog.objects.filter(
                type=ActivityLog.TYPE_STATUS_CHANGED, service_request_id=self.service_request.pk, user=self.customer
            ).exists()
        )
        self.assertEqual(
            set(Notification.objects.filter(service_request=self.service_request).values_list('user_id', flat=True)),
            {self.agent_user.pk, self.customer_admin.pk},
        )

    def test_agent_reopen_is_403(self):
        self.service_request.task_status = ServiceRequest.STATUS_CLOSED
        self.service_request.save()
        self.login_as(self.agent_user)
        response = self.client.post(
            self.url('status'), {'task_status': ServiceRequest.STATUS_OPEN}, content_type='application/json'
        )
        self.assertEqual(response.status_code, 403)

    def test_customer_cannot_reach_assign(self):
        self.login_as(self.customer)
        response = self.client.post(self.url('assign'), {'assigned_to': None}, content_type='application/json')
        self.assertEqual(response.status_code, 403)

    def test_add_note(self):
        self.login_as(self.customer)
        response = self.client.post(self.url('notes'), {'note_content': 'Any update?'}, content_type='application/json')
        self.assertEqual(response.status_code, 201)
        self.assertFalse(response.json()['note']['is_internal'])
        self.assertEqual(
            set(Notification.objects.filter(type=Notification.TYPE_NOTE_ADDED).values_list('user_id', flat=True)),
            {self.agent_user.pk, self.customer_admin.pk},
        )

    def test_dispatch_failures_leave_the_response_untouched(self):
        self.login_as(self.customer)
        with mock.patch.object(
            NotificationService, 'create_notification', side_effect=RuntimeError('inbox down')
        ), mock.patch.object(
            NotificationService, 'record_activity', side_effect=RuntimeError('log down')
        ), self.assertLogs('apps.notifications.services', level='ERROR'):
            note_response = self.client.post(
                self.url('notes'), {'note_content': 'Still there?'}, content_type='application/json'
            )
            status_response = self.client.post(
                self.url('status'), {'task_status': ServiceRequest.STATUS_OPEN}, content_type='application/json'
            )

        self.assertEqual(note_response.status_code, 201)
        self.assertTrue(note_response.json()['success'])
        self.assertEqual(note_response.json()['note']['note_content'], 'Still there?')
        self.assertEqual(status_response.status_code, 200)
        self.assertEqual(status_response.json()['request']['task_status'], ServiceRequest.STATUS_OPEN)
        self.assertTrue(self.service_request.notes.filter(note_content='Still there?').exists())
        self.assertFalse(ActivityLog.objects.exists())
        self.assertFalse(Notification.objects.exists())

    def test_patch_due_date(self):
        due = timezone.now() + timedelta(days=3)
        self.login_as(self.customer_admin)
        response = self.client.patch(self.url('detail'), {'due_date': due.isoformat()}, content_type='application/json')
        self.assertEqual(response.status_code, 200)
        self.service_request.refresh_from_db()
        self.assertEqual(self.service_request.due_date, due)


class RequestCreateApiTests(BaseTestCase):
    def setUp(self):
        super().setUp()
        self.media_root = tempfile.mkdtemp()
        self.override = override_settings(MEDIA_ROOT=self.media_root)
        self.override.enable()

    def tearDown(self):
        self.override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)
        super().tearDown()

    def test_create_with_files_and_download(self):
        self.login_as(self.customer)
        response = self.client.post(reverse('service_requests:list'), {
            'client': 'John Doe',
            'service_request_narrative': 'Claim form attached',
            'service_queue_category': ServiceRequest.CATEGORY_CLAIMS_PROCESSING,
            'files': [SimpleUploadedFile('claim.txt', b'claim body', content_type='text/plain')],
        })
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['request']['task_status'], ServiceRequest.STATUS_NEW)
        self.assertEqual(len(body['attachments']), 1)

        download = self.client.get(body['attachments'][0]['download_url'])
        self.assertEqual(download.status_code, 200)
        self.assertEqual(b''.join(download.streaming_content), b'claim body')
        self.assertIn('claim.txt', download['Content-Disposition'])
        self.assertEqual(download['Content-Type'], 'text/plain')

        self.login_as(CustomerAdminFactory(company=self.other_company))
        self.assertEqual(self.client.get(body['attachments'][0]['download_url']).status_code, 404)

    def test_agents_cannot_create(self):
        self.login_as(self.agent_user)
        response = self.client.post(
            reverse('service_requests:list'),
            {'client': 'x', 'service_request_narrative': 'y', 'service_queue_category': ServiceRequest.CATEGORY_OTHER},
            content_type='application/json',
        )
        self.assertEqual(response.status_code, 403)

    def test_upload_more_attachments(self):
        service_request = self.create_request()
        self.login_as(self.customer_admin)
        response = self.client.post(
            reverse('service_requests:attachments', kwargs={'request_id': service_request.pk}),
            {'files': [SimpleUploadedFile('a.png', b'png'), SimpleUploadedFile('b.jpg', b'jpg')]},
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual([a['file_name'] for a in response.json()['attachments']], ['a.png', 'b.jpg'])
        self.assertEqual(
            ActivityLog.objects.filter(type=ActivityLog.TYPE_ATTACHMENT_UPLOADED).count(), 2
        )
