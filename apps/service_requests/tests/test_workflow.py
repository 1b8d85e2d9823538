import shutil
import tempfile
from unittest import mock

from django.core.exceptions import ValidationError
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings

from apps.accounts.models import Role
from apps.audit.models import ActivityLog
from apps.core.exceptions import InsufficientPermissions, NotFound
from apps.notifications.models import Notification
from apps.service_requests import storage, workflow
from apps.service_requests.models import RequestAttachment, ServiceRequest
from tests.factories import AgentFactory, BaseTestCase, UserFactory, identity_for

NEW = ServiceRequest.STATUS_NEW
OPEN = ServiceRequest.STATUS_OPEN
IN_PROGRESS = ServiceRequest.STATUS_IN_PROGRESS
CLOSED = ServiceRequest.STATUS_CLOSED


def upload(name='report.pdf', content=b'%PDF-1.4 test'):
    return SimpleUploadedFile(name, content, content_type='application/pdf')


class CreateRequestTests(BaseTestCase):
    def create(self, user, **overrides):
        values = {
            'client': 'John Doe',
            'service_request_narrative': 'Need a copy of my policy',
            'service_queue_category': ServiceRequest.CATEGORY_POLICY_INQUIRY,
        }
        values.update(overrides)
        return workflow.create_request(identity_for(user), **values)

    def test_customer_creates_in_own_company_whatever_the_payload_says(self):
        result = self.create(self.customer, company_id=self.other_company.pk)
        service_request = result.instance
        self.assertEqual(service_request.company, self.company)
        self.assertEqual(service_request.task_status, NEW)
        self.assertTrue(service_request.service_queue_id.startswith('ServQUE-'))
        self.assertEqual(service_request.assigned_by, self.customer)

    def test_assigned_to_primary_user_and_notifies_them(self):
        result = self.create(self.customer)
        self.assertEqual(result.instance.assigned_to, self.customer_admin)
        event = result.events[0]
        self.assertEqual(event.activity_type, ActivityLog.TYPE_REQUEST_CREATED)
        self.assertEqual(event.recipient_ids, (str(self.customer_admin.pk),))

    def test_creator_is_not_notified_about_own_request(self):
        result = self.create(self.customer_admin)
        self.assertEqual(result.events[0].recipient_ids, ())

    def test_super_admin_must_pick_a_company(self):
        with self.assertRaises(ValidationError):
            self.create(self.super_admin)
        result = self.create(self.super_admin, company_id=self.other_company.pk)
        self.assertEqual(result.instance.company, self.other_company)

    def test_agents_cannot_create(self):
        with self.assertRaises(InsufficientPermissions):
            self.create(self.agent_user)

    def test_invalid_category_rejected_before_insert(self):
        with self.assertRaises(ValidationError):
            self.create(self.customer, service_queue_category='nonsense')
        self.assertFalse(ServiceRequest.objects.exists())

    def test_service_queue_id_collision_is_retried(self):
        existing = self.create_request()
        with mock.patch(
            'apps.service_requests.workflow.generate_service_queue_id',
            side_effect=[existing.service_queue_id, 'ServQUE-1700000000001-ABCD'],
        ):
            result = self.create(self.customer)
        self.assertEqual(result.instance.service_queue_id, 'ServQUE-1700000000001-ABCD')


class AssignTests(BaseTestCase):
    def setUp(self):
        super().setUp()
        self.service_request = self.create_request()

    def test_agent_assigns_covering_agent(self):
        other_agent = AgentFactory(assigned_company_ids=[str(self.company.pk)])
        result = workflow.assign_request(
            identity_for(self.agent_user), self.service_request.pk, assigned_to_id=other_agent.user.pk
        )
        self.assertEqual(result.instance.assigned_to, other_agent.user)
        self.assertEqual(result.instance.modified_by, self.agent_user)
        self.assertEqual(result.events[0].recipient_ids, (str(other_agent.user.pk),))

    def test_assignee_must_be_able_to_see_the_request(self):
        stranger = AgentFactory()
        outsider = UserFactory(company=self.other_company)
        for user in (stranger.user, outsider):
            with self.subTest(user=user.email), self.assertRaises(ValidationError):
                workflow.assign_request(
                    identity_for(self.super_admin), self.service_request.pk, assigned_to_id=user.pk
                )

    def test_unassign(self):
        self.service_request.assigned_to = self.customer
        self.service_request.save()
        result = workflow.assign_request(identity_for(self.customer_admin), self.service_request.pk, assigned_to_id=None)
        self.assertIsNone(result.instance.assigned_to)
        self.assertEqual(result.events[0].recipient_ids, ())

    def test_reassigning_same_user_is_a_no_op(self):
        self.service_request.assigned_to = self.customer
        self.service_request.save()
        result = workflow.assign_request(
            identity_for(self.customer_admin), self.service_request.pk, assigned_to_id=self.customer.pk
        )
        self.assertEqual(result.events, [])

    def test_customers_cannot_assign(self):
        with self.assertRaises(InsufficientPermissions):
            workflow.assign_request(identity_for(self.customer), self.service_request.pk, assigned_to_id=None)


class TransitionMatrixTests(BaseTestCase):
    order = [NEW, OPEN, IN_PROGRESS, CLOSED]

    def test_forward_allowed_for_every_role(self):
        for user in (self.super_admin, self.customer_admin, self.agent_user, self.customer):
            for i, current in enumerate(self.order):
                for new in self.order[i + 1:]:
                    with self.subTest(role=user.role, current=current, new=new):
                        workflow.check_transition(identity_for(user), current, new)

    def test_backward_only_for_admins(self):
        for user in (self.super_admin, self.customer_admin, self.agent_user, self.customer):
            for i, current in enumerate(self.order):
                for new in self.order[:i]:
                    with self.subTest(role=user.role, current=current, new=new):
                        if user.role in (Role.SUPER_ADMIN, Role.CUSTOMER_ADMIN):
                            workflow.check_transition(identity_for(user), current, new)
                        else:
                            with self.assertRaises(InsufficientPermissions):
                                workflow.check_transition(identity_for(user), current, new)

    def test_same_status_and_unknown_status_rejected(self):
        with self.assertRaises(ValidationError):
            workflow.check_transition(identity_for(self.super_admin), OPEN, OPEN)
        with self.assertRaises(ValidationError):
            workflow.check_transition(identity_for(self.super_admin), OPEN, 'archived')


class ChangeStatusTests(BaseTestCase):
    def test_change_status_records_event_for_assignee_and_creator(self):
        service_request = self.create_request(assigned_to=self.agent_user)
        result = workflow.change_status(identity_for(self.customer), service_request.pk, task_status=CLOSED)
        service_request.refresh_from_db()
        self.assertEqual(service_request.task_status, CLOSED)
        self.assertEqual(service_request.modified_by, self.customer)
        event = result.events[0]
        self.assertEqual(event.notification_type, Notification.TYPE_STATUS_CHANGED)
        self.assertEqual(set(event.recipient_ids), {str(self.agent_user.pk), str(self.customer_admin.pk)})
        self.assertEqual(event.context['old_status'], NEW)

    def test_agent_cannot_reopen(self):
        service_request = self.create_request(task_status=CLOSED)
        with self.assertRaises(InsufficientPermissions):
            workflow.change_status(identity_for(self.agent_user), service_request.pk, task_status=OPEN)
        service_request.refresh_from_db()
        self.assertEqual(service_request.task_status, CLOSED)

    def test_customer_admin_reopens(self):
        service_request = self.create_request(task_status=CLOSED)
        result = workflow.change_status(identity_for(self.customer_admin), service_request.pk, task_status=OPEN)
        self.assertIn('reopened', result.events[0].description)

    def test_out_of_scope_is_not_found(self):
        service_request = self.create_request()
        outsider = UserFactory(company=self.other_company)
        with self.assertRaises(NotFound):
            workflow.change_status(identity_for(outsider), service_request.pk, task_status=OPEN)


class UpdateRequestTests(BaseTestCase):
    def test_update_descriptive_fields(self):
        service_request = self.create_request(client='Old')
        result = workflow.update_request(identity_for(self.customer), service_request.pk, client='New')
        self.assertEqual(result.instance.client, 'New')
        self.assertIn('client', result.events[0].description)

    def test_company_is_not_editable(self):
        service_request = self.create_request()
        with self.assertRaises(ValidationError):
            workflow.update_request(identity_for(self.super_admin), service_request.pk, company=self.other_company)

    def test_blank_client_rejected(self):
        service_request = self.create_request()
        with self.assertRaises(ValidationError):
            workflow.update_request(identity_for(self.customer), service_request.pk, client='  ')


class NoteTests(BaseTestCase):
    def setUp(self):
        super().setUp()
        self.service_request = self.create_request(assigned_to=self.agent_user)

    def test_internal_notes_hidden_from_customers(self):
        workflow.add_note(identity_for(self.agent_user), self.service_request.pk, note_content='public')
        workflow.add_note(
            identity_for(self.agent_user), self.service_request.pk, note_content='staff only', is_internal=True
        )
        _, customer_notes, _ = workflow.get_request(identity_for(self.customer), self.service_request.pk)
        _, agent_notes, _ = workflow.get_request(identity_for(self.agent_user), self.service_request.pk)
        self.assertEqual([n.note_content for n in customer_notes], ['public'])
        self.assertEqual(len(agent_notes), 2)

    def test_customers_cannot_write_internal_notes(self):
        with self.assertRaises(InsufficientPermissions):
            workflow.add_note(
                identity_for(self.customer_admin), self.service_request.pk, note_content='x', is_internal=True
            )

    def test_internal_note_only_notifies_staff(self):
        result = workflow.add_note(
            identity_for(self.super_admin), self.service_request.pk, note_content='check', is_internal=True
        )
        self.assertEqual(result.events[0].recipient_ids, (str(self.agent_user.pk),))

    def test_public_note_notifies_assignee_and_creator_but_not_author(self):
        result = workflow.add_note(identity_for(self.customer_admin), self.service_request.pk, note_content='hi')
        self.assertEqual(result.events[0].recipient_ids, (str(self.agent_user.pk),))

    def test_blank_note_rejected(self):
        with self.assertRaises(ValidationError):
            workflow.add_note(identity_for(self.customer), self.service_request.pk, note_content='   ')

    def test_notes_are_append_only(self):
        note = workflow.add_note(identity_for(self.customer), self.service_request.pk, note_content='hi').instance
        note.note_content = 'edited'
        with self.assertRaises(ValueError):
            note.save()


class AttachmentWorkflowTests(BaseTestCase):
    def setUp(self):
        super().setUp()
        self.media_root = tempfile.mkdtemp()
        self.override = override_settings(MEDIA_ROOT=self.media_root)
        self.override.enable()
        self.service_request = self.create_request()

    def tearDown(self):
        self.override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)
        super().tearDown()

    def test_attachment_is_stored_under_request_dir(self):
        result = workflow.add_attachments(identity_for(self.customer), self.service_request.pk, files=[upload()])
        attachment = result.instance[0]
        self.assertTrue(attachment.file_path.startswith(f"uploads/{self.service_request.pk}/"))
        self.assertTrue(attachment.stored_name.endswith('-report.pdf'))
        self.assertEqual(attachment.mime_type, 'application/pdf')
        self.assertEqual(attachment.file_size, len(b'%PDF-1.4 test'))
        self.assertTrue(default_storage.exists(attachment.file_path))
        self.assertEqual(result.events[0].activity_type, ActivityLog.TYPE_ATTACHMENT_UPLOADED)

    def test_disallowed_extension_rejected_before_storing(self):
        with self.assertRaises(ValidationError):
            workflow.add_attachments(
                identity_for(self.customer), self.service_request.pk, files=[upload(), upload('run.exe')]
            )
        self.assertFalse(RequestAttachment.objects.exists())

    @override_settings(MAX_ATTACHMENT_SIZE=4)
    def test_oversized_file_rejected(self):
        with self.assertRaises(ValidationError):
            workflow.add_attachments(identity_for(self.customer), self.service_request.pk, files=[upload()])

    def test_failed_create_removes_stored_blobs(self):
        with mock.patch.object(storage, 'delete_quietly', wraps=storage.delete_quietly) as cleanup, \
                mock.patch.object(RequestAttachment.objects, 'create', side_effect=RuntimeError('db down')):
            with self.assertRaises(RuntimeError):
                workflow.create_request(
                    identity_for(self.customer),
                    client='John',
                    service_request_narrative='Help',
                    service_queue_category=ServiceRequest.CATEGORY_OTHER,
                    files=[upload()],
                )
        keys = cleanup.call_args.args[0]
        self.assertEqual(len(keys), 1)
        self.assertFalse(default_storage.exists(keys[0]))
        self.assertEqual(ServiceRequest.objects.count(), 1)

    def test_open_attachment_rejects_traversal_and_unknown_names(self):
        identity = identity_for(self.customer)
        workflow.add_attachments(identity, self.service_request.pk, files=[upload()])
        for name in ('../secret.txt', '.hidden', 'nope.pdf'):
            with self.subTest(name=name), self.assertRaises(NotFound):
                workflow.open_attachment(identity, self.service_request.pk, name)

    def test_open_attachment_returns_original_name(self):
        identity = identity_for(self.customer)
        attachment = workflow.add_attachments(identity, self.service_request.pk, files=[upload()]).instance[0]
        handle, file_name, mime_type = workflow.open_attachment(identity, self.service_request.pk, attachment.stored_name)
        with handle:
            self.assertEqual(handle.read(), b'%PDF-1.4 test')
        self.assertEqual(file_name, 'report.pdf')
        self.assertEqual(mime_type, 'application/pdf')
