from unittest import mock

from django.core.exceptions import ValidationError
from django.urls import reverse

from apps.accounts.models import Agent, Role, User
from apps.audit.models import ActivityLog
from apps.companies import services
from apps.companies.models import Company
from apps.core.codes import COMPANY_CODE_ALPHABET
from apps.core.exceptions import Conflict, NotFound
from apps.notifications.models import Notification
from tests.factories import BaseTestCase, SuperAdminFactory, UserFactory, identity_for


class CompanyServiceTests(BaseTestCase):
    def setUp(self):
        super().setUp()
        self.identity = identity_for(self.super_admin)

    def test_create_company_generates_code_and_notifies_other_super_admins(self):
        other_admin = SuperAdminFactory()
        result = services.create_company(
            identity=self.identity,
            company_name=' Acme Insurance ',
            primary_contact='Jane Doe',
            email='INFO@acme.example.com',
        )
        company = result.instance
        self.assertEqual(company.company_name, 'Acme Insurance')
        self.assertEqual(company.email, 'info@acme.example.com')
        self.assertEqual(len(company.company_code), 7)
        self.assertTrue(set(company.company_code) <= set(COMPANY_CODE_ALPHABET))

        event = result.events[0]
        self.assertEqual(event.notification_type, Notification.TYPE_COMPANY_CREATED)
        self.assertEqual(event.recipient_ids, (str(other_admin.pk),))

    def test_company_code_collision_is_retried(self):
        with mock.patch(
            'apps.companies.services.generate_company_code',
            side_effect=[self.company.company_code, 'ZZZZZZZ'],
        ):
            result = services.create_company(
                identity=self.identity, company_name='Acme', primary_contact='Jane', email='acme@example.com',
            )
        self.assertEqual(result.instance.company_code, 'ZZZZZZZ')

    def test_duplicate_email_conflict(self):
        with self.assertRaises(Conflict):
            services.create_company(
                identity=self.identity, company_name='Acme', primary_contact='Jane', email=self.company.email,
            )

    def test_blank_name_rejected(self):
        with self.assertRaises(ValidationError):
            services.create_company(identity=self.identity, company_name=' ', primary_contact='Jane', email='a@b.com')

    def test_get_company_missing(self):
        with self.assertRaisesMessage(NotFound, 'Customer not found'):
            services.get_company('00000000-0000-0000-0000-000000000000')

    def test_update_company_partial(self):
        result = services.update_company(identity=self.identity, company=self.company, phone='', company_name='New')
        self.company.refresh_from_db()
        self.assertEqual(self.company.company_name, 'New')
        self.assertEqual(self.company.phone, '')
        self.assertEqual(result.events[0].activity_type, ActivityLog.TYPE_COMPANY_UPDATED)

    def test_update_without_changes_emits_nothing(self):
        result = services.update_company(identity=self.identity, company=self.company)
        self.assertEqual(result.events, [])

    def test_delete_blocked_while_requests_exist(self):
        self.create_request()
        with self.assertRaises(ValidationError):
            services.delete_company(identity=self.identity, company=self.company)
        self.assertTrue(Company.objects.filter(pk=self.company.pk).exists())

    def test_delete_removes_users_and_agent_coverage(self):
        company_id = str(self.company.pk)
        self.agent.assigned_company_ids = [company_id, str(self.other_company.pk)]
        self.agent.save()

        services.delete_company(identity=self.identity, company=self.company)

        self.assertFalse(Company.objects.filter(pk=company_id).exists())
        self.assertFalse(User.objects.filter(company_id=company_id).exists())
        self.assertEqual(Agent.objects.get(pk=self.agent.pk).assigned_company_ids, [str(self.other_company.pk)])

    def test_reset_code_moves_primary_login_code(self):
        primary = UserFactory(company=self.company, role=Role.CUSTOMER_ADMIN, login_code=self.company.company_code)
        old_code = self.company.company_code
        result = services.reset_company_code(identity=self.identity, company=self.company)
        self.company.refresh_from_db()
        primary.refresh_from_db()
        self.assertNotEqual(self.company.company_code, old_code)
        self.assertEqual(primary.login_code, self.company.company_code)
        self.assertEqual(result.events[0].context['old_company_code'], old_code)

    def test_primary_user_falls_back_to_earliest_customer_admin(self):
        self.assertEqual(self.company.get_primary_user(), self.customer_admin)
        primary = UserFactory(company=self.company, login_code=self.company.company_code)
        self.assertEqual(self.company.get_primary_user(), primary)

    def test_update_details_creates_primary_user_when_missing(self):
        company = self.other_company
        result = services.update_company_details(
            identity=self.identity,
            company=company,
            company_name='Other Co',
            first_name='Neema',
            last_name='Said',
            email='neema@other.example.com',
            login_code='NEEMA123',
        )
        user = company.users.get()
        self.assertEqual(user.role, Role.CUSTOMER_ADMIN)
        self.assertEqual(user.login_code, 'NEEMA123')
        self.assertEqual(result.instance.primary_contact, 'Neema Said')
        self.assertEqual(result.events[1].recipient_ids, (str(user.pk),))


class CompanyApiTests(BaseTestCase):
    def test_super_admin_lifecycle(self):
        self.login_as(self.super_admin)
        response = self.client.post(
            reverse('companies:list'),
            {'company_name': 'Acme', 'primary_contact': 'Jane', 'email': 'acme@example.com'},
            content_type='application/json',
        )
        self.assertEqual(response.status_code, 201)
        company_id = response.json()['customer']['id']
        self.assertTrue(ActivityLog.objects.filter(type=ActivityLog.TYPE_COMPANY_CREATED, company_id=company_id).exists())

        response = self.client.post(reverse('companies:reset_code', kwargs={'company_id': company_id}))
        self.assertEqual(response.status_code, 200)
        self.assertNotEqual(response.json()['old_company_code'], response.json()['new_company_code'])

        response = self.client.delete(reverse('companies:detail', kwargs={'company_id': company_id}))
        self.assertEqual(response.status_code, 200)

    def test_delete_with_requests_is_400(self):
        self.create_request()
        self.login_as(self.super_admin)
        response = self.client.delete(reverse('companies:detail', kwargs={'company_id': self.company.pk}))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {'error': 'Cannot delete customer with active service requests'})

    def test_only_super_admins(self):
        self.login_as(self.customer_admin)
        self.assertEqual(self.client.get(reverse('companies:list')).status_code, 403)
