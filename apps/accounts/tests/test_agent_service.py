from unittest import mock

from django.core.exceptions import ValidationError
from django.urls import reverse

from apps.accounts.models import Agent, Role
from apps.accounts.services import agent_service
from apps.core.exceptions import Conflict
from tests.factories import AgentFactory, BaseTestCase, identity_for


class AgentServiceTests(BaseTestCase):
    def test_create_agent_generates_login_code_and_profile(self):
        result = agent_service.create_agent(
            identity=identity_for(self.super_admin),
            first_name='Baraka',
            last_name='Mushi',
            email='baraka@example.com',
            assigned_company_ids=[self.company.pk, self.company.pk, self.other_company.pk],
        )
        agent = result.instance
        self.assertEqual(agent.user.role, Role.AGENT)
        self.assertIsNone(agent.user.company_id)
        self.assertRegex(agent.user.login_code, r'^[0-9A-F]{8}$')
        self.assertEqual(agent.assigned_company_ids, [str(self.company.pk), str(self.other_company.pk)])
        self.assertEqual(result.events[0].recipient_ids, (str(agent.user.pk),))

    def test_login_code_collision_is_retried(self):
        taken = self.customer.login_code
        with mock.patch(
            'apps.accounts.services.agent_service.generate_login_code',
            side_effect=[taken, 'FEEDF00D'],
        ):
            result = agent_service.create_agent(
                identity=identity_for(self.super_admin),
                first_name='Baraka', last_name='Mushi', email='baraka@example.com',
            )
        self.assertEqual(result.instance.user.login_code, 'FEEDF00D')

    def test_unknown_company_rejected(self):
        with self.assertRaises(ValidationError):
            agent_service.create_agent(
                identity=identity_for(self.super_admin),
                first_name='A', last_name='B', email='ab@example.com',
                assigned_company_ids=['00000000-0000-0000-0000-000000000000'],
            )
        self.assertFalse(Agent.objects.filter(user__email='ab@example.com').exists())

    def test_duplicate_email_conflict(self):
        with self.assertRaises(Conflict):
            agent_service.create_agent(
                identity=identity_for(self.super_admin),
                first_name='A', last_name='B', email=self.customer.email,
            )

    def test_available_agents_skip_inactive(self):
        inactive = AgentFactory(is_active=False)
        deactivated_user = AgentFactory()
        deactivated_user.user.is_active = False
        deactivated_user.user.save()
        available = list(agent_service.available_agents())
        self.assertIn(self.agent, available)
        self.assertNotIn(inactive, available)
        self.assertNotIn(deactivated_user, available)


class AgentApiTests(BaseTestCase):
    def test_super_admin_lists_agents_with_company_names(self):
        self.login_as(self.super_admin)
        response = self.client.get(reverse('agents:agents'))
        self.assertEqual(response.status_code, 200)
        agents = response.json()['agents']
        self.assertEqual(len(agents), 1)
        self.assertIn(self.company.company_name, str(agents[0]['assigned_companies']))

    def test_customers_see_available_agents(self):
        self.login_as(self.customer)
        response = self.client.get(reverse('agents:agents_available'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['agents'][0]['id'], str(self.agent_user.pk))

    def test_agents_cannot_list_available(self):
        self.login_as(self.agent_user)
        self.assertEqual(self.client.get(reverse('agents:agents_available')).status_code, 403)
