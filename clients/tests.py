# clients/tests.py
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from appointments.models import Appointment
from core.exceptions import FetchError
from services.models import Service
from .models import Client


class ClientViewsTest(TestCase):
    """Test the client list endpoint"""

    def setUp(self):
        self.user = get_user_model().objects.create_user(username='staff', password='secret-pass-123')
        self.client.force_login(self.user)
        self.bia = Client.objects.create(name='Bia', phone='11 99999-0000')
        self.ana = Client.objects.create(name='Ana', email='ana@example.com')
        self.service = Service.objects.create(name='Corte', price=Decimal('80.00'))

    def test_list_is_ordered_by_name(self):
        response = self.client.get(reverse('clients:list'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual([c['name'] for c in response.json()['clients']], ['Ana', 'Bia'])

    def test_list_fetch_failure(self):
        with mock.patch('clients.views.fetch_clients', side_effect=FetchError('clients')):
            response = self.client.get(reverse('clients:list'))

        self.assertEqual(response.status_code, 503)

    def test_list_requires_login(self):
        self.client.logout()

        response = self.client.get(reverse('clients:list'))

        self.assertEqual(response.status_code, 302)

    def test_only_the_list_is_routed(self):
        response = self.client.get(f'/clients/{self.ana.pk}/quick-info/')

        self.assertEqual(response.status_code, 404)

    def test_deleting_client_keeps_appointments(self):
        appointment = Appointment.objects.create(
            client=self.bia, service=self.service, appointment_time=timezone.now()
        )

        self.bia.delete()
        appointment.refresh_from_db()

        self.assertIsNone(appointment.client)
        self.assertIn('Unknown client', str(appointment))
