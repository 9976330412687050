# services/tests.py
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase
from django.urls import reverse

from core.exceptions import FetchError
from .models import Service


class ServiceModelTest(TestCase):

    def test_duration_display(self):
        self.assertEqual(Service(name='A', duration_minutes=90).duration_display, '1h 30m')
        self.assertEqual(Service(name='B', duration_minutes=120).duration_display, '2h')
        self.assertEqual(Service(name='C', duration_minutes=45).duration_display, '45m')

    def test_negative_price_is_rejected(self):
        service = Service(name='Corte', price=Decimal('-1.00'))

        with self.assertRaises(ValidationError):
            service.full_clean()

    def test_zero_duration_is_rejected(self):
        service = Service(name='Corte', duration_minutes=0)

        with self.assertRaises(ValidationError):
            service.full_clean()


class ServiceListViewTest(TestCase):
    """Test the service list endpoint"""

    def setUp(self):
        self.user = get_user_model().objects.create_user(username='staff', password='secret-pass-123')
        self.client.force_login(self.user)
        Service.objects.create(name='Escova', price=Decimal('50.00'), duration_minutes=45)
        Service.objects.create(name='Corte', price=Decimal('100.00'))

    def test_list(self):
        response = self.client.get(reverse('services:list'))

        self.assertEqual(response.status_code, 200)
        services = response.json()['services']
        self.assertEqual([s['name'] for s in services], ['Corte', 'Escova'])
        self.assertEqual(services[0]['price'], '100.00')
        self.assertEqual(services[1]['duration_display'], '45m')

    def test_fetch_failure(self):
        with mock.patch('services.views.fetch_services', side_effect=FetchError('services')):
            response = self.client.get(reverse('services:list'))

        self.assertEqual(response.status_code, 503)
