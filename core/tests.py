# core/tests.py
from datetime import date, datetime, timedelta
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from django.utils import timezone

from appointments.models import Appointment
from clients.models import Client
from services.models import Service
from .exceptions import FetchError, MalformedRecordError
from .models import SystemSetting
from .utils import get_local_date, local_day_bounds, local_midnight, to_local


def local(*args):
    return timezone.make_aware(datetime(*args))


class TimezoneUtilsTest(SimpleTestCase):
    """Test local calendar helpers (TIME_ZONE is America/Sao_Paulo, UTC-3)"""

    def test_local_midnight(self):
        midnight = local_midnight(date(2026, 10, 19))

        self.assertEqual(to_local(midnight).hour, 0)
        self.assertEqual(midnight.utcoffset(), timedelta(hours=-3))

    def test_day_bounds_use_local_date(self):
        # 01:30 UTC on the 20th is 22:30 on the 19th locally
        utc_dt = datetime(2026, 10, 20, 1, 30, tzinfo=timezone.get_fixed_timezone(0))

        start, end = local_day_bounds(utc_dt)

        self.assertEqual(start, local(2026, 10, 19))
        self.assertEqual(end, local(2026, 10, 20))
        self.assertEqual(get_local_date(utc_dt), date(2026, 10, 19))

    def test_naive_datetime_is_taken_as_local(self):
        self.assertEqual(to_local(datetime(2026, 10, 19, 9, 0)), local(2026, 10, 19, 9, 0))

    def test_none_passes_through(self):
        self.assertIsNone(to_local(None))
        self.assertIsNone(get_local_date(None))


class ExceptionsTest(SimpleTestCase):

    def test_fetch_error_message(self):
        error = FetchError('appointments', RuntimeError('disk I/O error'))

        self.assertEqual(str(error), 'Could not fetch appointments: disk I/O error')

    def test_malformed_record_is_value_error(self):
        error = MalformedRecordError('price', 'abc')

        self.assertIsInstance(error, ValueError)
        self.assertEqual(error.field, 'price')


class SystemSettingTest(TestCase):
    """Test key-value settings"""

    def test_get_setting_default(self):
        self.assertEqual(SystemSetting.get_setting('missing', 'fallback'), 'fallback')

    def test_inactive_setting_is_ignored(self):
        SystemSetting.objects.create(key='business_name', value='Studio', is_active=False)

        self.assertIsNone(SystemSetting.get_setting('business_name'))

    def test_get_int_setting(self):
        SystemSetting.set_setting('reports_trend_days', 14)
        SystemSetting.set_setting('reports_top_services_limit', 'many')

        self.assertEqual(SystemSetting.get_int_setting('reports_trend_days', 7), 14)
        self.assertEqual(SystemSetting.get_int_setting('reports_top_services_limit', 5), 5)

    def test_set_setting_updates_existing(self):
        SystemSetting.set_setting('business_name', 'Studio')
        SystemSetting.set_setting('business_name', 'Studio Ana')

        self.assertEqual(SystemSetting.objects.filter(key='business_name').count(), 1)
        self.assertEqual(SystemSetting.get_setting('business_name'), 'Studio Ana')

    def test_initialize_defaults_keeps_existing_values(self):
        SystemSetting.objects.create(key='business_name', value='Studio Ana', description='')

        created, updated = SystemSetting.initialize_defaults({
            'business_name': ('Agenda', 'Business name'),
            'business_phone': ('', 'Business phone'),
        })

        self.assertEqual(created, ['business_phone'])
        self.assertEqual(updated, ['business_name'])
        setting = SystemSetting.objects.get(key='business_name')
        self.assertEqual(setting.value, 'Studio Ana')
        self.assertEqual(setting.description, 'Business name')


class ManagementCommandsTest(TestCase):
    """Test setting initialization commands"""

    def test_initialize_settings(self):
        out = StringIO()
        call_command('initialize_settings', stdout=out)

        self.assertEqual(SystemSetting.get_setting('business_name'), 'Agenda')
        self.assertIn('3 created', out.getvalue())

        out = StringIO()
        call_command('initialize_settings', stdout=out)
        self.assertIn('All settings already initialized', out.getvalue())

    def test_initialize_reports(self):
        call_command('initialize_reports', stdout=StringIO())

        self.assertEqual(SystemSetting.get_setting('reports_default_period'), 'month')
        self.assertEqual(SystemSetting.get_int_setting('reports_top_services_limit'), 5)
        self.assertEqual(SystemSetting.get_int_setting('reports_trend_days'), 7)


class HealthCheckTest(TestCase):

    def test_health_check(self):
        response = self.client.get(reverse('core:health_check'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'ok')

    def test_post_not_allowed(self):
        response = self.client.post(reverse('core:health_check'))

        self.assertEqual(response.status_code, 405)


class DashboardViewTest(TestCase):
    """Test the today dashboard"""

    NOW = local(2026, 10, 19, 10, 0)

    def setUp(self):
        self.user = get_user_model().objects.create_user(username='staff', password='secret-pass-123')
        client = Client.objects.create(name='Ana')
        service = Service.objects.create(name='Corte', price=Decimal('80.00'))
        for when in [
            local(2026, 10, 18, 23, 59),
            local(2026, 10, 19, 0, 0),
            local(2026, 10, 19, 16, 30),
            local(2026, 10, 20, 0, 0),
        ]:
            Appointment.objects.create(client=client, service=service, appointment_time=when)

    def test_requires_login(self):
        response = self.client.get(reverse('core:dashboard'))

        self.assertEqual(response.status_code, 302)

    def test_lists_only_today(self):
        self.client.force_login(self.user)

        with mock.patch('core.views.get_local_now', return_value=self.NOW):
            response = self.client.get(reverse('core:dashboard'))

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['date'], '2026-10-19')
        self.assertEqual(
            [item['time_display'] for item in data['appointments']],
            ['00:00', '16:30']
        )

    def test_fetch_failure_returns_503(self):
        self.client.force_login(self.user)

        with mock.patch('core.views.fetch_appointments', side_effect=FetchError('appointments')):
            response = self.client.get(reverse('core:dashboard'))

        self.assertEqual(response.status_code, 503)
