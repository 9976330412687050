# appointments/tests.py
"""
Unit tests for the agenda: past/today/future tabs, day sections and record fetching
"""
from datetime import datetime, timedelta
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.template import Context, Template
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from django.utils import timezone, translation

from clients.models import Client
from core.exceptions import FetchError
from services.models import Service
from .categorization import (
    categorize_appointments,
    get_bucket_sections,
    group_into_sections,
    sections_with_month_headers,
)
from .models import Appointment
from .records import fetch_appointments, fetch_clients, fetch_services


def local(*args):
    return timezone.make_aware(datetime(*args))


NOW = local(2026, 10, 19, 15, 0)
TODAY_START = local(2026, 10, 19)
TODAY_END = local(2026, 10, 20)


def make_appointment(when, status=Appointment.SCHEDULED):
    return Appointment(appointment_time=when, status=status)


class CategorizeAppointmentsTest(SimpleTestCase):
    """Test splitting appointments into past, today and future"""

    def test_today_boundaries(self):
        at_start = make_appointment(TODAY_START)
        just_before_end = make_appointment(TODAY_END - timedelta(milliseconds=1))
        at_end = make_appointment(TODAY_END)
        just_before_start = make_appointment(TODAY_START - timedelta(microseconds=1))

        buckets = categorize_appointments([just_before_start, at_start, just_before_end, at_end], NOW)

        self.assertEqual(buckets['past'], [just_before_start])
        self.assertEqual(buckets['today'], [at_start, just_before_end])
        self.assertEqual(buckets['future'], [at_end])

    def test_buckets_partition_the_input(self):
        appointments = [
            make_appointment(NOW + timedelta(hours=offset))
            for offset in range(-72, 73, 5)
        ]

        buckets = categorize_appointments(appointments, NOW)

        total = sum(len(items) for items in buckets.values())
        self.assertEqual(total, len(appointments))
        ids = [id(item) for items in buckets.values() for item in items]
        self.assertEqual(len(ids), len(set(ids)))

    def test_buckets_keep_input_order(self):
        appointments = [make_appointment(local(2026, 10, 25, hour)) for hour in (9, 10, 11)]

        buckets = categorize_appointments(appointments, NOW)

        self.assertEqual(buckets['future'], appointments)

    def test_now_in_utc_uses_local_day(self):
        """02:00 UTC on October 20 is still October 19 in Sao Paulo"""
        utc_now = datetime(2026, 10, 20, 2, 0, tzinfo=timezone.get_fixed_timezone(0))
        evening = make_appointment(local(2026, 10, 19, 22, 0))

        buckets = categorize_appointments([evening], utc_now)

        self.assertEqual(buckets['today'], [evening])

    def test_empty_input(self):
        self.assertEqual(categorize_appointments([], NOW), {'past': [], 'today': [], 'future': []})


class GroupIntoSectionsTest(SimpleTestCase):
    """Test grouping a bucket into day sections"""

    def setUp(self):
        self.appointments = [
            make_appointment(local(2026, 10, 30, 9)),
            make_appointment(local(2026, 10, 30, 14)),
            make_appointment(local(2026, 11, 2, 10)),
            make_appointment(local(2026, 11, 3, 10)),
            make_appointment(local(2026, 11, 3, 16)),
        ]

    def test_one_section_per_day_in_first_seen_order(self):
        sections = group_into_sections(self.appointments)

        self.assertEqual(
            [section.group_key for section in sections],
            ['2026-10-30', '2026-11-02', '2026-11-03']
        )
        self.assertEqual([len(section) for section in sections], [2, 1, 2])
        self.assertEqual(sections[0].items, self.appointments[:2])

    def test_flattening_sections_gives_back_the_bucket(self):
        sections = group_into_sections(self.appointments)

        flattened = [item for section in sections for item in section.items]
        self.assertEqual(flattened, self.appointments)

    def test_titles_follow_active_language(self):
        with translation.override('en'):
            sections = group_into_sections(self.appointments)

        self.assertEqual(sections[0].title, 'Friday, October 30')
        self.assertEqual(sections[0].month_label, 'October 2026')
        self.assertEqual(sections[1].month_label, 'November 2026')

    def test_month_header_only_when_month_changes(self):
        sections = group_into_sections(self.appointments)

        headers = [(show, section.month_key) for show, section in sections_with_month_headers(sections)]

        self.assertEqual(headers, [
            (True, '2026-10'),
            (True, '2026-11'),
            (False, '2026-11'),
        ])

    def test_past_tab_lists_most_recent_day_first(self):
        past = [
            make_appointment(local(2026, 9, 28, 9)),
            make_appointment(local(2026, 10, 1, 9)),
            make_appointment(local(2026, 10, 1, 11)),
        ]

        sections = get_bucket_sections(past, 'past', NOW)

        self.assertEqual([section.group_key for section in sections], ['2026-10-01', '2026-09-28'])
        self.assertEqual(sections[0].items, [past[2], past[1]])

    def test_today_and_future_tabs_are_chronological(self):
        appointments = [
            make_appointment(local(2026, 10, 19, 9)),
            make_appointment(local(2026, 10, 19, 17)),
            make_appointment(local(2026, 10, 21, 9)),
        ]

        today = get_bucket_sections(appointments, 'today', NOW)
        future = get_bucket_sections(appointments, 'future', NOW)

        self.assertEqual(today[0].items, appointments[:2])
        self.assertEqual(future[0].group_key, '2026-10-21')

    def test_unknown_tab_is_empty(self):
        self.assertEqual(get_bucket_sections(self.appointments, 'someday', NOW), [])


class AppointmentTagsTest(SimpleTestCase):
    """Test status template filters"""

    def test_status_label_and_color(self):
        rendered = Template(
            '{% load appointment_tags %}{{ status|status_label }} {{ status|status_color }}'
        ).render(Context({'status': 'completed'}))

        self.assertEqual(rendered, 'Completed #28a745')

    def test_unknown_status_passes_through(self):
        rendered = Template(
            '{% load appointment_tags %}{{ status|status_label }}'
        ).render(Context({'status': 'no_show'}))

        self.assertEqual(rendered, 'no_show')


class RecordFetchTest(TestCase):
    """Test the record fetch adapter"""

    def setUp(self):
        self.ana = Client.objects.create(name='Ana')
        self.bia = Client.objects.create(name='Bia')
        self.corte = Service.objects.create(name='Corte', price=Decimal('100.00'))
        self.escova = Service.objects.create(name='Escova', price=Decimal('50.00'))

        self.late = Appointment.objects.create(
            client=self.bia, service=self.escova, appointment_time=local(2026, 10, 10, 16)
        )
        self.early = Appointment.objects.create(
            client=self.ana, service=self.corte, appointment_time=local(2026, 10, 1, 9),
            status=Appointment.COMPLETED
        )
        self.middle = Appointment.objects.create(
            client=self.ana, service=self.escova, appointment_time=local(2026, 10, 5, 9),
            status=Appointment.CANCELLED
        )

    def test_appointments_are_ordered_by_time(self):
        self.assertEqual(fetch_appointments(), [self.early, self.middle, self.late])

    def test_window_is_inclusive(self):
        appointments = fetch_appointments(
            window_start=local(2026, 10, 1, 9),
            window_end=local(2026, 10, 5, 9),
        )

        self.assertEqual(appointments, [self.early, self.middle])

    def test_status_filter(self):
        self.assertEqual(fetch_appointments(status=Appointment.COMPLETED), [self.early])

    def test_client_and_service_are_joined(self):
        with self.assertNumQueries(1):
            appointments = fetch_appointments()
            names = [(a.client.name, a.service.name) for a in appointments]

        self.assertEqual(names[0], ('Ana', 'Corte'))

    def test_deleted_service_reads_as_none(self):
        self.corte.delete()

        appointment = fetch_appointments(status=Appointment.COMPLETED)[0]

        self.assertIsNone(appointment.service)
        self.assertIsNone(appointment.price)

    def test_database_error_becomes_fetch_error(self):
        with mock.patch.object(Appointment.objects, 'select_related', side_effect=DatabaseError('boom')):
            with self.assertRaises(FetchError) as raised:
                fetch_appointments()

        self.assertEqual(raised.exception.entity, 'appointments')
        self.assertIsInstance(raised.exception.original, DatabaseError)

    def test_clients_and_services_ordered_by_name(self):
        Client.objects.create(name='Aline')

        self.assertEqual([c.name for c in fetch_clients()], ['Aline', 'Ana', 'Bia'])
        self.assertEqual([s.name for s in fetch_services()], ['Corte', 'Escova'])


class AppointmentListViewTest(TestCase):
    """Test the agenda endpoint"""

    def setUp(self):
        self.user = get_user_model().objects.create_user(username='staff', password='secret-pass-123')
        client = Client.objects.create(name='Ana')
        service = Service.objects.create(name='Corte', price=Decimal('100.00'))
        for when in [
            local(2026, 10, 1, 9),
            local(2026, 10, 19, 9),
            local(2026, 10, 19, 18),
            local(2026, 10, 22, 9),
            local(2026, 11, 2, 9),
        ]:
            Appointment.objects.create(client=client, service=service, appointment_time=when)

    def test_requires_login(self):
        response = self.client.get(reverse('appointments:list'))

        self.assertEqual(response.status_code, 302)

    @mock.patch('appointments.views.get_local_now', return_value=NOW)
    def test_future_tab(self, mocked_now):
        self.client.force_login(self.user)

        response = self.client.get(reverse('appointments:list'), {'tab': 'future'})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['tab_counts'], {'past': 1, 'today': 2, 'future': 2})
        self.assertEqual(
            [(s['group_key'], s['show_month_header'], s['count']) for s in data['sections']],
            [('2026-10-22', True, 1), ('2026-11-02', True, 1)]
        )
        self.assertEqual(data['sections'][0]['items'][0]['client_name'], 'Ana')
        self.assertEqual(data['sections'][0]['items'][0]['price'], '100.00')

    @mock.patch('appointments.views.get_local_now', return_value=NOW)
    def test_today_tab(self, mocked_now):
        self.client.force_login(self.user)

        response = self.client.get(reverse('appointments:list'), {'tab': 'today'})

        sections = response.json()['sections']
        self.assertEqual(len(sections), 1)
        self.assertEqual([item['time_display'] for item in sections[0]['items']], ['09:00', '18:00'])

    @mock.patch('appointments.views.get_local_now', return_value=NOW)
    def test_appointments_are_categorized_once(self, mocked_now):
        self.client.force_login(self.user)

        with mock.patch('appointments.views.categorize_appointments', wraps=categorize_appointments) as categorize:
            response = self.client.get(reverse('appointments:list'), {'tab': 'past'})

        self.assertEqual(categorize.call_count, 1)
        self.assertEqual(response.json()['sections'][0]['group_key'], '2026-10-01')

    def test_unknown_tab(self):
        self.client.force_login(self.user)

        response = self.client.get(reverse('appointments:list'), {'tab': 'someday'})

        self.assertEqual(response.status_code, 400)

    def test_fetch_failure_returns_503(self):
        self.client.force_login(self.user)

        with mock.patch('appointments.views.fetch_appointments', side_effect=FetchError('appointments')):
            response = self.client.get(reverse('appointments:list'))

        self.assertEqual(response.status_code, 503)
