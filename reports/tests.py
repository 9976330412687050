# reports/tests.py
"""
Unit tests for report periods, analytics pipelines and the summary
"""
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase
from django.template.loader import render_to_string
from django.urls import reverse
from django.utils import timezone, translation

from appointments.models import Appointment
from appointments.records import fetch_appointments as real_fetch_appointments
from clients.models import Client
from core.exceptions import FetchError, MalformedRecordError
from core.models import SystemSetting
from services.models import Service
from .coordinator import AnalyticsCoordinator, get_coordinator
from .periods import resolve_window, year_to_date_window
from .pipelines import (
    coerce_price,
    daily_trend,
    general_metrics,
    monthly_revenue,
    parse_price,
    status_distribution,
    top_clients,
    top_services,
)
from .summary import (
    SECTION_GENERAL,
    SECTION_MONTHLY,
    SECTION_TOP_CLIENTS,
    SECTION_TOP_SERVICES,
    AnalyticsSummary,
    compute_analytics_summary,
)


def local(*args):
    return timezone.make_aware(datetime(*args))


NOW = local(2026, 10, 19, 12, 0)


def make_appointment(when, status=Appointment.COMPLETED, client=None, service=None):
    return Appointment(appointment_time=when, status=status, client=client, service=service)


class ResolveWindowTest(SimpleTestCase):
    """Test period to time window resolution"""

    def test_week_is_last_seven_days(self):
        window = resolve_window('week', NOW)

        self.assertEqual(window.start, NOW - timedelta(days=7))
        self.assertEqual(window.end, NOW)

    def test_month_runs_from_first_to_last_day_midnight(self):
        window = resolve_window('month', NOW)

        self.assertEqual(window.start, local(2026, 10, 1))
        self.assertEqual(window.end, local(2026, 10, 31))

    def test_month_end_in_leap_february(self):
        window = resolve_window('month', local(2028, 2, 10, 9, 0))

        self.assertEqual(window.end, local(2028, 2, 29))

    def test_year_runs_from_january_first_to_december_31(self):
        window = resolve_window('year', NOW)

        self.assertEqual(window.start, local(2026, 1, 1))
        self.assertEqual(window.end, local(2026, 12, 31))

    def test_unknown_period_starts_at_month_start_and_ends_now(self):
        window = resolve_window('quarter', NOW)

        self.assertEqual(window.start, local(2026, 10, 1))
        self.assertEqual(window.end, NOW)

    def test_month_uses_local_calendar(self):
        """01:00 UTC on November 1 is still October 31 in Sao Paulo"""
        utc_now = datetime(2026, 11, 1, 1, 0, tzinfo=dt_timezone.utc)

        window = resolve_window('month', utc_now)

        self.assertEqual(window.start, local(2026, 10, 1))

    def test_windows_are_ordered_and_idempotent(self):
        for period in ['week', 'month', 'year', 'anything']:
            first = resolve_window(period, NOW)
            second = resolve_window(period, NOW)

            self.assertEqual(first, second)
            self.assertLessEqual(first.start, first.end)

    def test_month_window_ends_at_last_midnight(self):
        window = resolve_window('month', NOW)

        self.assertLessEqual(window.start, local(2026, 10, 1))
        self.assertLessEqual(local(2026, 10, 31), window.end)
        self.assertLess(window.end, local(2026, 10, 31, 0, 0, 1))

    def test_year_to_date_window(self):
        window = year_to_date_window(NOW)

        self.assertEqual(window.start, local(2026, 1, 1))
        self.assertEqual(window.end, NOW)


class PriceCoercionTest(SimpleTestCase):
    """Test reading prices from records"""

    def test_parse_price_accepts_numbers_and_numeric_strings(self):
        self.assertEqual(parse_price(Decimal('12.50')), Decimal('12.50'))
        self.assertEqual(parse_price('80'), Decimal('80'))
        self.assertEqual(parse_price(45.5), Decimal('45.5'))

    def test_parse_price_rejects_malformed_values(self):
        for value in [None, 'abc', '', 'NaN', 'Infinity', True]:
            with self.assertRaises(MalformedRecordError):
                parse_price(value)

    def test_coerce_price_turns_malformed_values_into_zero(self):
        for value in [None, 'abc', 'NaN', float('nan')]:
            self.assertEqual(coerce_price(value), Decimal('0'))


class AnalyticsPipelinesTest(SimpleTestCase):
    """Test the analytics reductions over in-memory appointments"""

    def setUp(self):
        self.service_a = Service(pk=1, name='Corte', price=Decimal('100.00'))
        self.service_b = Service(pk=2, name='Escova', price=Decimal('50.00'))
        self.ana = Client(pk=1, name='Ana')
        self.bia = Client(pk=2, name='Bia')

    def test_empty_input(self):
        metrics = general_metrics([])

        self.assertEqual(metrics['total_appointments'], 0)
        self.assertEqual(metrics['completed_appointments'], 0)
        self.assertEqual(metrics['total_revenue'], Decimal('0'))
        self.assertEqual(metrics['average_ticket'], Decimal('0'))
        self.assertEqual(metrics['completion_rate'], 0)
        self.assertEqual(top_services([]), [])
        self.assertEqual(top_clients([]), ([], []))
        self.assertEqual(status_distribution([]), {'scheduled': 0, 'completed': 0, 'cancelled': 0})
        self.assertEqual(daily_trend([]), [])
        self.assertEqual(monthly_revenue([]), [])

    def test_general_metrics(self):
        appointments = [
            make_appointment(local(2026, 10, 1, 9), service=self.service_a),
            make_appointment(local(2026, 10, 2, 9), service=self.service_b),
            make_appointment(local(2026, 10, 3, 9), status=Appointment.SCHEDULED, service=self.service_a),
            make_appointment(local(2026, 10, 4, 9), status=Appointment.CANCELLED, service=self.service_a),
        ]

        metrics = general_metrics(appointments)

        self.assertEqual(metrics['total_appointments'], 4)
        self.assertEqual(metrics['completed_appointments'], 2)
        self.assertEqual(metrics['total_revenue'], Decimal('150.00'))
        self.assertEqual(metrics['average_ticket'], Decimal('150.00') / 2)
        self.assertEqual(metrics['completion_rate'], 50.0)

    def test_completion_rate_stays_within_bounds(self):
        for completed, total in [(0, 3), (1, 3), (3, 3)]:
            appointments = [
                make_appointment(
                    local(2026, 10, 1, 9 + i),
                    status=Appointment.COMPLETED if i < completed else Appointment.SCHEDULED,
                    service=self.service_a,
                )
                for i in range(total)
            ]

            rate = general_metrics(appointments)['completion_rate']

            self.assertGreaterEqual(rate, 0)
            self.assertLessEqual(rate, 100)

    def test_top_services_ranked_by_count(self):
        appointments = (
            [make_appointment(local(2026, 10, 1, 9 + i), service=self.service_b) for i in range(2)]
            + [make_appointment(local(2026, 10, 2, 9 + i), service=self.service_a) for i in range(3)]
        )

        ranking = top_services(appointments)

        self.assertEqual(ranking, [
            {'service_id': 1, 'name': 'Corte', 'count': 3, 'revenue': Decimal('300.00')},
            {'service_id': 2, 'name': 'Escova', 'count': 2, 'revenue': Decimal('100.00')},
        ])

    def test_top_services_limited_to_five_and_ties_keep_first_seen_order(self):
        services = [Service(pk=pk, name=f'Service {pk}', price=Decimal('10')) for pk in range(1, 8)]
        appointments = [make_appointment(local(2026, 10, 1, 8 + i), service=s) for i, s in enumerate(services)]
        appointments.append(make_appointment(local(2026, 10, 2, 9), service=services[6]))

        ranking = top_services(appointments)

        self.assertEqual(len(ranking), 5)
        self.assertEqual([row['service_id'] for row in ranking], [7, 1, 2, 3, 4])
        counts = [row['count'] for row in ranking]
        self.assertEqual(counts, sorted(counts, reverse=True))

    def test_top_services_ignores_non_completed(self):
        appointments = [
            make_appointment(local(2026, 10, 1, 9), status=Appointment.SCHEDULED, service=self.service_a),
            make_appointment(local(2026, 10, 1, 10), service=self.service_b),
        ]

        self.assertEqual([row['name'] for row in top_services(appointments)], ['Escova'])

    def test_top_clients_builds_two_rankings(self):
        appointments = [
            make_appointment(local(2026, 10, 1, 9), client=self.ana, service=self.service_b),
            make_appointment(local(2026, 10, 2, 9), client=self.ana, service=self.service_b),
            make_appointment(local(2026, 10, 3, 9), client=self.bia, service=self.service_a),
            make_appointment(local(2026, 10, 3, 10), client=self.bia, service=Service(pk=3, name='Tintura', price=Decimal('200'))),
        ]
        appointments.append(make_appointment(local(2026, 10, 4, 9), client=self.ana, service=self.service_b))

        by_visits, by_revenue = top_clients(appointments)

        self.assertEqual([row['name'] for row in by_visits], ['Ana', 'Bia'])
        self.assertEqual([row['name'] for row in by_revenue], ['Bia', 'Ana'])
        self.assertEqual(by_visits[0]['visits'], 3)
        self.assertEqual(by_visits[0]['total_spent'], Decimal('150.00'))
        self.assertEqual(by_revenue[0]['total_spent'], Decimal('300.00'))

    def test_missing_references_are_left_out_of_rankings(self):
        appointments = [
            make_appointment(local(2026, 10, 1, 9), client=self.ana, service=None),
            make_appointment(local(2026, 10, 1, 10), client=None, service=self.service_a),
        ]

        metrics = general_metrics(appointments)
        by_visits, _ = top_clients(appointments)

        self.assertEqual(metrics['completed_appointments'], 2)
        self.assertEqual(metrics['total_revenue'], Decimal('100.00'))
        self.assertEqual([row['name'] for row in top_services(appointments)], ['Corte'])
        self.assertEqual(by_visits, [
            {'client_id': 1, 'name': 'Ana', 'visits': 1, 'total_spent': Decimal('0')},
        ])

    def test_malformed_prices_count_as_zero(self):
        broken = Service(pk=9, name='Quebrado', price='abc')
        appointments = [
            make_appointment(local(2026, 10, 1, 9), client=self.ana, service=broken),
            make_appointment(local(2026, 10, 1, 10), client=self.ana, service=self.service_b),
        ]

        metrics = general_metrics(appointments)

        self.assertEqual(metrics['total_revenue'], Decimal('50.00'))
        self.assertEqual(metrics['average_ticket'], Decimal('25.00'))
        self.assertEqual(top_services(appointments)[0]['revenue'], Decimal('0'))

    def test_status_distribution_drops_unknown_statuses(self):
        appointments = [
            make_appointment(local(2026, 10, 1, 9), status=Appointment.SCHEDULED),
            make_appointment(local(2026, 10, 1, 10), status=Appointment.COMPLETED),
            make_appointment(local(2026, 10, 1, 11), status=Appointment.CANCELLED),
            make_appointment(local(2026, 10, 1, 12), status='no_show'),
        ]

        self.assertEqual(status_distribution(appointments), {'scheduled': 1, 'completed': 1, 'cancelled': 1})

    def test_daily_trend_keeps_last_seven_days(self):
        appointments = []
        for day in range(1, 11):
            appointments.append(make_appointment(local(2026, 10, day, 9)))
            appointments.append(make_appointment(local(2026, 10, day, 15), status=Appointment.SCHEDULED))

        trend = daily_trend(appointments)

        self.assertEqual(len(trend), 7)
        self.assertEqual([row['date'].day for row in trend], [4, 5, 6, 7, 8, 9, 10])
        for row in trend:
            self.assertEqual(row['total'], 2)
            self.assertEqual(row['completed'], 1)
            self.assertLessEqual(row['completed'], row['total'])

    def test_daily_trend_groups_by_local_day(self):
        appointments = [
            make_appointment(local(2026, 10, 1, 23, 30)),
            # Same UTC date as the one above, next local day
            make_appointment(datetime(2026, 10, 2, 3, 30, tzinfo=dt_timezone.utc)),
            make_appointment(local(2026, 10, 2, 10, 0)),
        ]

        with translation.override('en'):
            trend = daily_trend(appointments)

        self.assertEqual([(row['label'], row['total']) for row in trend], [('10/01/2026', 1), ('10/02/2026', 2)])

    def test_monthly_revenue_in_first_seen_order(self):
        appointments = [
            make_appointment(local(2026, 1, 15, 9), service=self.service_a),
            make_appointment(local(2026, 1, 20, 9), service=self.service_b),
            make_appointment(local(2026, 2, 3, 9), status=Appointment.SCHEDULED, service=self.service_a),
            make_appointment(local(2026, 3, 3, 9), service=self.service_b),
        ]

        with translation.override('en'):
            revenue = monthly_revenue(appointments)

        self.assertEqual(revenue, [
            {'month': '2026-01', 'label': 'jan', 'revenue': Decimal('150.00')},
            {'month': '2026-03', 'label': 'mar', 'revenue': Decimal('50.00')},
        ])


class ComputeAnalyticsSummaryTest(TestCase):
    """Test the full reports pass against the database"""

    def setUp(self):
        self.corte = Service.objects.create(name='Corte', price=Decimal('100.00'))
        self.escova = Service.objects.create(name='Escova', price=Decimal('50.00'))
        self.ana = Client.objects.create(name='Ana')
        self.bia = Client.objects.create(name='Bia')

    def _create(self, when, status=Appointment.COMPLETED, client=None, service=None):
        return Appointment.objects.create(
            appointment_time=when,
            status=status,
            client=client,
            service=service,
        )

    def _create_october(self):
        for day in (5, 6, 7):
            self._create(local(2026, 10, day, 10), client=self.ana, service=self.corte)
        for day in (8, 9):
            self._create(local(2026, 10, day, 10), client=self.bia, service=self.escova)
        self._create(local(2026, 10, 10, 10), status=Appointment.CANCELLED, client=self.bia, service=self.escova)
        self._create(local(2026, 10, 20, 10), status=Appointment.SCHEDULED, client=self.ana, service=self.corte)
        # Outside the month, inside the year to date
        self._create(local(2026, 3, 3, 10), client=self.ana, service=self.corte)

    def test_empty_database_gives_zero_summary(self):
        summary = compute_analytics_summary('month', now=NOW)

        self.assertEqual(summary.total_appointments, 0)
        self.assertEqual(summary.total_revenue, Decimal('0'))
        self.assertEqual(summary.average_ticket, Decimal('0'))
        self.assertEqual(summary.completion_rate, 0)
        self.assertEqual(summary.top_services, [])
        self.assertEqual(summary.top_clients_by_visits, [])
        self.assertEqual(summary.top_clients_by_revenue, [])
        self.assertEqual(summary.status_distribution, {'scheduled': 0, 'completed': 0, 'cancelled': 0})
        self.assertEqual(summary.daily_trend, [])
        self.assertEqual(summary.monthly_revenue, [])
        self.assertFalse(summary.is_partial)

    def test_month_summary(self):
        self._create_october()

        summary = compute_analytics_summary('month', now=NOW)

        self.assertEqual(summary.total_appointments, 7)
        self.assertEqual(summary.completed_appointments, 5)
        self.assertEqual(summary.total_revenue, Decimal('400.00'))
        self.assertEqual(summary.average_ticket, Decimal('80.00'))
        self.assertAlmostEqual(summary.completion_rate, 5 / 7 * 100)
        self.assertEqual(
            [(row['name'], row['count'], row['revenue']) for row in summary.top_services],
            [('Corte', 3, Decimal('300.00')), ('Escova', 2, Decimal('100.00'))]
        )
        self.assertEqual([row['name'] for row in summary.top_clients_by_revenue], ['Ana', 'Bia'])
        self.assertEqual(summary.status_distribution, {'scheduled': 1, 'completed': 5, 'cancelled': 1})
        self.assertEqual([row['date'].day for row in summary.daily_trend], [5, 6, 7, 8, 9, 10, 20])
        self.assertEqual(
            [(row['month'], row['revenue']) for row in summary.monthly_revenue],
            [('2026-03', Decimal('100.00')), ('2026-10', Decimal('400.00'))]
        )

    def test_week_summary_only_counts_last_seven_days(self):
        self._create_october()
        self._create(local(2026, 10, 18, 10), client=self.ana, service=self.escova)

        summary = compute_analytics_summary('week', now=NOW)

        self.assertEqual(summary.total_appointments, 1)
        self.assertEqual(summary.total_revenue, Decimal('50.00'))

    def test_parallel_and_sequential_runs_match(self):
        self._create_october()

        sequential = compute_analytics_summary('month', now=NOW)
        parallel = compute_analytics_summary('month', now=NOW, parallel=True)

        self.assertEqual(sequential.as_dict(), parallel.as_dict())

    def test_failed_fetch_marks_only_its_sections(self):
        self._create_october()

        def fetch_without_completed(window_start=None, window_end=None, status=None):
            if status == Appointment.COMPLETED:
                raise FetchError('appointments')
            return real_fetch_appointments(window_start=window_start, window_end=window_end, status=status)

        with mock.patch('reports.summary.fetch_appointments', side_effect=fetch_without_completed):
            summary = compute_analytics_summary('month', now=NOW)

        self.assertTrue(summary.is_partial)
        self.assertEqual(
            summary.failed_sections,
            [SECTION_TOP_SERVICES, SECTION_TOP_CLIENTS, SECTION_MONTHLY]
        )
        self.assertNotIn(SECTION_GENERAL, summary.failed_sections)
        self.assertEqual(summary.total_appointments, 7)
        self.assertEqual(summary.top_services, [])
        self.assertEqual(summary.monthly_revenue, [])

    def test_top_services_limit_from_settings(self):
        self._create_october()
        SystemSetting.set_setting('reports_top_services_limit', 1)

        summary = compute_analytics_summary('month', now=NOW)

        self.assertEqual([row['name'] for row in summary.top_services], ['Corte'])


class AnalyticsCoordinatorTest(SimpleTestCase):
    """Test that only the latest requested summary is kept"""

    def _summary(self, period='month'):
        return AnalyticsSummary(period=period, window=resolve_window(period, NOW), generated_at=NOW)

    def test_stale_ticket_is_discarded(self):
        coordinator = AnalyticsCoordinator()
        older = coordinator.begin()
        newer = coordinator.begin()

        self.assertFalse(coordinator.publish(older, self._summary('week')))
        self.assertIsNone(coordinator.latest)

        newer_summary = self._summary('year')
        self.assertTrue(coordinator.publish(newer, newer_summary))
        self.assertIs(coordinator.latest, newer_summary)
        self.assertFalse(coordinator.publish(older, self._summary('week')))
        self.assertIs(coordinator.latest, newer_summary)

    def test_refresh_publishes_summary(self):
        coordinator = AnalyticsCoordinator()
        summary = self._summary()

        with mock.patch('reports.coordinator.compute_analytics_summary', return_value=summary):
            self.assertIs(coordinator.refresh('month', now=NOW), summary)

        self.assertIs(coordinator.latest, summary)

    def test_refresh_superseded_mid_pass_returns_none(self):
        coordinator = AnalyticsCoordinator()

        def newer_request_arrives(period, now=None, parallel=False):
            coordinator.begin()
            return self._summary(period)

        with mock.patch('reports.coordinator.compute_analytics_summary', side_effect=newer_request_arrives):
            self.assertIsNone(coordinator.refresh('week', now=NOW))

        self.assertIsNone(coordinator.latest)

    def test_get_coordinator_is_shared_per_key(self):
        self.assertIs(get_coordinator('user-1'), get_coordinator('user-1'))
        self.assertIsNot(get_coordinator('user-1'), get_coordinator('user-2'))


class ReportsViewTest(TestCase):
    """Test the reports endpoints"""

    def setUp(self):
        self.user = get_user_model().objects.create_user(username='staff', password='secret-pass-123')
        service = Service.objects.create(name='Corte', price=Decimal('100.00'))
        client = Client.objects.create(name='Ana')
        Appointment.objects.create(
            appointment_time=local(2026, 10, 5, 10),
            status=Appointment.COMPLETED,
            client=client,
            service=service,
        )

    def test_requires_login(self):
        response = self.client.get(reverse('reports:dashboard'))

        self.assertEqual(response.status_code, 302)

    @mock.patch('reports.summary.get_local_now', return_value=NOW)
    def test_dashboard_returns_summary_json(self, mocked_now):
        self.client.force_login(self.user)

        response = self.client.get(reverse('reports:dashboard'), {'period': 'month'})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['period'], 'month')
        self.assertEqual(data['total_appointments'], 1)
        self.assertEqual(Decimal(data['total_revenue']), Decimal('100'))
        self.assertEqual(data['top_services'][0]['name'], 'Corte')
        self.assertFalse(data['is_partial'])
        self.assertEqual([choice['value'] for choice in data['period_choices']], ['week', 'month', 'year'])

    @mock.patch('reports.summary.get_local_now', return_value=NOW)
    def test_dashboard_reports_failed_sections(self, mocked_now):
        self.client.force_login(self.user)

        with mock.patch('reports.summary.fetch_appointments', side_effect=FetchError('appointments')):
            response = self.client.get(reverse('reports:dashboard'), {'period': 'week'})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data['is_partial'])
        self.assertEqual(len(data['failed_sections']), 6)
        self.assertEqual(data['total_appointments'], 0)

    @mock.patch('reports.summary.get_local_now', return_value=NOW)
    def test_export_pdf(self, mocked_now):
        self.client.force_login(self.user)

        response = self.client.get(reverse('reports:export_pdf'), {'period': 'year'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertTrue(response.content.startswith(b'%PDF'))

    @mock.patch('reports.summary.get_local_now', return_value=NOW)
    def test_dashboard_with_settings_store_down(self, mocked_now):
        self.client.force_login(self.user)

        with mock.patch.object(SystemSetting.objects, 'get', side_effect=DatabaseError('store down')), \
                mock.patch('reports.summary.fetch_appointments', side_effect=FetchError('appointments')):
            response = self.client.get(reverse('reports:dashboard'))

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['period'], 'month')
        self.assertEqual(len(data['failed_sections']), 6)

    def test_pdf_template_lists_both_client_rankings(self):
        summary = AnalyticsSummary(period='month', window=resolve_window('month', NOW), generated_at=NOW)
        summary.top_clients_by_visits = [
            {'client_id': 1, 'name': 'Ana', 'visits': 3, 'total_spent': Decimal('150.00')},
            {'client_id': 2, 'name': 'Bia', 'visits': 1, 'total_spent': Decimal('400.00')},
        ]
        summary.top_clients_by_revenue = list(reversed(summary.top_clients_by_visits))

        with translation.override('en'):
            html = render_to_string('reports/reports_pdf.html', {'summary': summary, 'business_name': 'Agenda'})

        self.assertIn('Top clients by visits', html)
        revenue_table = html.split('Top clients by revenue', 1)[1]
        self.assertLess(revenue_table.index('Bia'), revenue_table.index('Ana'))
        self.assertIn('400.00', revenue_table)
