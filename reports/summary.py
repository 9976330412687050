# reports/summary.py - Builds the analytics summary shown on the reports dashboard
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from datetime import datetime
from decimal import Decimal
from functools import partial

from django.conf import settings
from django.db import DatabaseError
from django.utils import translation

from appointments.models import Appointment
from appointments.records import fetch_appointments
from core.exceptions import FetchError
from core.models import SystemSetting
from core.utils import get_local_now
from .periods import TimeWindow, resolve_window, year_to_date_window
from .pipelines import (
    TRACKED_STATUSES,
    daily_trend,
    general_metrics,
    monthly_revenue,
    status_distribution,
    top_clients,
    top_services,
)

logger = logging.getLogger(__name__)

SECTION_GENERAL = 'general_metrics'
SECTION_TOP_SERVICES = 'top_services'
SECTION_TOP_CLIENTS = 'top_clients'
SECTION_STATUS = 'status_distribution'
SECTION_TREND = 'daily_trend'
SECTION_MONTHLY = 'monthly_revenue'

SECTIONS = (
    SECTION_GENERAL,
    SECTION_TOP_SERVICES,
    SECTION_TOP_CLIENTS,
    SECTION_STATUS,
    SECTION_TREND,
    SECTION_MONTHLY,
)


@dataclass
class AnalyticsSummary:
    """
    Result container for one reports pass

    Built fresh on every pass and never stored. Sections listed in
    failed_sections could not be fetched and hold their zero values, which
    is different from a period with no activity.
    """
    period: str
    window: TimeWindow
    generated_at: datetime
    total_appointments: int = 0
    completed_appointments: int = 0
    total_revenue: Decimal = Decimal('0')
    average_ticket: Decimal = Decimal('0')
    completion_rate: float = 0.0
    top_services: list = field(default_factory=list)
    top_clients_by_visits: list = field(default_factory=list)
    top_clients_by_revenue: list = field(default_factory=list)
    status_distribution: dict = field(default_factory=lambda: {status: 0 for status in TRACKED_STATUSES})
    daily_trend: list = field(default_factory=list)
    monthly_revenue: list = field(default_factory=list)
    failed_sections: list = field(default_factory=list)

    @property
    def is_partial(self):
        return bool(self.failed_sections)

    def as_dict(self):
        data = asdict(self)
        data['is_partial'] = self.is_partial
        return data


def _apply_general(summary, metrics):
    for key, value in metrics.items():
        setattr(summary, key, value)


def _apply_top_clients(summary, rankings):
    summary.top_clients_by_visits, summary.top_clients_by_revenue = rankings


def _apply_attribute(name):
    def apply(summary, result):
        setattr(summary, name, result)
    return apply


SECTION_APPLIERS = {
    SECTION_GENERAL: _apply_general,
    SECTION_TOP_SERVICES: _apply_attribute('top_services'),
    SECTION_TOP_CLIENTS: _apply_top_clients,
    SECTION_STATUS: _apply_attribute('status_distribution'),
    SECTION_TREND: _apply_attribute('daily_trend'),
    SECTION_MONTHLY: _apply_attribute('monthly_revenue'),
}


def get_report_limits():
    """
    Ranking and trend sizes from SystemSetting, falling back to settings.py

    Returns:
        Tuple of (top_services_limit, trend_days)
    """
    top_services_limit = settings.REPORTS_TOP_SERVICES_LIMIT
    trend_days = settings.REPORTS_TREND_DAYS

    try:
        top_services_limit = SystemSetting.get_int_setting('reports_top_services_limit', top_services_limit)
        trend_days = SystemSetting.get_int_setting('reports_trend_days', trend_days)
    except DatabaseError as e:
        logger.error(f"Could not read report settings, using defaults: {e}")

    return top_services_limit, trend_days


def _build_jobs(window, year_window, top_services_limit, trend_days):
    """(section, window, status filter, reducer) for every section"""
    completed = Appointment.COMPLETED
    return [
        (SECTION_GENERAL, window, None, general_metrics),
        (SECTION_TOP_SERVICES, window, completed, partial(top_services, limit=top_services_limit)),
        (SECTION_TOP_CLIENTS, window, completed, top_clients),
        (SECTION_STATUS, window, None, status_distribution),
        (SECTION_TREND, window, None, partial(daily_trend, days=trend_days)),
        # Monthly revenue always covers the year to date, whatever the period
        (SECTION_MONTHLY, year_window, completed, monthly_revenue),
    ]


def _reduce(language, reducer, records):
    # Labels are translated, and the active language is per thread
    with translation.override(language):
        return reducer(records)


def _run_reducers(fetched, parallel):
    language = translation.get_language()

    if parallel and len(fetched) > 1:
        with ThreadPoolExecutor(max_workers=len(fetched)) as executor:
            futures = [
                (section, executor.submit(_reduce, language, reducer, records))
                for section, reducer, records in fetched
            ]
            return [(section, future.result()) for section, future in futures]

    return [(section, reducer(records)) for section, reducer, records in fetched]


def compute_analytics_summary(period, now=None, parallel=False):
    """
    Fetch the records for a period and run every analytics pipeline

    Args:
        period: 'week', 'month' or 'year'
        now: Instant the pass is computed for; read once from the clock when
            omitted and shared by every section
        parallel: Run the reductions on a thread pool

    Returns:
        AnalyticsSummary. A section whose fetch fails is listed in
        failed_sections and the other sections are still computed.
    """
    if now is None:
        now = get_local_now()

    window = resolve_window(period, now)
    top_services_limit, trend_days = get_report_limits()
    jobs = _build_jobs(window, year_to_date_window(now), top_services_limit, trend_days)

    summary = AnalyticsSummary(period=period, window=window, generated_at=now)

    fetched = []
    for section, job_window, status, reducer in jobs:
        try:
            records = fetch_appointments(
                window_start=job_window.start,
                window_end=job_window.end,
                status=status,
            )
        except FetchError as e:
            logger.error(f"Report section '{section}' unavailable for period {period}: {e}")
            summary.failed_sections.append(section)
            continue
        fetched.append((section, reducer, records))

    for section, result in _run_reducers(fetched, parallel):
        SECTION_APPLIERS[section](summary, result)

    logger.info(
        f"Computed {period} analytics for {window.start:%Y-%m-%d} to {window.end:%Y-%m-%d}"
        + (f" (failed sections: {', '.join(summary.failed_sections)})" if summary.is_partial else "")
    )
    return summary
