# reports/periods.py
import calendar
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone as dt_timezone

from core.utils import local_midnight, to_local

logger = logging.getLogger(__name__)

PERIOD_WEEK = 'week'
PERIOD_MONTH = 'month'
PERIOD_YEAR = 'year'

PERIOD_CHOICES = [
    (PERIOD_WEEK, 'Week'),
    (PERIOD_MONTH, 'Month'),
    (PERIOD_YEAR, 'Year'),
]

DEFAULT_PERIOD = PERIOD_MONTH


@dataclass(frozen=True)
class TimeWindow:
    """Reporting window; both bounds are inclusive"""
    start: datetime
    end: datetime


def resolve_window(period, now):
    """
    Calculate the start and end instants for a reporting period

    Args:
        period: 'week', 'month' or 'year'
        now: Current instant, captured once by the caller

    Returns:
        TimeWindow with both bounds inclusive

    Notes:
        - week is the last 7x24 hours, not a calendar week
        - month and year end at local midnight of their last day, so
          appointments later on that last day fall outside the window
        - any other selector starts at the beginning of the month but ends
          at now
    """
    now = to_local(now)
    today = now.date()
    month_start = local_midnight(today.replace(day=1))

    if period == PERIOD_WEEK:
        # Subtract in UTC so a DST change inside the week still gives exactly 7x24h
        start = to_local(now.astimezone(dt_timezone.utc) - timedelta(days=7))
        return TimeWindow(start=start, end=now)

    if period == PERIOD_MONTH:
        last_day = calendar.monthrange(today.year, today.month)[1]
        return TimeWindow(
            start=month_start,
            end=local_midnight(today.replace(day=last_day)),
        )

    if period == PERIOD_YEAR:
        return TimeWindow(
            start=local_midnight(date(today.year, 1, 1)),
            end=local_midnight(date(today.year, 12, 31)),
        )

    logger.warning(f"Unknown report period {period!r}; using month start to now")
    return TimeWindow(start=month_start, end=now)


def year_to_date_window(now):
    """January 1 (local midnight) through now"""
    now = to_local(now)
    return TimeWindow(start=local_midnight(date(now.year, 1, 1)), end=now)
