"""
Timezone utility functions for consistent date/time handling across the application.

Calendar boundaries (midnight, first of the month, January 1) are always taken
in the configured TIME_ZONE, never in UTC.
"""
from datetime import datetime, time, timedelta

from django.utils import timezone


def get_local_now():
    """
    Get current datetime in the configured local timezone.

    Returns:
        datetime: Current aware datetime localized to settings.TIME_ZONE
    """
    return timezone.localtime(timezone.now())


def to_local(dt):
    """
    Convert a datetime to the local timezone.

    Naive datetimes are assumed to already be local wall-clock time.
    """
    if dt is None:
        return None

    if timezone.is_naive(dt):
        dt = timezone.make_aware(dt)

    return timezone.localtime(dt)


def get_local_date(dt):
    """Calendar date of dt in the local timezone."""
    if dt is None:
        return None
    return to_local(dt).date()


def local_midnight(day):
    """Aware datetime for 00:00 local time on the given date."""
    return timezone.make_aware(datetime.combine(day, time.min))


def local_day_bounds(dt):
    """
    Start of dt's local calendar day and start of the following day.

    Returns:
        Tuple of (day_start, next_day_start), both aware
    """
    day = get_local_date(dt)
    return local_midnight(day), local_midnight(day + timedelta(days=1))
