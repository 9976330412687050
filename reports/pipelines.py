# reports/pipelines.py - Reductions from appointment snapshots to report figures
"""
Analytics pipelines

Each function is a pure reduction over an already fetched list of
appointments (anything with status, appointment_time, client and service
attributes). None of them reads the database, the clock or another
pipeline's output, so they can run in any order or concurrently.

Rules shared by every pipeline:
- Only status 'completed' counts towards revenue
- A missing service counts as price 0; a missing service or client is left
  out of the rankings keyed by it
- Prices that are absent or not numbers count as 0
"""
import logging
from decimal import Decimal, InvalidOperation

from django.utils.formats import date_format

from appointments.models import Appointment
from core.exceptions import MalformedRecordError
from core.utils import to_local

logger = logging.getLogger(__name__)

ZERO = Decimal('0')

TRACKED_STATUSES = (Appointment.SCHEDULED, Appointment.COMPLETED, Appointment.CANCELLED)


def parse_price(value):
    """
    Read a stored price as a Decimal

    Raises:
        MalformedRecordError: If the value is missing, not a number or not finite
    """
    if value is None or isinstance(value, bool):
        raise MalformedRecordError('price', value)

    try:
        price = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise MalformedRecordError('price', value)

    if not price.is_finite():
        raise MalformedRecordError('price', value)

    return price


def coerce_price(value):
    """Price as a Decimal, or 0 when it cannot be read"""
    try:
        return parse_price(value)
    except MalformedRecordError as e:
        if value is not None:
            logger.debug(f"Counting price as 0: {e}")
        return ZERO


def service_price(appointment):
    service = getattr(appointment, 'service', None)
    if service is None:
        return ZERO
    return coerce_price(getattr(service, 'price', None))


def _completed(appointments):
    return [a for a in appointments if a.status == Appointment.COMPLETED]


def general_metrics(appointments):
    """
    Headline numbers for the period

    Returns:
        dict with total_appointments, completed_appointments, total_revenue,
        average_ticket and completion_rate (0-100)
    """
    total = len(appointments)
    completed = _completed(appointments)
    completed_count = len(completed)
    revenue = sum((service_price(a) for a in completed), ZERO)

    return {
        'total_appointments': total,
        'completed_appointments': completed_count,
        'total_revenue': revenue,
        'average_ticket': revenue / completed_count if completed_count > 0 else ZERO,
        'completion_rate': (completed_count / total) * 100 if total > 0 else 0.0,
    }


def top_services(appointments, limit=5):
    """
    Most performed services among completed appointments

    Sorted by count, highest first; ties keep the order in which the services
    were first seen.
    """
    by_service = {}

    for appointment in _completed(appointments):
        service = appointment.service
        if service is None:
            continue

        row = by_service.get(service.pk)
        if row is None:
            row = by_service[service.pk] = {
                'service_id': service.pk,
                'name': service.name,
                'count': 0,
                'revenue': ZERO,
            }
        row['count'] += 1
        row['revenue'] += service_price(appointment)

    ranked = sorted(by_service.values(), key=lambda row: row['count'], reverse=True)
    return ranked[:limit]


def top_clients(appointments):
    """
    Client rankings among completed appointments

    One pass builds visits and total spent per client; the same rows are then
    sorted twice. Neither ranking is truncated.

    Returns:
        Tuple of (by_visits, by_revenue)
    """
    by_client = {}

    for appointment in _completed(appointments):
        client = appointment.client
        if client is None:
            continue

        row = by_client.get(client.pk)
        if row is None:
            row = by_client[client.pk] = {
                'client_id': client.pk,
                'name': client.name,
                'visits': 0,
                'total_spent': ZERO,
            }
        row['visits'] += 1
        row['total_spent'] += service_price(appointment)

    rows = list(by_client.values())
    by_visits = sorted(rows, key=lambda row: row['visits'], reverse=True)
    by_revenue = sorted(rows, key=lambda row: row['total_spent'], reverse=True)
    return by_visits, by_revenue


def status_distribution(appointments):
    """Count per known status; other statuses are not counted anywhere"""
    counts = {status: 0 for status in TRACKED_STATUSES}

    for appointment in appointments:
        if appointment.status in counts:
            counts[appointment.status] += 1

    return counts


def daily_trend(appointments, days=7):
    """
    Appointments per local calendar day, for the most recent days

    Days appear in the order they are first met, which is chronological for
    input sorted by appointment_time; only the last `days` days are kept.
    """
    by_day = {}

    for appointment in appointments:
        local_date = to_local(appointment.appointment_time).date()

        row = by_day.get(local_date)
        if row is None:
            row = by_day[local_date] = {
                'date': local_date,
                'label': date_format(local_date, 'SHORT_DATE_FORMAT'),
                'total': 0,
                'completed': 0,
            }
        row['total'] += 1
        if appointment.status == Appointment.COMPLETED:
            row['completed'] += 1

    rows = list(by_day.values())
    if days <= 0:
        return []
    return rows[-days:]


def monthly_revenue(appointments):
    """Completed revenue per local calendar month, in first-seen order"""
    by_month = {}

    for appointment in _completed(appointments):
        local_dt = to_local(appointment.appointment_time)
        month_key = local_dt.strftime('%Y-%m')

        row = by_month.get(month_key)
        if row is None:
            row = by_month[month_key] = {
                'month': month_key,
                'label': date_format(local_dt, 'b'),
                'revenue': ZERO,
            }
        row['revenue'] += service_price(appointment)

    return list(by_month.values())
