# appointments/records.py - Read access to clients, services and appointments
"""
Record fetch adapter used by the agenda and the reports.

Every function returns a fully evaluated list, so callers work on a snapshot
and never trigger further queries while aggregating. Storage failures are
re-raised as FetchError.
"""
import logging

from django.db import DatabaseError

from core.exceptions import FetchError
from clients.models import Client
from services.models import Service
from .models import Appointment

logger = logging.getLogger(__name__)


def fetch_appointments(window_start=None, window_end=None, status=None):
    """
    Fetch appointments with their client and service joined

    Args:
        window_start: Inclusive lower bound on appointment_time (optional)
        window_end: Inclusive upper bound on appointment_time (optional)
        status: Only appointments with this status (optional)

    Returns:
        List of Appointment ordered by appointment_time ascending. A deleted
        client or service reads as None on the appointment.

    Raises:
        FetchError: If the database query fails
    """
    try:
        queryset = Appointment.objects.select_related('client', 'service')

        if window_start is not None:
            queryset = queryset.filter(appointment_time__gte=window_start)
        if window_end is not None:
            queryset = queryset.filter(appointment_time__lte=window_end)
        if status:
            queryset = queryset.filter(status=status)

        return list(queryset.order_by('appointment_time', 'id'))
    except DatabaseError as e:
        logger.error(
            f"Error fetching appointments (start={window_start}, end={window_end}, status={status}): {e}"
        )
        raise FetchError('appointments', e) from e


def fetch_clients():
    """Fetch all clients ordered by name"""
    try:
        return list(Client.objects.order_by('name', 'id'))
    except DatabaseError as e:
        logger.error(f"Error fetching clients: {e}")
        raise FetchError('clients', e) from e


def fetch_services():
    """Fetch all services ordered by name"""
    try:
        return list(Service.objects.order_by('name', 'id'))
    except DatabaseError as e:
        logger.error(f"Error fetching services: {e}")
        raise FetchError('services', e) from e
