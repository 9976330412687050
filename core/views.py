# core/views.py
import logging

from django.contrib.auth.mixins import LoginRequiredMixin
from django.http import JsonResponse
from django.views import View

from appointments.categorization import TODAY, categorize_appointments
from appointments.records import fetch_appointments
from appointments.utils import appointment_to_dict
from .exceptions import FetchError
from .utils import get_local_now, local_day_bounds

logger = logging.getLogger(__name__)


class DashboardView(LoginRequiredMixin, View):
    """Today's appointments, earliest first"""

    def get(self, request, *args, **kwargs):
        now = get_local_now()
        today_start, today_end = local_day_bounds(now)

        try:
            # The fetch window is inclusive, so the categorizer drops anything at next midnight
            appointments = fetch_appointments(window_start=today_start, window_end=today_end)
        except FetchError as e:
            logger.error(f"Dashboard unavailable: {e}")
            return JsonResponse(
                {'error': 'Could not load today\'s appointments. Please try again.'},
                status=503
            )

        todays = categorize_appointments(appointments, now)[TODAY]

        return JsonResponse({
            'date': now.date(),
            'appointments': [appointment_to_dict(appointment) for appointment in todays],
        })
