# appointments/views.py - Agenda listing split into past / today / future tabs
import logging

from django.contrib.auth.mixins import LoginRequiredMixin
from django.http import JsonResponse
from django.views import View

from core.exceptions import FetchError
from core.utils import get_local_now
from .categorization import BUCKETS, FUTURE, categorize_appointments, sections_for_bucket
from .records import fetch_appointments
from .utils import sections_to_list

logger = logging.getLogger(__name__)


class AppointmentListView(LoginRequiredMixin, View):
    """
    Every appointment, grouped by day for one tab

    Query params:
        tab: past, today or future (default future)

    Response includes the sections of the selected tab and the number of
    appointments in each tab.
    """

    def get(self, request, *args, **kwargs):
        tab = request.GET.get('tab', FUTURE)
        if tab not in BUCKETS:
            return JsonResponse({'error': f'Unknown tab: {tab}'}, status=400)

        try:
            appointments = fetch_appointments()
        except FetchError as e:
            logger.error(f"Agenda unavailable: {e}")
            return JsonResponse(
                {'error': 'Could not load appointments. Please try again.'},
                status=503
            )

        # Counts and sections share one categorization pass
        now = get_local_now()
        buckets = categorize_appointments(appointments, now)

        return JsonResponse({
            'tab': tab,
            'tab_counts': {bucket: len(items) for bucket, items in buckets.items()},
            'sections': sections_to_list(sections_for_bucket(buckets, tab)),
        })
