# services/views.py
import logging

from django.contrib.auth.decorators import login_required
from django.http import JsonResponse

from appointments.records import fetch_services
from core.exceptions import FetchError

logger = logging.getLogger(__name__)


@login_required
def service_list_api(request):
    """All services ordered by name"""
    try:
        services = fetch_services()
    except FetchError as e:
        logger.error(f"Service list unavailable: {e}")
        return JsonResponse({'error': 'Could not load services. Please try again.'}, status=503)

    return JsonResponse({
        'services': [
            {
                'id': service.pk,
                'name': service.name,
                'price': service.price,
                'duration_minutes': service.duration_minutes,
                'duration_display': service.duration_display,
            }
            for service in services
        ]
    })
