# clients/views.py
import logging

from django.contrib.auth.decorators import login_required
from django.http import JsonResponse

from appointments.records import fetch_clients
from core.exceptions import FetchError

logger = logging.getLogger(__name__)


@login_required
def client_list_api(request):
    """All clients ordered by name"""
    try:
        clients = fetch_clients()
    except FetchError as e:
        logger.error(f"Client list unavailable: {e}")
        return JsonResponse({'error': 'Could not load clients. Please try again.'}, status=503)

    return JsonResponse({
        'clients': [
            {
                'id': client.pk,
                'name': client.name,
                'phone': client.phone,
                'email': client.email,
            }
            for client in clients
        ]
    })

