# appointments/utils.py - Helpers shared by the agenda and dashboard views
from .categorization import sections_with_month_headers


def appointment_to_dict(appointment):
    """
    JSON-ready representation of an appointment

    Client and service may have been deleted; their fields are then None.
    """
    client = appointment.client
    service = appointment.service

    return {
        'id': appointment.id,
        'client_id': client.pk if client else None,
        'client_name': client.name if client else None,
        'service_id': service.pk if service else None,
        'service_name': service.name if service else None,
        'price': appointment.price,
        'duration_minutes': service.duration_minutes if service else None,
        'appointment_time': appointment.appointment_time,
        'time_display': appointment.time_display,
        'status': appointment.status,
        'status_display': appointment.get_status_display(),
        'notes': appointment.notes,
    }


def sections_to_list(sections):
    """
    Serialize agenda sections, flagging where a month header is rendered
    """
    return [
        {
            'title': section.title,
            'group_key': section.group_key,
            'month_key': section.month_key,
            'month_label': section.month_label,
            'show_month_header': show_month_header,
            'count': len(section),
            'items': [appointment_to_dict(appointment) for appointment in section.items],
        }
        for show_month_header, section in sections_with_month_headers(sections)
    ]
