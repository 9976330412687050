# appointments/templatetags/appointment_tags.py
from django import template
from appointments.models import Appointment

register = template.Library()

STATUS_COLORS = {
    Appointment.SCHEDULED: '#007AFF',
    Appointment.COMPLETED: '#28a745',
    Appointment.CANCELLED: '#dc3545',
}


@register.filter
def status_label(status):
    """Human-readable label for a status value; unknown values pass through"""
    return dict(Appointment.STATUS_CHOICES).get(status, status)


@register.filter
def status_color(status):
    """Display color for a status value"""
    return STATUS_COLORS.get(status, '#666')
