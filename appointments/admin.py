# appointments/admin.py
from django.contrib import admin
from django.utils.html import format_html
from .models import Appointment
from .templatetags.appointment_tags import status_color


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ['appointment_time', 'client', 'service', 'colored_status']
    list_filter = ['status', 'service', 'appointment_time']
    search_fields = ['client__name', 'service__name', 'notes']
    readonly_fields = ['created_at', 'updated_at']
    date_hierarchy = 'appointment_time'
    autocomplete_fields = ['client', 'service']

    fieldsets = (
        ('Appointment Details', {
            'fields': ('client', 'service', 'appointment_time', 'status')
        }),
        ('Notes', {
            'fields': ('notes',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ['collapse']
        }),
    )

    def colored_status(self, obj):
        """Display status with color coding"""
        return format_html(
            '<span style="color: {};">{}</span>',
            status_color(obj.status),
            obj.get_status_display()
        )
    colored_status.short_description = 'Status'
    colored_status.admin_order_field = 'status'

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('client', 'service')
