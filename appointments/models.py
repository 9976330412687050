# appointments/models.py
from django.db import models

from core.utils import to_local


class Appointment(models.Model):
    SCHEDULED = 'scheduled'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'

    STATUS_CHOICES = [
        (SCHEDULED, 'Scheduled'),
        (COMPLETED, 'Completed'),
        (CANCELLED, 'Cancelled'),
    ]

    # Deleting a client or service keeps its appointments; the reference reads as None
    client = models.ForeignKey(
        'clients.Client',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='appointments'
    )
    service = models.ForeignKey(
        'services.Service',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='appointments'
    )
    appointment_time = models.DateTimeField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=SCHEDULED)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['appointment_time', 'id']
        indexes = [
            models.Index(fields=['appointment_time'], name='appointment_time_idx'),
            models.Index(fields=['status', 'appointment_time'], name='appointment_status_time_idx'),
        ]

    def __str__(self):
        client_name = self.client.name if self.client else 'Unknown client'
        return f"{client_name} - {self.appointment_time:%Y-%m-%d %H:%M}"

    @property
    def local_time(self):
        return to_local(self.appointment_time)

    @property
    def time_display(self):
        return self.local_time.strftime('%H:%M')

    @property
    def price(self):
        """Price of the booked service, None when the service no longer exists"""
        return self.service.price if self.service else None
