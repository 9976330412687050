# reports/models.py
from django.db import models

# No models needed for reports module
# Every figure is computed from Appointment, Client and Service rows on each
# request and thrown away afterwards (see reports/summary.py).
#
# NOTES:
# 1. Revenue is the booked service's current price, counted only for
#    appointments with status='completed'.
# 2. Monthly revenue always covers January 1 to now, whatever period is
#    selected on the dashboard.
