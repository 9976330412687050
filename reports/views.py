# reports/views.py
import logging

from django.shortcuts import redirect
from django.contrib.auth.mixins import LoginRequiredMixin
from django.contrib.auth.decorators import login_required
from django.contrib import messages
from django.db import DatabaseError
from django.views import View
from django.http import JsonResponse, HttpResponse
from django.template.loader import render_to_string

from xhtml2pdf import pisa

from core.models import SystemSetting
from .coordinator import get_coordinator
from .periods import DEFAULT_PERIOD, PERIOD_CHOICES
from .summary import compute_analytics_summary

logger = logging.getLogger(__name__)


def get_requested_period(request):
    try:
        default_period = SystemSetting.get_setting('reports_default_period', DEFAULT_PERIOD)
    except DatabaseError as e:
        logger.error(f"Could not read reports_default_period, using {DEFAULT_PERIOD}: {e}")
        default_period = DEFAULT_PERIOD
    return request.GET.get('period') or default_period


class ReportsView(LoginRequiredMixin, View):
    """
    Analytics dashboard data for the selected period

    Query params:
        period: week, month or year (default from the reports_default_period setting)

    A newer request from the same user supersedes this one; the superseded
    request answers 409 instead of returning its outdated summary.
    """

    def get(self, request, *args, **kwargs):
        period = get_requested_period(request)

        coordinator = get_coordinator(request.user.pk)
        summary = coordinator.refresh(period)

        if summary is None:
            return JsonResponse(
                {'error': 'A newer report request replaced this one.'},
                status=409
            )

        data = summary.as_dict()
        data['period_choices'] = [{'value': value, 'label': label} for value, label in PERIOD_CHOICES]
        return JsonResponse(data)


@login_required
def export_reports_pdf(request):
    """Export the analytics summary for a period to PDF"""
    period = get_requested_period(request)
    summary = compute_analytics_summary(period)

    context = {
        'summary': summary,
        'generated_by': request.user.get_full_name() or request.user.get_username(),
        'business_name': SystemSetting.get_setting('business_name', 'Agenda'),
        'business_phone': SystemSetting.get_setting('business_phone', ''),
        'business_email': SystemSetting.get_setting('business_email', ''),
    }

    try:
        html_string = render_to_string('reports/reports_pdf.html', context)

        response = HttpResponse(content_type='application/pdf')
        filename = f'Reports_{summary.window.start:%Y-%m-%d}_{summary.window.end:%Y-%m-%d}.pdf'
        response['Content-Disposition'] = f'inline; filename="{filename}"'

        pisa_status = pisa.CreatePDF(html_string, dest=response)

        if pisa_status.err:
            logger.error(f"xhtml2pdf reported {pisa_status.err} error(s) for {period} report")
            messages.error(request, 'Error generating PDF. Please try again.')
            return redirect('reports:dashboard')

        return response

    except Exception as e:
        logger.exception(f"Error generating {period} report PDF")
        messages.error(request, f'Error generating PDF: {str(e)}')
        return redirect('reports:dashboard')
