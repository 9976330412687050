# reports/management/commands/initialize_reports.py
from django.conf import settings
from django.core.management.base import BaseCommand
from core.models import SystemSetting


class Command(BaseCommand):
    help = 'Initialize default settings for reports module'

    def handle(self, *args, **options):
        defaults = {
            'reports_default_period': (
                'month',
                'Default period for reports (week, month, year)'
            ),
            'reports_top_services_limit': (
                str(settings.REPORTS_TOP_SERVICES_LIMIT),
                'Number of top services to display in analytics'
            ),
            'reports_trend_days': (
                str(settings.REPORTS_TREND_DAYS),
                'Number of most recent days shown in the daily trend'
            ),
        }

        created_keys, updated_keys = SystemSetting.initialize_defaults(defaults)

        for key in defaults:
            if key in created_keys:
                self.stdout.write(self.style.SUCCESS(f"✓ Created setting: {key}"))
            elif key in updated_keys:
                self.stdout.write(self.style.WARNING(f"↻ Updated setting: {key}"))
            else:
                self.stdout.write(self.style.NOTICE(f"- Setting already exists: {key}"))

        self.stdout.write(
            self.style.SUCCESS(
                f"\nReports initialization complete! Created: {len(created_keys)}, Updated: {len(updated_keys)}"
            )
        )
