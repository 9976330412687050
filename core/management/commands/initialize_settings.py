from django.core.management.base import BaseCommand
from core.models import SystemSetting


class Command(BaseCommand):
    help = 'Initialize default system settings'

    def handle(self, *args, **options):
        settings_data = {
            'business_name': 'Agenda',
            'business_phone': '',
            'business_email': '',
        }

        created_keys, _ = SystemSetting.initialize_defaults({
            key: (value, f'System setting for {key}')
            for key, value in settings_data.items()
        })
        skipped_count = len(settings_data) - len(created_keys)

        for key in created_keys:
            self.stdout.write(self.style.SUCCESS(f'✓ Created setting: {key}'))

        if options.get('verbosity', 1) >= 2:
            for key in settings_data:
                if key not in created_keys:
                    self.stdout.write(self.style.WARNING(f'⚠ Already exists: {key}'))

        # Summary message
        if created_keys:
            self.stdout.write(self.style.SUCCESS(
                f'\n✓ Settings initialization complete: {len(created_keys)} created, {skipped_count} already existed'
            ))
        else:
            self.stdout.write(self.style.SUCCESS(
                f'✓ All settings already initialized ({skipped_count} settings)'
            ))
