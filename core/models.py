# core/models.py
from django.db import models


class SystemSetting(models.Model):
    """Simplified system settings - just key-value pairs"""
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'System Setting'
        verbose_name_plural = 'System Settings'
        ordering = ['key']

    def __str__(self):
        return f"{self.key}: {self.value}"

    @classmethod
    def get_setting(cls, key, default=None):
        """Get a setting value by key"""
        try:
            setting = cls.objects.get(key=key, is_active=True)
            return setting.value
        except cls.DoesNotExist:
            return default

    @classmethod
    def get_int_setting(cls, key, default=0):
        """Get an integer setting value"""
        try:
            setting = cls.objects.get(key=key, is_active=True)
            return int(setting.value)
        except (cls.DoesNotExist, ValueError):
            return default

    @classmethod
    def set_setting(cls, key, value, description=''):
        """Set or update a setting"""
        setting, created = cls.objects.get_or_create(
            key=key,
            defaults={
                'value': str(value),
                'description': description,
                'is_active': True
            }
        )
        if not created:
            setting.value = str(value)
            setting.description = description
            setting.is_active = True
            setting.save()
        return setting

    @classmethod
    def initialize_defaults(cls, defaults):
        """
        Create missing settings from a {key: (value, description)} mapping.

        Existing rows are left untouched, except that an empty description
        is filled in.

        Returns:
            Tuple of (created_keys, updated_keys)
        """
        created_keys = []
        updated_keys = []

        for key, (value, description) in defaults.items():
            setting, created = cls.objects.get_or_create(
                key=key,
                defaults={
                    'value': value,
                    'description': description,
                    'is_active': True
                }
            )
            if created:
                created_keys.append(key)
            elif not setting.description:
                setting.description = description
                setting.save(update_fields=['description', 'updated_at'])
                updated_keys.append(key)

        return created_keys, updated_keys
