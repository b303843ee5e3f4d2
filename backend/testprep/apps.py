from django.apps import AppConfig


class TestprepConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'testprep'
    verbose_name = 'Test prep'
