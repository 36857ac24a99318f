from django.apps import AppConfig


class DisciplinaryConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'disciplinary'
    verbose_name = 'Disciplinary Warnings'
