"""
Projects app configuration.

Internal projects led by a single manager, with an allocated team and
tracked tasks.
"""

from django.apps import AppConfig


class ProjectsConfig(AppConfig):
    """Configuration for the projects app."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'projects'
    verbose_name = 'Projects'
