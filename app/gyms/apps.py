"""
Gyms application configuration.
"""

from django.apps import AppConfig


class GymsConfig(AppConfig):
    """Configuration for the gyms application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "gyms"
    verbose_name = "Gyms"
