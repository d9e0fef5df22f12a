"""Django app configuration for django-sponsorship."""

from django.apps import AppConfig


class DjangoSponsorshipConfig(AppConfig):
    """App configuration for django-sponsorship."""

    name = 'django_sponsorship'
    verbose_name = 'Django Sponsorship'
    default_auto_field = 'django.db.models.BigAutoField'
