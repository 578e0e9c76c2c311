from django.apps import AppConfig


class CommonConfig(AppConfig):
    """Shared infrastructure: errors, responses, pagination, SMS."""

    name = 'common'
    verbose_name = 'Common'
