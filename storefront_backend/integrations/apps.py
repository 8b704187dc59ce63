# integrations/apps.py

"""
INTEGRATIONS APP CONFIG

Outbound sync queue: order events leave the commit path as OutboundTask rows
and are delivered by `manage.py dispatch_outbound_tasks`.
"""

from django.apps import AppConfig


class IntegrationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "integrations"
    verbose_name = "Integrations"
