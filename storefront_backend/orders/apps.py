# orders/apps.py

"""
ORDERS APP CONFIG

Checkout pricing engine, order commit orchestrator and the staff order read API.
"""

from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "orders"
    verbose_name = "Orders"
