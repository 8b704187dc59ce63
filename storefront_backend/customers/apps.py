# customers/apps.py

"""
CUSTOMERS APP CONFIG

Store-scoped buyers (deduplicated by phone) and the loyalty points ledger.
"""

from django.apps import AppConfig


class CustomersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "customers"
    verbose_name = "Customers & Loyalty"
