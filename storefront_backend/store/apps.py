# store/apps.py

"""
STORE APP CONFIG

Tenant store configuration consumed by checkout:
- currency, shipping rule, loyalty settings
- coupons and affiliates
"""

from django.apps import AppConfig


class StoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "store"
    verbose_name = "Stores"
