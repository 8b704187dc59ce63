# public/apps.py

"""
PUBLIC APP CONFIG

Public storefront (AllowAny) checkout surface:
- pricing quote + coupon check
- full checkout + quick order
- order status poll
"""

from django.apps import AppConfig


class PublicConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "public"
    verbose_name = "Public Storefront"
