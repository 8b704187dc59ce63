# orders/models/__init__.py

"""
ORDERS MODELS PACKAGE EXPORTS
"""

from .order import Order, generate_order_number
from .order_item import OrderItem
from .referral_attribution import ReferralAttribution

__all__ = [
    "Order",
    "OrderItem",
    "ReferralAttribution",
    "generate_order_number",
]
