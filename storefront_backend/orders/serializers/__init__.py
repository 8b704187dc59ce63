# orders/serializers/__init__.py

from .order import OrderItemSerializer, OrderSerializer, ReferralAttributionSerializer

__all__ = ["OrderSerializer", "OrderItemSerializer", "ReferralAttributionSerializer"]
