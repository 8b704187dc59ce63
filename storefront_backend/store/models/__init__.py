# store/models/__init__.py

"""
STORE MODELS PACKAGE EXPORTS

Purpose:
- Central export surface for store configuration models.
"""

from .affiliate import Affiliate
from .coupon import Coupon
from .store import Store

__all__ = [
    "Store",
    "Coupon",
    "Affiliate",
]
