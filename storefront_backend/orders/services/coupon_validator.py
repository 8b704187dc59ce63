# orders/services/coupon_validator.py

"""
COUPON VALIDATOR

Stateless check of a coupon code against a candidate subtotal.

Rejections (checked in this order):
1) CouponNotFound       - no coupon with that code, or coupon inactive
2) CouponExpired        - expires_at is in the past
3) CouponExhausted      - usage_limit set and used_count >= usage_limit
4) CouponMinimumNotMet  - subtotal < min_order_amount

The result depends only on its inputs: checkout re-runs it at commit time
against the current subtotal instead of trusting an earlier preview.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable

from django.utils import timezone

from orders.services.exceptions import CouponError, CouponRejection
from orders.services.money import ZERO, to_decimal

PERCENTAGE = "percentage"


@dataclass(frozen=True)
class CouponApplication:
    discount_amount: Decimal
    coupon: Any

    @property
    def code(self) -> str:
        return str(getattr(self.coupon, "code", "") or "")


def _normalize(code) -> str:
    return str(code or "").strip().upper()


def find_coupon(code, store_coupons: Iterable) -> Any | None:
    wanted = _normalize(code)
    if not wanted:
        return None
    for coupon in store_coupons:
        if _normalize(getattr(coupon, "code", "")) == wanted:
            return coupon
    return None


def coupon_discount(coupon, subtotal) -> Decimal:
    subtotal = to_decimal(subtotal)
    value = to_decimal(getattr(coupon, "discount_value", None))

    if getattr(coupon, "discount_type", None) == PERCENTAGE:
        raw = subtotal * value / Decimal("100")
    else:
        raw = value

    if raw < ZERO:
        return ZERO
    if raw > subtotal:
        return subtotal if subtotal > ZERO else ZERO
    return raw


def validate_coupon(code, store_coupons: Iterable, subtotal, *, now=None) -> CouponApplication:
    coupon = find_coupon(code, store_coupons)
    if coupon is None or not getattr(coupon, "is_active", False):
        raise CouponError(CouponRejection.NOT_FOUND)

    now = now or timezone.now()
    expires_at = getattr(coupon, "expires_at", None)
    if expires_at is not None and expires_at < now:
        raise CouponError(CouponRejection.EXPIRED)

    usage_limit = getattr(coupon, "usage_limit", None)
    if usage_limit is not None and int(coupon.used_count or 0) >= int(usage_limit):
        raise CouponError(CouponRejection.EXHAUSTED)

    subtotal = to_decimal(subtotal)
    min_order = getattr(coupon, "min_order_amount", None)
    if min_order is not None and subtotal < to_decimal(min_order):
        raise CouponError(
            CouponRejection.MINIMUM_NOT_MET,
            f"Minimum order amount is {to_decimal(min_order).normalize():f}",
        )

    return CouponApplication(discount_amount=coupon_discount(coupon, subtotal), coupon=coupon)
