# orders/services/exceptions.py

"""
CHECKOUT SERVICE ERRORS

Centralized domain errors for the checkout pipeline.

Taxonomy:
- CheckoutValidationError: blocks submission immediately (bad form / cart)
- CouponError: surfaced to the buyer; checkout may continue without the coupon
- CommitError: order/items could not be persisted (generic checkout failure)
- SideEffectError: post-commit step failed; logged only, never surfaced
"""

from __future__ import annotations

from enum import Enum


class CheckoutError(Exception):
    """Base exception for all checkout failures."""

    code = "checkout_error"

    def __init__(self, message: str = "", *, code: str | None = None):
        super().__init__(message or self.__class__.__doc__ or self.code)
        if code:
            self.code = code

    @property
    def detail(self) -> str:
        return str(self)


# ============================================================
# VALIDATION
# ============================================================


class CheckoutValidationError(CheckoutError):
    """Checkout input is invalid."""

    code = "validation_error"


class MissingFieldsError(CheckoutValidationError):
    """Required fulfillment fields are missing."""

    code = "missing_fields"

    def __init__(self, fields):
        self.fields = list(fields)
        super().__init__(f"Missing required fields: {', '.join(self.fields)}")


class RegionRequiredError(CheckoutValidationError):
    """A shipping region must be selected to calculate shipping."""

    code = "region_required"


class UnmappedRegionError(CheckoutValidationError):
    """The selected region has no shipping price."""

    code = "region_unavailable"


class EmptyCartError(CheckoutValidationError):
    """Cart is empty."""

    code = "empty_cart"


class TotalMismatchError(CheckoutValidationError):
    """Client-side total differs from the server-computed total."""

    code = "total_mismatch"

    def __init__(self, *, expected, actual):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Order total changed: expected {expected}, actual {actual}.")


# ============================================================
# COUPONS
# ============================================================


class CouponRejection(str, Enum):
    NOT_FOUND = "CouponNotFound"
    EXPIRED = "CouponExpired"
    EXHAUSTED = "CouponExhausted"
    MINIMUM_NOT_MET = "CouponMinimumNotMet"


_COUPON_MESSAGES = {
    CouponRejection.NOT_FOUND: "Coupon not found or inactive",
    CouponRejection.EXPIRED: "Coupon expired",
    CouponRejection.EXHAUSTED: "Coupon usage limit reached",
    CouponRejection.MINIMUM_NOT_MET: "Minimum order amount not met",
}


class CouponError(CheckoutError):
    """Coupon cannot be applied."""

    code = "coupon_rejected"

    def __init__(self, reason: CouponRejection, message: str = ""):
        self.reason = CouponRejection(reason)
        super().__init__(message or _COUPON_MESSAGES[self.reason])


# ============================================================
# COMMIT
# ============================================================


class CommitError(CheckoutError):
    """Order could not be saved."""

    code = "commit_failed"


class SideEffectError(CheckoutError):
    """A post-commit step failed (logged only)."""

    code = "side_effect_failed"

    def __init__(self, step: str, message: str = ""):
        self.step = step
        super().__init__(message or f"Post-commit step '{step}' failed")
