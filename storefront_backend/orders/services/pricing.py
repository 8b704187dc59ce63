# orders/services/pricing.py

"""
PRICING ENGINE (PURE)

subtotal    = sum(unit_price * quantity)
grand_total = max(0, subtotal - discount - points_discount + shipping + bump)

Composition order used by quote_checkout():
1) shipping          (rule + selected region)
2) coupon            on the subtotal
3) loyalty points    on (subtotal - coupon discount)
4) bump offer        added last, never discounted

Hard rules:
- No database writes, no side effects: identical inputs give an identical result.
  Commit recomputes the quote and compares instead of trusting the client.
- Math runs unrounded; PricingResult.quantize() rounds exactly once, at persistence
  (points discount toward zero, everything else half-up).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping, Sequence

from customers.services.loyalty import NO_REDEMPTION, redeem_points
from orders.services.coupon_validator import CouponApplication, validate_coupon
from orders.services.exceptions import CouponError, CouponRejection
from orders.services.money import ZERO, quantum_for, to_decimal
from store.services.shipping import ShippingRule, resolve_shipping, shipping_is_indeterminate

FALLBACK_LANGUAGE = "ar"


# ============================================================
# INPUT VALUE OBJECTS
# ============================================================


@dataclass(frozen=True)
class VariantSelection:
    variant_id: str
    variant_name: Any
    option_id: str
    option_label: Any
    price_modifier: Decimal = ZERO


@dataclass(frozen=True)
class CartLine:
    """
    One purchasable cart entry. unit_price already includes the price
    modifiers of the selected variant options.
    """

    product_id: str
    product_name: Any
    unit_price: Decimal
    quantity: int
    variants: Sequence[VariantSelection] = field(default_factory=tuple)

    def __post_init__(self):
        price = to_decimal(self.unit_price)
        if price < ZERO:
            raise ValueError("unit_price must be >= 0")
        if isinstance(self.quantity, bool) or int(self.quantity) < 1:
            raise ValueError("quantity must be >= 1")
        object.__setattr__(self, "unit_price", price)
        object.__setattr__(self, "quantity", int(self.quantity))
        object.__setattr__(self, "variants", tuple(self.variants or ()))

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class BumpOffer:
    price: Decimal
    label: Any = ""
    selected: bool = False

    @property
    def amount(self) -> Decimal:
        if not self.selected:
            return ZERO
        price = to_decimal(self.price)
        return price if price > ZERO else ZERO


def localized_text(value, language: str | None = None) -> str:
    """
    Product names may be plain strings or {lang: text} mappings.
    Resolution: requested language, then the fallback language, then any value.
    """
    if value is None:
        return ""
    if isinstance(value, Mapping):
        for lang in (language, FALLBACK_LANGUAGE):
            if lang and value.get(lang):
                return str(value[lang])
        for text in value.values():
            if text:
                return str(text)
        return ""
    return str(value)


# ============================================================
# RESULTS
# ============================================================


_MONEY_FIELDS = (
    "subtotal",
    "shipping_cost",
    "discount_amount",
    "points_discount_amount",
    "bump_amount",
    "grand_total",
)


@dataclass(frozen=True)
class PricingResult:
    subtotal: Decimal
    shipping_cost: Decimal
    discount_amount: Decimal
    points_discount_amount: Decimal
    points_redeemed: int
    bump_amount: Decimal
    grand_total: Decimal

    def quantize(self, places: int = 2) -> "PricingResult":
        """
        Round each amount to the currency minor unit. The points discount
        rounds toward zero so it never outgrows the points debited; a points
        discount that rounds away to nothing debits no points. grand_total is
        recomputed from the rounded parts.
        """
        q = quantum_for(places)
        rounded = {
            name: getattr(self, name).quantize(q, rounding=ROUND_HALF_UP)
            for name in _MONEY_FIELDS
        }
        rounded["points_discount_amount"] = self.points_discount_amount.quantize(
            q, rounding=ROUND_DOWN
        )
        points_redeemed = self.points_redeemed if rounded["points_discount_amount"] > ZERO else 0

        total = (
            rounded["subtotal"]
            - rounded["discount_amount"]
            - rounded["points_discount_amount"]
            + rounded["shipping_cost"]
            + rounded["bump_amount"]
        )
        rounded["grand_total"] = total if total > ZERO else ZERO.quantize(q)

        return replace(self, points_redeemed=points_redeemed, **rounded)

    def as_dict(self) -> dict:
        data = {name: str(getattr(self, name)) for name in _MONEY_FIELDS}
        data["points_redeemed"] = self.points_redeemed
        return data


@dataclass(frozen=True)
class CheckoutQuote:
    pricing: PricingResult
    coupon: CouponApplication | None = None
    coupon_rejection: CouponRejection | None = None
    coupon_message: str = ""
    shipping_indeterminate: bool = False


# ============================================================
# ENGINE
# ============================================================


def cart_subtotal(lines: Iterable[CartLine]) -> Decimal:
    return sum((line.line_total for line in lines), ZERO)


def calculate_pricing(
    lines: Iterable[CartLine],
    *,
    shipping_cost=ZERO,
    discount_amount=ZERO,
    points_discount_amount=ZERO,
    points_redeemed: int = 0,
    bump_offer: BumpOffer | None = None,
) -> PricingResult:
    subtotal = cart_subtotal(lines)
    shipping = to_decimal(shipping_cost)
    discount = to_decimal(discount_amount)
    points_discount = to_decimal(points_discount_amount)
    bump = bump_offer.amount if bump_offer is not None else ZERO

    total = subtotal - discount - points_discount + shipping + bump
    if total < ZERO:
        total = ZERO

    return PricingResult(
        subtotal=subtotal,
        shipping_cost=shipping,
        discount_amount=discount,
        points_discount_amount=points_discount,
        points_redeemed=int(points_redeemed or 0),
        bump_amount=bump,
        grand_total=total,
    )


def quote_checkout(
    lines: Sequence[CartLine],
    *,
    shipping_rule: ShippingRule,
    selected_region=None,
    coupon_code=None,
    store_coupons: Iterable = (),
    points_balance: int = 0,
    redemption_rate: int = 0,
    redeem: bool = False,
    bump_offer: BumpOffer | None = None,
    now=None,
) -> CheckoutQuote:
    """
    Full pricing pass for a cart. A rejected coupon does not fail the quote:
    the discount stays 0 and the rejection reason is reported alongside.
    UnmappedRegionError from a rejecting shipping rule propagates.
    """
    lines = list(lines)
    subtotal = cart_subtotal(lines)

    shipping_cost = resolve_shipping(shipping_rule, selected_region)

    coupon = None
    rejection = None
    coupon_message = ""
    if str(coupon_code or "").strip():
        try:
            coupon = validate_coupon(coupon_code, store_coupons, subtotal, now=now)
        except CouponError as exc:
            rejection = exc.reason
            coupon_message = exc.detail

    discount = coupon.discount_amount if coupon is not None else ZERO

    if redeem:
        points = redeem_points(points_balance, redemption_rate, True, subtotal - discount)
    else:
        points = NO_REDEMPTION

    pricing = calculate_pricing(
        lines,
        shipping_cost=shipping_cost,
        discount_amount=discount,
        points_discount_amount=points.points_discount_amount,
        points_redeemed=points.points_redeemed,
        bump_offer=bump_offer,
    )

    return CheckoutQuote(
        pricing=pricing,
        coupon=coupon,
        coupon_rejection=rejection,
        coupon_message=coupon_message,
        shipping_indeterminate=shipping_is_indeterminate(shipping_rule, selected_region),
    )
