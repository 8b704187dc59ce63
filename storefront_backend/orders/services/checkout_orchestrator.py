# orders/services/checkout_orchestrator.py

"""
CHECKOUT ORCHESTRATOR (APPLICATION SERVICE)

Purpose:
- Turn a priced cart + fulfillment form into durable records.
- Shared by the full checkout form and the single-product quick order.

Pre-commit (nothing written yet):
- fulfillment fields present, region selected when shipping is by region
- quote recomputed server-side (client totals are never trusted)
- requested coupon must still validate against the current subtotal
- optional expected_total must equal the recomputed, rounded total

Commit, in fixed order:
1) customer resolution   (store, phone) get_or_create on a unique constraint
2) order insert          financial snapshot exactly as priced
3) order item inserts    one per line (+ bump offer row)
   -> 1..3 share ONE transaction: failure raises CommitError, nothing persists
4) coupon usage          conditional UPDATE ... WHERE used_count < usage_limit
5) loyalty debit         customer row locked, balance re-checked at write time
6) referral attribution  unknown/absent code is not an error
7) external sync         OutboundTask enqueued (delivered by a worker)
   -> 4..7 each run in their own transaction; failures are logged and
      reported in CheckoutResult.side_effect_failures, never rolled back

Idempotency:
- idempotency_key is unique per store on Order. A retry returns the existing
  order (replayed=True) and re-runs nothing; a concurrent duplicate caught by
  the constraint resolves the same way.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F, Q

from customers.models import Customer, normalize_phone
from customers.services.loyalty import (
    InsufficientPointsError,
    debit_points,
    loyalty_account_for,
)
from integrations.services.outbound import enqueue_order_created
from orders.models import Order, OrderItem, ReferralAttribution
from orders.services.exceptions import (
    CommitError,
    CouponError,
    EmptyCartError,
    MissingFieldsError,
    RegionRequiredError,
    SideEffectError,
    TotalMismatchError,
)
from orders.services.money import round_money
from orders.services.pricing import (
    BumpOffer,
    CartLine,
    CheckoutQuote,
    PricingResult,
    localized_text,
    quote_checkout,
)
from store.models import Coupon
from store.services.configuration import (
    StoreCheckoutConfig,
    active_affiliate,
    checkout_config_for,
    coupons_matching,
)
from store.services.shipping import shipping_requires_region

logger = logging.getLogger(__name__)

STEP_COUPON_USAGE = "coupon_usage"
STEP_LOYALTY_DEBIT = "loyalty_debit"
STEP_REFERRAL = "referral_attribution"
STEP_EXTERNAL_SYNC = "external_sync"


@dataclass(frozen=True)
class FulfillmentDetails:
    name: str
    phone: str
    address: str
    alt_phone: str = ""
    city: str = ""
    region_id: str | None = None
    notes: str = ""

    REQUIRED = ("name", "phone", "address")

    def missing_fields(self) -> list[str]:
        return [f for f in self.REQUIRED if not str(getattr(self, f) or "").strip()]

    @property
    def region(self) -> str:
        return str(self.region_id or "").strip()

    def customer_snapshot(self) -> dict:
        return {
            "name": self.name.strip(),
            "phone": normalize_phone(self.phone),
            "alt_phone": (self.alt_phone or "").strip(),
            "city": (self.city or "").strip(),
            "region_id": self.region or None,
            "address": self.address.strip(),
        }

    def shipping_address(self) -> dict:
        return {
            "city": (self.city or "").strip(),
            "address": self.address.strip(),
            "region_id": self.region or None,
        }

    def customer_address(self) -> dict:
        return {
            "city": (self.city or "").strip(),
            "full_address": self.address.strip(),
            "region_id": self.region or None,
            "alt_phone": (self.alt_phone or "").strip(),
        }


@dataclass
class CheckoutResult:
    order: Order
    pricing: PricingResult
    replayed: bool = False
    side_effect_failures: list[SideEffectError] = field(default_factory=list)

    @property
    def order_id(self):
        return self.order.id

    @property
    def order_number(self) -> str:
        return self.order.order_number


def pricing_from_order(order: Order) -> PricingResult:
    return PricingResult(
        subtotal=order.subtotal_amount,
        shipping_cost=order.shipping_cost,
        discount_amount=order.discount_amount,
        points_discount_amount=order.points_discount_amount,
        points_redeemed=order.points_redeemed,
        bump_amount=order.bump_amount,
        grand_total=order.total,
    )


def _normalize_key(value) -> str | None:
    key = str(value or "").strip()
    return key[:128] or None


def _find_replay(store, idempotency_key) -> Order | None:
    if not idempotency_key:
        return None
    return Order.objects.filter(store=store, idempotency_key=idempotency_key).first()


def _replay(order: Order) -> CheckoutResult:
    logger.info(
        "Checkout replayed from idempotency key",
        extra={"order_id": str(order.id), "store_id": str(order.store_id)},
    )
    return CheckoutResult(order=order, pricing=pricing_from_order(order), replayed=True)


# ============================================================
# PRE-COMMIT
# ============================================================


def _validate_fulfillment(config: StoreCheckoutConfig, fulfillment: FulfillmentDetails):
    missing = fulfillment.missing_fields()
    if missing:
        raise MissingFieldsError(missing)

    if shipping_requires_region(config.shipping_rule) and not fulfillment.region:
        raise RegionRequiredError("Please select a region to calculate shipping.")


def price_cart(
    *,
    config: StoreCheckoutConfig,
    lines: Sequence[CartLine],
    region_id=None,
    coupon_code=None,
    phone=None,
    redeem: bool = False,
    bump_offer: BumpOffer | None = None,
    now=None,
) -> CheckoutQuote:
    """Server-side quote for a store: loads coupons + loyalty account, then prices."""
    account = None
    if redeem and config.loyalty_enabled:
        account = loyalty_account_for(store=config.store, phone=phone)

    return quote_checkout(
        lines,
        shipping_rule=config.shipping_rule,
        selected_region=region_id,
        coupon_code=coupon_code,
        store_coupons=coupons_matching(config.store, coupon_code),
        points_balance=account.points_balance if account else 0,
        redemption_rate=account.redemption_rate if account else 0,
        redeem=account is not None,
        bump_offer=bump_offer,
        now=now,
    )


# ============================================================
# COMMIT (steps 1..3, one transaction)
# ============================================================


def _item_snapshot(line: CartLine, language) -> dict:
    return {
        "name": localized_text(line.product_name, language),
        "variants": [
            {
                "variant_id": v.variant_id,
                "variant_name": localized_text(v.variant_name, language),
                "option_id": v.option_id,
                "option_label": localized_text(v.option_label, language),
                "price_modifier": str(v.price_modifier),
            }
            for v in line.variants
        ],
    }


@transaction.atomic
def _commit_order(
    *,
    config: StoreCheckoutConfig,
    lines: Sequence[CartLine],
    pricing: PricingResult,
    fulfillment: FulfillmentDetails,
    coupon_code: str | None,
    referral_code: str | None,
    bump_offer: BumpOffer | None,
    idempotency_key: str | None,
    source: str,
    language,
) -> tuple[Order, Customer]:
    store = config.store
    places = config.minor_units

    customer, created = Customer.objects.get_or_create(
        store=store,
        phone=normalize_phone(fulfillment.phone),
        defaults={
            "name": fulfillment.name.strip(),
            "address": fulfillment.customer_address(),
            "total_orders": 1,
            "total_spent": pricing.grand_total,
        },
    )

    order = Order.objects.create(
        store=store,
        customer=customer,
        status=Order.STATUS_PENDING,
        source=source,
        subtotal_amount=pricing.subtotal,
        discount_amount=pricing.discount_amount,
        points_discount_amount=pricing.points_discount_amount,
        points_redeemed=pricing.points_redeemed,
        shipping_cost=pricing.shipping_cost,
        bump_amount=pricing.bump_amount,
        total=pricing.grand_total,
        currency=config.currency,
        coupon_code=coupon_code,
        affiliate_code=referral_code,
        customer_snapshot=fulfillment.customer_snapshot(),
        shipping_address=fulfillment.shipping_address(),
        notes=(fulfillment.notes or "").strip(),
        idempotency_key=idempotency_key,
    )

    for line in lines:
        OrderItem.objects.create(
            order=order,
            product_id=line.product_id,
            kind=OrderItem.KIND_PRODUCT,
            quantity=line.quantity,
            unit_price=round_money(line.unit_price, places),
            total_price=round_money(line.line_total, places),
            product_snapshot=_item_snapshot(line, language),
        )

    if bump_offer is not None and bump_offer.selected:
        OrderItem.objects.create(
            order=order,
            product_id=OrderItem.BUMP_PRODUCT_ID,
            kind=OrderItem.KIND_BUMP_OFFER,
            quantity=1,
            unit_price=pricing.bump_amount,
            total_price=pricing.bump_amount,
            product_snapshot={
                "name": localized_text(bump_offer.label, language),
                "variants": [],
            },
        )

    logger.info(
        "Order committed",
        extra={
            "order_id": str(order.id),
            "order_number": order.order_number,
            "store_id": str(store.id),
            "customer_id": str(customer.id),
            "customer_created": created,
            "total": str(order.total),
            "source": source,
        },
    )
    return order, customer


# ============================================================
# SIDE EFFECTS (steps 4..7, independent)
# ============================================================


def increment_coupon_usage(coupon) -> None:
    updated = (
        Coupon.objects.filter(pk=coupon.pk)
        .filter(Q(usage_limit__isnull=True) | Q(used_count__lt=F("usage_limit")))
        .update(used_count=F("used_count") + 1)
    )
    if not updated:
        raise SideEffectError(STEP_COUPON_USAGE, f"Coupon {coupon.code} usage limit reached at commit")


def _debit_loyalty(customer, order: Order) -> None:
    try:
        debit_points(
            customer=customer,
            points=order.points_redeemed,
            order=order,
            description=f"Redeemed for Order #{order.order_number}",
        )
    except InsufficientPointsError as exc:
        raise SideEffectError(STEP_LOYALTY_DEBIT, str(exc)) from exc


def _attribute_referral(order: Order, referral_code) -> None:
    affiliate = active_affiliate(order.store, referral_code)
    if affiliate is None:
        logger.info(
            "Referral code not matched",
            extra={"order_id": str(order.id), "code": referral_code},
        )
        return
    ReferralAttribution.objects.create(order=order, affiliate=affiliate, code=affiliate.code)


def _run_side_effect(step: str, fn, *, order: Order, failures: list) -> None:
    try:
        with transaction.atomic():
            fn()
    except Exception as exc:
        error = exc if isinstance(exc, SideEffectError) else SideEffectError(step, str(exc))
        logger.exception(
            "Checkout side effect failed",
            extra={"step": step, "order_id": str(order.id), "error": str(exc)},
        )
        failures.append(error)


# ============================================================
# ENTRY POINT
# ============================================================


def place_order(
    *,
    store,
    lines: Sequence[CartLine],
    fulfillment: FulfillmentDetails,
    coupon_code=None,
    redeem_points: bool = False,
    bump_offer: BumpOffer | None = None,
    referral_code=None,
    idempotency_key=None,
    expected_total=None,
    language=None,
    source: str = Order.SOURCE_CHECKOUT,
    now=None,
) -> CheckoutResult:
    idempotency_key = _normalize_key(idempotency_key)

    existing = _find_replay(store, idempotency_key)
    if existing is not None:
        return _replay(existing)

    lines = list(lines)
    if not lines:
        raise EmptyCartError("Cart is empty")

    config = checkout_config_for(store)
    _validate_fulfillment(config, fulfillment)

    coupon_code = Coupon.normalize_code(coupon_code) or None
    referral_code = str(referral_code or "").strip().upper() or None

    quote = price_cart(
        config=config,
        lines=lines,
        region_id=fulfillment.region,
        coupon_code=coupon_code,
        phone=fulfillment.phone,
        redeem=redeem_points,
        bump_offer=bump_offer,
        now=now,
    )

    if coupon_code and quote.coupon_rejection is not None:
        raise CouponError(quote.coupon_rejection, quote.coupon_message)

    pricing = quote.pricing.quantize(config.minor_units)

    if expected_total is not None and expected_total != "":
        expected = round_money(expected_total, config.minor_units)
        if expected != pricing.grand_total:
            raise TotalMismatchError(expected=expected, actual=pricing.grand_total)

    try:
        order, customer = _commit_order(
            config=config,
            lines=lines,
            pricing=pricing,
            fulfillment=fulfillment,
            coupon_code=quote.coupon.code if quote.coupon else None,
            referral_code=referral_code,
            bump_offer=bump_offer,
            idempotency_key=idempotency_key,
            source=source,
            language=language,
        )
    except IntegrityError as exc:
        existing = _find_replay(store, idempotency_key)
        if existing is not None:
            return _replay(existing)
        logger.exception("Order commit failed", extra={"store_id": str(store.id)})
        raise CommitError("Could not save the order. Please try again.") from exc
    except DatabaseError as exc:
        logger.exception("Order commit failed", extra={"store_id": str(store.id)})
        raise CommitError("Could not save the order. Please try again.") from exc

    failures: list[SideEffectError] = []

    if quote.coupon is not None:
        _run_side_effect(
            STEP_COUPON_USAGE,
            lambda: increment_coupon_usage(quote.coupon.coupon),
            order=order,
            failures=failures,
        )

    if order.points_redeemed > 0:
        _run_side_effect(
            STEP_LOYALTY_DEBIT,
            lambda: _debit_loyalty(customer, order),
            order=order,
            failures=failures,
        )

    if referral_code:
        _run_side_effect(
            STEP_REFERRAL,
            lambda: _attribute_referral(order, referral_code),
            order=order,
            failures=failures,
        )

    _run_side_effect(
        STEP_EXTERNAL_SYNC,
        lambda: enqueue_order_created(order),
        order=order,
        failures=failures,
    )

    return CheckoutResult(order=order, pricing=pricing, side_effect_failures=failures)
