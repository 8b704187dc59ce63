# customers/services/loyalty.py

"""
LOYALTY REDEMPTION (CALCULATOR + LEDGER DEBIT)

Calculator (pure, exact integer points):
    affordable      = post_discount_subtotal * redemption_rate
    points_redeemed = points_balance            if points_balance <= affordable
                      floor(affordable)         otherwise
    points_discount = points_redeemed / redemption_rate   (rounded toward zero)

The discount is derived from the whole points debited, so a granted discount
is never worth more than the points it costs, and a non-zero discount always
debits at least one point.

Ledger:
- Balance is the SUM of LoyaltyTransaction.points (append-only ledger).
- debit_points() locks the customer row and re-checks the balance at write
  time, so two concurrent checkouts cannot both spend the same points.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal, localcontext

from django.db import transaction
from django.db.models import Sum

from customers.models import Customer, LoyaltyTransaction, normalize_phone
from orders.services.money import ZERO, to_decimal

logger = logging.getLogger(__name__)


class LoyaltyError(Exception):
    pass


class InsufficientPointsError(LoyaltyError):
    pass


@dataclass(frozen=True)
class PointsRedemption:
    points_discount_amount: Decimal
    points_redeemed: int


NO_REDEMPTION = PointsRedemption(points_discount_amount=ZERO, points_redeemed=0)


@dataclass(frozen=True)
class LoyaltyAccount:
    customer_id: object
    points_balance: int
    redemption_rate: int


def redeem_points(points_balance, redemption_rate, redeem: bool, post_discount_subtotal) -> PointsRedemption:
    if not redeem:
        return NO_REDEMPTION

    balance = int(points_balance or 0)
    rate = int(redemption_rate or 0)
    if balance <= 0 or rate <= 0:
        return NO_REDEMPTION

    ceiling = to_decimal(post_discount_subtotal)
    if ceiling <= ZERO:
        return NO_REDEMPTION

    # ceiling is a finite decimal, so ceiling * rate is exact
    affordable = ceiling * rate
    redeemed = balance if balance <= affordable else math.floor(affordable)
    if redeemed <= 0:
        return NO_REDEMPTION

    with localcontext() as ctx:
        ctx.rounding = ROUND_FLOOR
        discount = Decimal(redeemed) / Decimal(rate)

    return PointsRedemption(points_discount_amount=discount, points_redeemed=redeemed)


# ============================================================
# LEDGER
# ============================================================


def loyalty_balance(customer) -> int:
    if customer is None:
        return 0
    total = (
        LoyaltyTransaction.objects.filter(customer=customer)
        .aggregate(total=Sum("points"))
        .get("total")
    )
    return max(int(total or 0), 0)


def loyalty_account_for(*, store, phone) -> LoyaltyAccount | None:
    """
    Points account of the buyer identified by (store, phone), or None when the
    store runs no loyalty program or the phone is unknown.
    """
    if not getattr(store, "loyalty_enabled", False):
        return None

    phone = normalize_phone(phone)
    if not phone:
        return None

    customer = Customer.objects.filter(store=store, phone=phone).first()
    if customer is None:
        return None

    return LoyaltyAccount(
        customer_id=customer.id,
        points_balance=loyalty_balance(customer),
        redemption_rate=int(store.loyalty_redemption_rate or 0),
    )


@transaction.atomic
def debit_points(*, customer, points: int, order=None, description: str = "") -> LoyaltyTransaction:
    points = int(points or 0)
    if points <= 0:
        raise LoyaltyError("points to debit must be > 0")

    locked = Customer.objects.select_for_update().get(pk=customer.pk)
    balance = loyalty_balance(locked)

    if balance < points:
        logger.warning(
            "Loyalty debit refused: insufficient balance",
            extra={"customer_id": str(locked.id), "balance": balance, "requested": points},
        )
        raise InsufficientPointsError(
            f"Insufficient points: balance {balance}, requested {points}"
        )

    entry = LoyaltyTransaction.objects.create(
        store_id=locked.store_id,
        customer=locked,
        points=-points,
        type=LoyaltyTransaction.TYPE_REDEEM,
        order=order,
        description=description,
    )

    logger.info(
        "Loyalty points redeemed",
        extra={"customer_id": str(locked.id), "points": points, "order_id": str(getattr(order, "id", ""))},
    )
    return entry
