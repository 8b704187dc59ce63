# store/services/shipping.py

"""
SHIPPING RULE RESOLVER

A store ships either at one fixed price or from a per-region price table.
The two modes are modelled as a tagged union so the "no region selected yet"
state of a region table is visible to callers instead of hiding behind a zero.

DESIGN PRINCIPLES:
- No database access (the rule is built from a Store row up-front)
- No side effects
- Unmapped region: explicit per-store policy
    free   -> 0 (documented default)
    reject -> UnmappedRegionError
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Mapping, Union

from orders.services.exceptions import UnmappedRegionError

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

UNMAPPED_FREE = "free"
UNMAPPED_REJECT = "reject"


@dataclass(frozen=True)
class FixedShipping:
    amount: Decimal


@dataclass(frozen=True)
class RegionShipping:
    prices: Mapping[str, Decimal] = field(default_factory=dict)
    unmapped_policy: str = UNMAPPED_FREE


ShippingRule = Union[FixedShipping, RegionShipping]


def _amount(value, *, store=None, setting: str = "") -> Decimal:
    if value is None or value == "":
        return ZERO
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        amount = None

    if amount is None or not amount.is_finite() or amount < ZERO:
        logger.warning(
            "Invalid shipping price in store config, treated as 0",
            extra={
                "store_id": str(getattr(store, "id", "") or ""),
                "setting": setting,
                "value": str(value),
            },
        )
        return ZERO
    return amount


def _region_key(region) -> str:
    return str(region or "").strip()


def shipping_rule_for_store(store) -> ShippingRule:
    """
    Build the tagged rule from a Store row.
    Unknown modes fall back to a fixed rule (matches the storefront default of
    `{type: fixed, fixed_price: 0}` when nothing was configured).
    """
    mode = getattr(store, "shipping_mode", None)

    if mode == "by_region":
        raw = getattr(store, "shipping_region_prices", None) or {}
        prices = {
            _region_key(k): _amount(v, store=store, setting=f"shipping_region_prices.{k}")
            for k, v in raw.items()
            if _region_key(k)
        }
        policy = getattr(store, "unmapped_region_policy", None) or UNMAPPED_FREE
        return RegionShipping(prices=prices, unmapped_policy=policy)

    return FixedShipping(
        amount=_amount(
            getattr(store, "shipping_fixed_amount", None),
            store=store,
            setting="shipping_fixed_amount",
        )
    )


def shipping_requires_region(rule: ShippingRule) -> bool:
    return isinstance(rule, RegionShipping)


def shipping_is_indeterminate(rule: ShippingRule, selected_region) -> bool:
    """
    True while a region table has no region selected: the cost reported by
    resolve_shipping() is a placeholder and submission must be blocked.
    """
    return isinstance(rule, RegionShipping) and not _region_key(selected_region)


def resolve_shipping(rule: ShippingRule, selected_region=None) -> Decimal:
    if isinstance(rule, FixedShipping):
        return rule.amount

    if isinstance(rule, RegionShipping):
        region = _region_key(selected_region)
        if not region:
            return ZERO

        if region in rule.prices:
            return rule.prices[region]

        if rule.unmapped_policy == UNMAPPED_REJECT:
            raise UnmappedRegionError(f"Shipping is not available for region '{region}'.")
        return ZERO

    raise TypeError(f"Unknown shipping rule: {rule!r}")
