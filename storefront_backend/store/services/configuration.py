# store/services/configuration.py

"""
STORE CONFIGURATION PROVIDER

Read-only view of the settings checkout needs from a store:
currency + minor units, shipping rule, loyalty settings, coupons and
referral partners. Checkout never writes through this module.
"""

from __future__ import annotations

from dataclasses import dataclass

from orders.services.money import minor_units_for
from store.models import Affiliate, Coupon, Store
from store.services.shipping import ShippingRule, shipping_rule_for_store


class StoreNotFoundError(Exception):
    pass


@dataclass(frozen=True)
class StoreCheckoutConfig:
    store: Store
    currency: str
    minor_units: int
    shipping_rule: ShippingRule
    loyalty_enabled: bool
    redemption_rate: int


def get_active_store(*, store_id=None, slug=None) -> Store:
    qs = Store.objects.filter(is_active=True)
    if store_id:
        store = qs.filter(pk=store_id).first()
    elif slug:
        store = qs.filter(slug=str(slug).strip()).first()
    else:
        store = None

    if store is None:
        raise StoreNotFoundError("Store not found")
    return store


def checkout_config_for(store: Store) -> StoreCheckoutConfig:
    currency = (store.currency or "").strip().upper()
    return StoreCheckoutConfig(
        store=store,
        currency=currency,
        minor_units=minor_units_for(currency),
        shipping_rule=shipping_rule_for_store(store),
        loyalty_enabled=bool(store.loyalty_enabled),
        redemption_rate=int(store.loyalty_redemption_rate or 0),
    )


def coupons_matching(store: Store, code) -> list[Coupon]:
    """
    Coupons of this store whose code matches case-insensitively (active or not;
    the validator decides). Returns at most one row thanks to the unique code.
    """
    code = Coupon.normalize_code(code)
    if not code:
        return []
    return list(Coupon.objects.filter(store=store, code__iexact=code))


def active_affiliate(store: Store, code) -> Affiliate | None:
    code = str(code or "").strip().upper()
    if not code:
        return None
    return Affiliate.objects.filter(store=store, code=code, is_active=True).first()
