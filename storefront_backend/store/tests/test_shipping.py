from decimal import Decimal
from types import SimpleNamespace

from django.test import SimpleTestCase

from orders.services.exceptions import UnmappedRegionError
from store.services.shipping import (
    FixedShipping,
    RegionShipping,
    resolve_shipping,
    shipping_is_indeterminate,
    shipping_requires_region,
    shipping_rule_for_store,
)


class ShippingResolverTests(SimpleTestCase):
    """
    GUARANTEES:
    - Fixed rule ignores the region
    - Region table with no region selected is indeterminate (not free)
    - Unmapped region follows the store policy (free by default, reject on demand)
    """

    def setUp(self):
        self.table = RegionShipping(prices={"1": Decimal("30"), "2": Decimal("45.50")})

    def test_fixed_rule_ignores_region(self):
        rule = FixedShipping(amount=Decimal("20"))

        self.assertEqual(resolve_shipping(rule), Decimal("20"))
        self.assertEqual(resolve_shipping(rule, "7"), Decimal("20"))
        self.assertFalse(shipping_is_indeterminate(rule, None))
        self.assertFalse(shipping_requires_region(rule))

    def test_region_rule_without_region_is_indeterminate(self):
        self.assertEqual(resolve_shipping(self.table, None), Decimal("0"))
        self.assertTrue(shipping_is_indeterminate(self.table, None))
        self.assertTrue(shipping_is_indeterminate(self.table, "  "))
        self.assertTrue(shipping_requires_region(self.table))

    def test_region_rule_uses_table_price(self):
        self.assertEqual(resolve_shipping(self.table, "2"), Decimal("45.50"))
        self.assertFalse(shipping_is_indeterminate(self.table, "2"))

    def test_unmapped_region_is_free_by_default(self):
        self.assertEqual(resolve_shipping(self.table, "99"), Decimal("0"))

    def test_unmapped_region_rejected_when_policy_says_so(self):
        rule = RegionShipping(prices={"1": Decimal("30")}, unmapped_policy="reject")

        with self.assertRaises(UnmappedRegionError):
            resolve_shipping(rule, "99")

    def test_rule_built_from_store_row(self):
        store = SimpleNamespace(
            shipping_mode="by_region",
            shipping_region_prices={"10": "25.000", " 11 ": 15, "": 5},
            unmapped_region_policy="reject",
            shipping_fixed_amount=Decimal("0"),
        )
        rule = shipping_rule_for_store(store)

        self.assertIsInstance(rule, RegionShipping)
        self.assertEqual(rule.prices, {"10": Decimal("25.000"), "11": Decimal("15")})
        self.assertEqual(rule.unmapped_policy, "reject")

    def test_fixed_rule_built_from_store_row(self):
        store = SimpleNamespace(shipping_mode="fixed", shipping_fixed_amount=Decimal("12.5"))
        rule = shipping_rule_for_store(store)

        self.assertEqual(rule, FixedShipping(amount=Decimal("12.5")))

    def test_malformed_store_price_logged_and_treated_as_zero(self):
        store = SimpleNamespace(
            id="store-1",
            shipping_mode="by_region",
            shipping_region_prices={"1": "thirty", "2": "-5", "3": "12"},
            unmapped_region_policy="free",
        )

        with self.assertLogs("store.services.shipping", level="WARNING") as logs:
            rule = shipping_rule_for_store(store)

        self.assertEqual(rule.prices, {"1": Decimal("0"), "2": Decimal("0"), "3": Decimal("12")})
        self.assertEqual(len(logs.records), 2)
        self.assertEqual(logs.records[0].store_id, "store-1")
        self.assertEqual(logs.records[0].setting, "shipping_region_prices.1")

    def test_malformed_fixed_price_logged(self):
        store = SimpleNamespace(id="store-2", shipping_mode="fixed", shipping_fixed_amount="n/a")

        with self.assertLogs("store.services.shipping", level="WARNING") as logs:
            rule = shipping_rule_for_store(store)

        self.assertEqual(rule, FixedShipping(amount=Decimal("0")))
        self.assertEqual(logs.records[0].setting, "shipping_fixed_amount")
