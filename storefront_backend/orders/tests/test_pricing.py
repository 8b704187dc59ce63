from decimal import Decimal
from types import SimpleNamespace

from django.test import SimpleTestCase

from orders.services.exceptions import CouponRejection
from orders.services.money import minor_units_for, round_money
from orders.services.pricing import (
    BumpOffer,
    CartLine,
    calculate_pricing,
    localized_text,
    quote_checkout,
)
from orders.services.quick_order import build_quick_order_lines
from store.services.shipping import FixedShipping, RegionShipping


def _line(price, qty=1, product_id="p1"):
    return CartLine(product_id=product_id, product_name="Item", unit_price=Decimal(price), quantity=qty)


def _coupon(**overrides):
    data = dict(
        code="SAVE10",
        discount_type="percentage",
        discount_value=Decimal("10"),
        min_order_amount=Decimal("100"),
        usage_limit=None,
        used_count=0,
        expires_at=None,
        is_active=True,
    )
    data.update(overrides)
    return SimpleNamespace(**data)


class CalculatePricingTests(SimpleTestCase):
    """
    GUARANTEES:
    - subtotal = sum(unit_price * quantity)
    - grand_total never negative
    - identical inputs give identical results
    """

    def test_subtotal_is_sum_of_lines(self):
        result = calculate_pricing([_line("10.50", 2), _line("3", 3)])
        self.assertEqual(result.subtotal, Decimal("30.00"))
        self.assertEqual(result.grand_total, Decimal("30.00"))

    def test_grand_total_never_negative(self):
        result = calculate_pricing(
            [_line("10")],
            discount_amount=Decimal("50"),
            points_discount_amount=Decimal("50"),
        )
        self.assertEqual(result.grand_total, Decimal("0"))

    def test_pure_and_deterministic(self):
        lines = [_line("19.99", 3), _line("0.01", 7)]
        kwargs = dict(shipping_cost=Decimal("5"), discount_amount=Decimal("1.5"))
        self.assertEqual(calculate_pricing(lines, **kwargs), calculate_pricing(lines, **kwargs))

    def test_unselected_bump_adds_nothing(self):
        result = calculate_pricing([_line("10")], bump_offer=BumpOffer(price=Decimal("5"), selected=False))
        self.assertEqual(result.bump_amount, Decimal("0"))
        self.assertEqual(result.grand_total, Decimal("10"))

    def test_cart_line_rejects_bad_values(self):
        with self.assertRaises(ValueError):
            _line("-1")
        with self.assertRaises(ValueError):
            _line("1", 0)

    def test_quantize_rounds_once_half_up(self):
        result = calculate_pricing([_line("0.125")], shipping_cost=Decimal("0.0049"))
        rounded = result.quantize(2)
        self.assertEqual(rounded.subtotal, Decimal("0.13"))
        self.assertEqual(rounded.shipping_cost, Decimal("0.00"))
        self.assertEqual(rounded.grand_total, Decimal("0.13"))

    def test_quantized_points_discount_never_worth_more_than_points(self):
        for balance, rate in ((1, 3), (2, 3), (100, 3), (5, 7), (1234, 100)):
            quote = quote_checkout(
                [_line("100")],
                shipping_rule=FixedShipping(amount=Decimal("0")),
                points_balance=balance,
                redemption_rate=rate,
                redeem=True,
            )
            rounded = quote.pricing.quantize(2)

            self.assertLessEqual(rounded.points_discount_amount * rate, rounded.points_redeemed)
            self.assertGreater(rounded.points_redeemed, 0)
            self.assertEqual(
                rounded.grand_total,
                rounded.subtotal - rounded.points_discount_amount,
            )

    def test_quantized_points_rounds_toward_zero(self):
        quote = quote_checkout(
            [_line("100")],
            shipping_rule=FixedShipping(amount=Decimal("0")),
            points_balance=2,
            redemption_rate=3,
            redeem=True,
        )
        rounded = quote.pricing.quantize(2)

        self.assertEqual(rounded.points_discount_amount, Decimal("0.66"))
        self.assertEqual(rounded.points_redeemed, 2)
        self.assertEqual(rounded.grand_total, Decimal("99.34"))

    def test_points_discount_rounding_to_nothing_debits_nothing(self):
        quote = quote_checkout(
            [_line("100")],
            shipping_rule=FixedShipping(amount=Decimal("0")),
            points_balance=1,
            redemption_rate=1000,
            redeem=True,
        )
        self.assertEqual(quote.pricing.points_redeemed, 1)

        rounded = quote.pricing.quantize(2)
        self.assertEqual(rounded.points_discount_amount, Decimal("0"))
        self.assertEqual(rounded.points_redeemed, 0)
        self.assertEqual(rounded.grand_total, Decimal("100.00"))

    def test_minor_units(self):
        self.assertEqual(minor_units_for("EGP"), 2)
        self.assertEqual(minor_units_for("kwd"), 3)
        self.assertEqual(minor_units_for("JPY"), 0)
        self.assertEqual(round_money(Decimal("1.0005"), 3), Decimal("1.001"))


class QuoteCheckoutTests(SimpleTestCase):
    def test_scenario_coupon_and_fixed_shipping(self):
        quote = quote_checkout(
            [_line("100", 2)],
            shipping_rule=FixedShipping(amount=Decimal("20")),
            coupon_code="save10",
            store_coupons=[_coupon()],
        )

        self.assertEqual(quote.pricing.subtotal, Decimal("200"))
        self.assertEqual(quote.pricing.discount_amount, Decimal("20"))
        self.assertEqual(quote.pricing.grand_total, Decimal("200"))
        self.assertIsNone(quote.coupon_rejection)

    def test_scenario_minimum_not_met_keeps_discount_zero(self):
        quote = quote_checkout(
            [_line("50")],
            shipping_rule=FixedShipping(amount=Decimal("0")),
            coupon_code="SAVE10",
            store_coupons=[_coupon()],
        )

        self.assertEqual(quote.coupon_rejection, CouponRejection.MINIMUM_NOT_MET)
        self.assertIsNone(quote.coupon)
        self.assertEqual(quote.pricing.discount_amount, Decimal("0"))
        self.assertEqual(quote.pricing.grand_total, Decimal("50"))

    def test_scenario_points_capped_by_post_discount_subtotal(self):
        quote = quote_checkout(
            [_line("5")],
            shipping_rule=FixedShipping(amount=Decimal("0")),
            points_balance=1000,
            redemption_rate=100,
            redeem=True,
        )

        self.assertEqual(quote.pricing.points_discount_amount, Decimal("5"))
        self.assertEqual(quote.pricing.points_redeemed, 500)
        self.assertEqual(quote.pricing.grand_total, Decimal("0"))

    def test_scenario_bump_never_discounted(self):
        quote = quote_checkout(
            [_line("100", 2)],
            shipping_rule=FixedShipping(amount=Decimal("0")),
            coupon_code="SAVE10",
            store_coupons=[_coupon(discount_type="fixed", discount_value=Decimal("500"), min_order_amount=None)],
            points_balance=100000,
            redemption_rate=100,
            redeem=True,
            bump_offer=BumpOffer(price=Decimal("5"), label="Gift wrap", selected=True),
        )

        self.assertEqual(quote.pricing.discount_amount, Decimal("200"))
        self.assertEqual(quote.pricing.points_discount_amount, Decimal("0"))
        self.assertEqual(quote.pricing.bump_amount, Decimal("5"))
        self.assertEqual(quote.pricing.grand_total, Decimal("5"))

    def test_loyalty_applies_after_coupon(self):
        quote = quote_checkout(
            [_line("200")],
            shipping_rule=FixedShipping(amount=Decimal("0")),
            coupon_code="SAVE10",
            store_coupons=[_coupon()],
            points_balance=50000,
            redemption_rate=100,
            redeem=True,
        )

        self.assertEqual(quote.pricing.discount_amount, Decimal("20"))
        self.assertEqual(quote.pricing.points_discount_amount, Decimal("180"))
        self.assertEqual(quote.pricing.points_redeemed, 18000)

    def test_removing_coupon_restores_total(self):
        common = dict(shipping_rule=FixedShipping(amount=Decimal("20")), store_coupons=[_coupon()])
        lines = [_line("150")]

        before = quote_checkout(lines, **common)
        with_coupon = quote_checkout(lines, coupon_code="SAVE10", **common)
        after = quote_checkout(lines, coupon_code=None, **common)

        self.assertEqual(with_coupon.pricing.discount_amount, Decimal("15"))
        self.assertEqual(after.pricing.discount_amount, Decimal("0"))
        self.assertEqual(after.pricing.grand_total, before.pricing.grand_total)

    def test_region_not_selected_is_flagged(self):
        quote = quote_checkout(
            [_line("10")],
            shipping_rule=RegionShipping(prices={"1": Decimal("30")}),
        )
        self.assertTrue(quote.shipping_indeterminate)
        self.assertEqual(quote.pricing.shipping_cost, Decimal("0"))

        quote = quote_checkout(
            [_line("10")],
            shipping_rule=RegionShipping(prices={"1": Decimal("30")}),
            selected_region="1",
        )
        self.assertFalse(quote.shipping_indeterminate)
        self.assertEqual(quote.pricing.grand_total, Decimal("40"))


class LocalizedTextTests(SimpleTestCase):
    def test_resolution_order(self):
        name = {"ar": "قميص", "en": "Shirt"}
        self.assertEqual(localized_text(name, "en"), "Shirt")
        self.assertEqual(localized_text(name, "fr"), "قميص")
        self.assertEqual(localized_text({"fr": "Chemise"}, "en"), "Chemise")
        self.assertEqual(localized_text("Plain", "en"), "Plain")
        self.assertEqual(localized_text(None), "")


class QuickOrderLinesTests(SimpleTestCase):
    def setUp(self):
        self.variants = [
            {
                "id": "size",
                "name": "Size",
                "options": [
                    {"id": "s", "label": "S", "price_modifier": "0"},
                    {"id": "xl", "label": "XL", "price_modifier": "15"},
                ],
            },
            {
                "id": "color",
                "name": "Color",
                "options": [{"id": "gold", "label": "Gold", "price_modifier": "5.5"}],
            },
        ]

    def test_one_line_per_unit_with_modifiers_folded_in(self):
        lines = build_quick_order_lines(
            product_id="p1",
            product_name={"ar": "قميص"},
            base_price=Decimal("100"),
            quantity=3,
            variants=self.variants,
            selections=[{"size": "xl", "color": "gold"}, {"size": "s"}],
        )

        self.assertEqual(len(lines), 3)
        self.assertTrue(all(line.quantity == 1 for line in lines))
        self.assertEqual([line.unit_price for line in lines], [Decimal("120.5"), Decimal("100"), Decimal("100")])

        first = lines[0].variants
        self.assertEqual(first[0].option_label, "XL")
        self.assertEqual(first[1].price_modifier, Decimal("5.5"))
        self.assertEqual(lines[2].variants[0].option_id, "")

    def test_quantity_must_be_positive(self):
        with self.assertRaises(ValueError):
            build_quick_order_lines(product_id="p1", product_name="x", base_price=1, quantity=0)
