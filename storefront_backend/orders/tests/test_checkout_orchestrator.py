from decimal import Decimal
from unittest import mock

from django.db import DatabaseError
from django.test import TestCase

from customers.models import Customer, LoyaltyTransaction
from customers.services.loyalty import LoyaltyAccount, loyalty_balance
from integrations.models import OutboundTask
from orders.models import Order, OrderItem, ReferralAttribution
from orders.services.checkout_orchestrator import (
    STEP_EXTERNAL_SYNC,
    STEP_LOYALTY_DEBIT,
    FulfillmentDetails,
    increment_coupon_usage,
    place_order,
)
from orders.services.exceptions import (
    CommitError,
    CouponError,
    CouponRejection,
    EmptyCartError,
    MissingFieldsError,
    RegionRequiredError,
    SideEffectError,
    TotalMismatchError,
    UnmappedRegionError,
)
from orders.services.pricing import BumpOffer, CartLine, VariantSelection
from store.models import Affiliate, Coupon, Store


def _fulfillment(**overrides):
    data = dict(
        name="Mona Adel",
        phone="01000000001",
        address="12 Nile St",
        city="Giza",
        alt_phone="01100000002",
        notes="Ring twice",
    )
    data.update(overrides)
    return FulfillmentDetails(**data)


class CheckoutOrchestratorTests(TestCase):
    """
    Tests for the order commit pipeline.

    GUARANTEES:
    - One order + one item per line (+ bump row), snapshot equals the priced result
    - Customer/order/items commit together or not at all
    - Post-commit steps never roll back or fail the order
    - Retries with the same idempotency key never duplicate an order
    """

    def setUp(self):
        self.store = Store.objects.create(
            name="Demo Store",
            slug="demo-store",
            currency="EGP",
            shipping_mode=Store.SHIPPING_FIXED,
            shipping_fixed_amount=Decimal("20"),
            loyalty_enabled=True,
            loyalty_redemption_rate=100,
        )
        self.coupon = Coupon.objects.create(
            store=self.store,
            code="save10",
            discount_type=Coupon.TYPE_PERCENTAGE,
            discount_value=Decimal("10"),
            min_order_amount=Decimal("100"),
        )
        self.lines = [
            CartLine(
                product_id="p-1",
                product_name={"ar": "قميص", "en": "Shirt"},
                unit_price=Decimal("60"),
                quantity=2,
                variants=[
                    VariantSelection(
                        variant_id="size",
                        variant_name={"ar": "المقاس", "en": "Size"},
                        option_id="xl",
                        option_label="XL",
                        price_modifier=Decimal("10"),
                    )
                ],
            ),
            CartLine(product_id="p-2", product_name="Cap", unit_price=Decimal("80"), quantity=1),
        ]

    def _place(self, **overrides):
        kwargs = dict(store=self.store, lines=self.lines, fulfillment=_fulfillment())
        kwargs.update(overrides)
        return place_order(**kwargs)

    # =====================================================
    # COMMIT
    # =====================================================

    def test_commit_creates_order_items_and_customer(self):
        bump = BumpOffer(price=Decimal("5"), label={"ar": "تغليف هدية"}, selected=True)
        result = self._place(coupon_code="SAVE10", bump_offer=bump, language="en")

        self.assertEqual(Order.objects.count(), 1)
        self.assertEqual(OrderItem.objects.count(), 3)
        self.assertEqual(Customer.objects.count(), 1)
        self.assertEqual(result.side_effect_failures, [])
        self.assertFalse(result.replayed)

        order = Order.objects.get()
        self.assertEqual(order.subtotal_amount, Decimal("200"))
        self.assertEqual(order.discount_amount, Decimal("20"))
        self.assertEqual(order.shipping_cost, Decimal("20"))
        self.assertEqual(order.bump_amount, Decimal("5"))
        self.assertEqual(order.total, Decimal("205"))
        self.assertEqual(order.total, result.pricing.grand_total)
        self.assertEqual(order.coupon_code, "SAVE10")
        self.assertEqual(order.currency, "EGP")
        self.assertEqual(order.status, Order.STATUS_PENDING)
        self.assertTrue(order.order_number.startswith("ORD-"))
        self.assertEqual(len(order.order_number), 10)

        self.assertEqual(order.customer_snapshot["name"], "Mona Adel")
        self.assertEqual(order.customer_snapshot["alt_phone"], "01100000002")
        self.assertEqual(order.shipping_address["address"], "12 Nile St")
        self.assertEqual(order.notes, "Ring twice")

    def test_item_snapshots_are_localized_and_include_bump_row(self):
        bump = BumpOffer(price=Decimal("5"), label={"ar": "تغليف هدية"}, selected=True)
        result = self._place(bump_offer=bump, language="en")

        items = {item.product_id: item for item in result.order.items.all()}
        shirt = items["p-1"]
        self.assertEqual(shirt.quantity, 2)
        self.assertEqual(shirt.unit_price, Decimal("60"))
        self.assertEqual(shirt.total_price, Decimal("120"))
        self.assertEqual(shirt.product_snapshot["name"], "Shirt")
        self.assertEqual(shirt.product_snapshot["variants"][0]["variant_name"], "Size")
        self.assertEqual(shirt.product_snapshot["variants"][0]["option_label"], "XL")

        bump_row = items[OrderItem.BUMP_PRODUCT_ID]
        self.assertEqual(bump_row.kind, OrderItem.KIND_BUMP_OFFER)
        self.assertEqual(bump_row.quantity, 1)
        self.assertEqual(bump_row.total_price, Decimal("5"))
        self.assertEqual(bump_row.product_snapshot["name"], "تغليف هدية")

    def test_new_customer_seeded_and_existing_customer_reused(self):
        first = self._place()
        customer = Customer.objects.get()
        self.assertEqual(customer.total_orders, 1)
        self.assertEqual(customer.total_spent, first.pricing.grand_total)
        self.assertEqual(customer.address["full_address"], "12 Nile St")

        second = self._place(fulfillment=_fulfillment(phone="0100 000 0001", name="Other Name"))

        self.assertEqual(Customer.objects.count(), 1)
        self.assertEqual(second.order.customer_id, customer.id)
        self.assertEqual(Customer.objects.get().name, "Mona Adel")

    def test_order_financials_are_immutable(self):
        order = self._place().order
        order.total = Decimal("1.00")
        with self.assertRaises(ValueError):
            order.save()

        order.refresh_from_db()
        order.status = Order.STATUS_CONFIRMED
        order.save()
        self.assertEqual(Order.objects.get().status, Order.STATUS_CONFIRMED)

    # =====================================================
    # VALIDATION (nothing written)
    # =====================================================

    def test_empty_cart_rejected(self):
        with self.assertRaises(EmptyCartError):
            self._place(lines=[])

    def test_missing_fields_rejected(self):
        with self.assertRaises(MissingFieldsError) as ctx:
            self._place(fulfillment=_fulfillment(name="", address="  "))

        self.assertEqual(ctx.exception.fields, ["name", "address"])
        self.assertEqual(Order.objects.count(), 0)

    def test_region_required_for_region_shipping(self):
        self.store.shipping_mode = Store.SHIPPING_BY_REGION
        self.store.shipping_region_prices = {"1": "30"}
        self.store.save()

        with self.assertRaises(RegionRequiredError):
            self._place()

        result = self._place(fulfillment=_fulfillment(region_id="1"))
        self.assertEqual(result.order.shipping_cost, Decimal("30"))
        self.assertEqual(result.order.shipping_address["region_id"], "1")

    def test_unmapped_region_policy(self):
        self.store.shipping_mode = Store.SHIPPING_BY_REGION
        self.store.shipping_region_prices = {"1": "30"}
        self.store.save()

        free = self._place(fulfillment=_fulfillment(region_id="99"))
        self.assertEqual(free.order.shipping_cost, Decimal("0"))

        self.store.unmapped_region_policy = Store.UNMAPPED_REGION_REJECT
        self.store.save()
        with self.assertRaises(UnmappedRegionError):
            self._place(fulfillment=_fulfillment(region_id="99"))

    def test_rejected_coupon_blocks_commit(self):
        with self.assertRaises(CouponError) as ctx:
            self._place(lines=[CartLine(product_id="p", product_name="x", unit_price=Decimal("50"), quantity=1)], coupon_code="SAVE10")

        self.assertEqual(ctx.exception.reason, CouponRejection.MINIMUM_NOT_MET)
        self.assertEqual(Order.objects.count(), 0)

    def test_expected_total_mismatch(self):
        with self.assertRaises(TotalMismatchError):
            self._place(expected_total="219.99")

        result = self._place(expected_total="220")
        self.assertEqual(result.order.total, Decimal("220"))

    # =====================================================
    # ATOMIC CORE
    # =====================================================

    def test_item_failure_leaves_no_orphan_order(self):
        with mock.patch.object(OrderItem, "save", side_effect=DatabaseError("disk full")):
            with self.assertRaises(CommitError):
                self._place()

        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(Customer.objects.count(), 0)
        self.assertEqual(OutboundTask.objects.count(), 0)

    # =====================================================
    # IDEMPOTENCY
    # =====================================================

    def test_same_idempotency_key_replays_order(self):
        first = self._place(idempotency_key="abc-123", coupon_code="SAVE10")
        second = self._place(idempotency_key="abc-123", coupon_code="SAVE10")

        self.assertTrue(second.replayed)
        self.assertEqual(second.order.id, first.order.id)
        self.assertEqual(second.pricing.grand_total, first.pricing.grand_total)
        self.assertEqual(Order.objects.count(), 1)
        self.assertEqual(OutboundTask.objects.count(), 1)
        self.coupon.refresh_from_db()
        self.assertEqual(self.coupon.used_count, 1)

    def test_concurrent_duplicate_resolved_by_constraint(self):
        first = self._place(idempotency_key="race-1")

        with mock.patch(
            "orders.services.checkout_orchestrator._find_replay",
            side_effect=[None, first.order],
        ):
            second = self._place(idempotency_key="race-1")

        self.assertTrue(second.replayed)
        self.assertEqual(second.order.id, first.order.id)
        self.assertEqual(Order.objects.count(), 1)

    def test_keys_are_scoped_per_store(self):
        other = Store.objects.create(name="Other", slug="other", currency="EGP")
        self._place(idempotency_key="same")
        result = self._place(store=other, idempotency_key="same")

        self.assertFalse(result.replayed)
        self.assertEqual(Order.objects.count(), 2)

    # =====================================================
    # SIDE EFFECTS
    # =====================================================

    def test_coupon_usage_incremented(self):
        self._place(coupon_code="save10")
        self.coupon.refresh_from_db()
        self.assertEqual(self.coupon.used_count, 1)

    def test_coupon_increment_stops_at_limit(self):
        self.coupon.usage_limit = 1
        self.coupon.save()

        increment_coupon_usage(self.coupon)
        with self.assertRaises(SideEffectError):
            increment_coupon_usage(self.coupon)

        self.coupon.refresh_from_db()
        self.assertEqual(self.coupon.used_count, 1)

        with self.assertRaises(CouponError) as ctx:
            self._place(coupon_code="SAVE10")
        self.assertEqual(ctx.exception.reason, CouponRejection.EXHAUSTED)

    def test_loyalty_points_debited(self):
        customer = Customer.objects.create(store=self.store, phone="01000000001", name="Mona Adel")
        LoyaltyTransaction.objects.create(
            store=self.store, customer=customer, points=700, type=LoyaltyTransaction.TYPE_EARN
        )

        lines = [CartLine(product_id="p", product_name="x", unit_price=Decimal("5"), quantity=1)]
        result = self._place(lines=lines, redeem_points=True)

        self.assertEqual(result.order.points_redeemed, 500)
        self.assertEqual(result.order.points_discount_amount, Decimal("5"))
        self.assertEqual(result.order.total, Decimal("20"))
        self.assertEqual(loyalty_balance(customer), 200)

        entry = LoyaltyTransaction.objects.get(type=LoyaltyTransaction.TYPE_REDEEM)
        self.assertEqual(entry.points, -500)
        self.assertEqual(entry.order_id, result.order.id)
        self.assertEqual(entry.description, f"Redeemed for Order #{result.order.order_number}")

    def test_fractional_point_value_still_debits_ledger(self):
        self.store.loyalty_redemption_rate = 3
        self.store.save()
        customer = Customer.objects.create(store=self.store, phone="01000000001")
        LoyaltyTransaction.objects.create(
            store=self.store, customer=customer, points=1, type=LoyaltyTransaction.TYPE_EARN
        )
        lines = [CartLine(product_id="p", product_name="x", unit_price=Decimal("100"), quantity=1)]

        first = self._place(lines=lines, redeem_points=True)

        self.assertEqual(first.order.points_redeemed, 1)
        self.assertEqual(first.order.points_discount_amount, Decimal("0.33"))
        self.assertEqual(first.order.total, Decimal("119.67"))
        self.assertEqual(first.side_effect_failures, [])
        self.assertEqual(loyalty_balance(customer), 0)

        second = self._place(lines=lines, redeem_points=True)

        self.assertEqual(second.order.points_redeemed, 0)
        self.assertEqual(second.order.points_discount_amount, Decimal("0"))
        self.assertEqual(loyalty_balance(customer), 0)

    def test_loyalty_not_redeemed_when_program_disabled(self):
        self.store.loyalty_enabled = False
        self.store.save()
        customer = Customer.objects.create(store=self.store, phone="01000000001")
        LoyaltyTransaction.objects.create(
            store=self.store, customer=customer, points=700, type=LoyaltyTransaction.TYPE_EARN
        )

        result = self._place(redeem_points=True)
        self.assertEqual(result.order.points_redeemed, 0)
        self.assertEqual(loyalty_balance(customer), 700)

    def test_loyalty_overdraft_logged_not_fatal(self):
        customer = Customer.objects.create(store=self.store, phone="01000000001")
        LoyaltyTransaction.objects.create(
            store=self.store, customer=customer, points=100, type=LoyaltyTransaction.TYPE_EARN
        )
        stale = LoyaltyAccount(customer_id=customer.id, points_balance=100000, redemption_rate=100)

        with mock.patch(
            "orders.services.checkout_orchestrator.loyalty_account_for", return_value=stale
        ):
            result = self._place(redeem_points=True)

        self.assertEqual(Order.objects.count(), 1)
        self.assertEqual([f.step for f in result.side_effect_failures], [STEP_LOYALTY_DEBIT])
        self.assertEqual(loyalty_balance(customer), 100)

    def test_side_effect_failure_does_not_roll_back_order(self):
        with mock.patch(
            "orders.services.checkout_orchestrator.enqueue_order_created",
            side_effect=RuntimeError("queue down"),
        ):
            result = self._place(coupon_code="SAVE10")

        self.assertEqual(Order.objects.count(), 1)
        self.assertEqual([f.step for f in result.side_effect_failures], [STEP_EXTERNAL_SYNC])
        self.coupon.refresh_from_db()
        self.assertEqual(self.coupon.used_count, 1)

    def test_referral_attribution(self):
        affiliate = Affiliate.objects.create(store=self.store, code="partner", name="Partner")

        result = self._place(referral_code="Partner")

        attribution = ReferralAttribution.objects.get()
        self.assertEqual(attribution.order_id, result.order.id)
        self.assertEqual(attribution.affiliate_id, affiliate.id)
        self.assertEqual(result.order.affiliate_code, "PARTNER")

    def test_unknown_referral_code_is_not_an_error(self):
        result = self._place(referral_code="NOBODY")

        self.assertEqual(result.side_effect_failures, [])
        self.assertEqual(ReferralAttribution.objects.count(), 0)

    def test_outbound_task_enqueued(self):
        result = self._place()

        task = OutboundTask.objects.get()
        self.assertEqual(task.status, OutboundTask.STATUS_PENDING)
        self.assertEqual(task.kind, OutboundTask.KIND_ORDER_CREATED)
        self.assertEqual(task.payload["order"]["id"], str(result.order.id))
        self.assertEqual(len(task.payload["order"]["items"]), 2)
