# public/serializers.py

"""
PUBLIC SERIALIZERS (STOREFRONT CHECKOUT)

Purpose:
- Shared request/response contracts for the public checkout endpoints.

Used by:
- public/views/checkout.py   (quote, full checkout, quick order)
- public/views/coupon.py     (coupon check)
- public/views/order.py      (order status poll)

Notes:
- Transport layer only: shapes and types are validated here; business rules
  (missing fulfillment fields, region required, coupon rules, totals) live in
  the orders services and come back as typed checkout errors.
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from orders.models import Order
from orders.services.pricing import BumpOffer, CartLine, VariantSelection


def _money_field(**kwargs):
    return serializers.DecimalField(max_digits=14, decimal_places=3, **kwargs)


# ============================================================
# CART
# ============================================================


class PublicVariantSelectionSerializer(serializers.Serializer):
    variant_id = serializers.CharField()
    variant_name = serializers.JSONField(required=False, default="")
    option_id = serializers.CharField(required=False, allow_blank=True, default="")
    option_label = serializers.JSONField(required=False, default="")
    price_modifier = _money_field(required=False, default=Decimal("0"))


class PublicCartLineSerializer(serializers.Serializer):
    product_id = serializers.CharField(max_length=64)
    # plain string or {lang: text}
    product_name = serializers.JSONField()
    unit_price = _money_field(min_value=Decimal("0"))
    quantity = serializers.IntegerField(min_value=1)
    variants = PublicVariantSelectionSerializer(many=True, required=False, default=list)


class PublicBumpOfferSerializer(serializers.Serializer):
    price = _money_field(min_value=Decimal("0"))
    label = serializers.JSONField(required=False, default="")
    selected = serializers.BooleanField(default=False)


class PublicFulfillmentSerializer(serializers.Serializer):
    # Blank allowed here: the orchestrator reports missing fields as one typed error.
    name = serializers.CharField(required=False, allow_blank=True, default="")
    phone = serializers.CharField(required=False, allow_blank=True, default="", max_length=40)
    alt_phone = serializers.CharField(required=False, allow_blank=True, default="", max_length=40)
    address = serializers.CharField(required=False, allow_blank=True, default="")
    city = serializers.CharField(required=False, allow_blank=True, default="")
    region_id = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, default=None
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")


def cart_lines_from(items) -> list[CartLine]:
    return [
        CartLine(
            product_id=item["product_id"],
            product_name=item["product_name"],
            unit_price=item["unit_price"],
            quantity=item["quantity"],
            variants=[VariantSelection(**v) for v in item.get("variants") or []],
        )
        for item in items
    ]


def bump_offer_from(data) -> BumpOffer | None:
    if not data:
        return None
    return BumpOffer(
        price=data["price"],
        label=data.get("label") or "",
        selected=bool(data.get("selected")),
    )


# ============================================================
# REQUESTS
# ============================================================


class PublicCheckoutQuoteSerializer(serializers.Serializer):
    store_id = serializers.UUIDField()
    items = PublicCartLineSerializer(many=True)
    region_id = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    coupon_code = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    phone = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    redeem_points = serializers.BooleanField(default=False)
    bump_offer = PublicBumpOfferSerializer(required=False, allow_null=True, default=None)


class PublicCheckoutSerializer(serializers.Serializer):
    store_id = serializers.UUIDField()
    items = PublicCartLineSerializer(many=True)
    customer = PublicFulfillmentSerializer()
    coupon_code = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    redeem_points = serializers.BooleanField(default=False)
    bump_offer = PublicBumpOfferSerializer(required=False, allow_null=True, default=None)
    referral_code = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    idempotency_key = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, default=None, max_length=128
    )
    expected_total = _money_field(required=False, allow_null=True, default=None)
    language = serializers.CharField(required=False, allow_blank=True, default="", max_length=8)


class PublicQuickOrderOptionSerializer(serializers.Serializer):
    id = serializers.CharField()
    label = serializers.JSONField(required=False, default="")
    price_modifier = _money_field(required=False, allow_null=True, default=Decimal("0"))


class PublicQuickOrderVariantSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.JSONField(required=False, default="")
    options = PublicQuickOrderOptionSerializer(many=True, required=False, default=list)


class PublicQuickOrderProductSerializer(serializers.Serializer):
    id = serializers.CharField(max_length=64)
    name = serializers.JSONField()
    price = _money_field(min_value=Decimal("0"))


class PublicQuickOrderSerializer(serializers.Serializer):
    store_id = serializers.UUIDField()
    product = PublicQuickOrderProductSerializer()
    quantity = serializers.IntegerField(min_value=1, max_value=100)
    variants = PublicQuickOrderVariantSerializer(many=True, required=False, default=list)
    # one {variant_id: option_id} mapping per unit
    selections = serializers.ListField(
        child=serializers.DictField(child=serializers.CharField(allow_blank=True)),
        required=False,
        default=list,
    )
    customer = PublicFulfillmentSerializer()
    coupon_code = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    referral_code = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
    idempotency_key = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, default=None, max_length=128
    )
    expected_total = _money_field(required=False, allow_null=True, default=None)
    language = serializers.CharField(required=False, allow_blank=True, default="", max_length=8)


class PublicCouponValidateSerializer(serializers.Serializer):
    store_id = serializers.UUIDField()
    code = serializers.CharField()
    subtotal = _money_field(min_value=Decimal("0"))


# ============================================================
# RESPONSES
# ============================================================


class PublicPricingSerializer(serializers.Serializer):
    subtotal = serializers.CharField()
    shipping_cost = serializers.CharField()
    discount_amount = serializers.CharField()
    points_discount_amount = serializers.CharField()
    points_redeemed = serializers.IntegerField()
    bump_amount = serializers.CharField()
    grand_total = serializers.CharField()


class PublicCheckoutResponseSerializer(serializers.Serializer):
    ok = serializers.BooleanField()
    order_id = serializers.UUIDField()
    order_number = serializers.CharField()
    currency = serializers.CharField()
    pricing = PublicPricingSerializer()
    replayed = serializers.BooleanField()


class PublicErrorSerializer(serializers.Serializer):
    type = serializers.CharField()
    code = serializers.CharField()
    detail = serializers.CharField()
    reason = serializers.CharField(required=False)


class PublicErrorResponseSerializer(serializers.Serializer):
    ok = serializers.BooleanField()
    error = PublicErrorSerializer()


class PublicOrderStatusSerializer(serializers.ModelSerializer):
    order_id = serializers.UUIDField(source="id", read_only=True)

    class Meta:
        model = Order
        fields = [
            "order_id",
            "order_number",
            "status",
            "source",
            "total",
            "currency",
            "created_at",
        ]
        read_only_fields = fields
