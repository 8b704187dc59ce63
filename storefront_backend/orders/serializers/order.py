# orders/serializers/order.py

from rest_framework import serializers

from orders.models import Order, OrderItem, ReferralAttribution


class OrderItemSerializer(serializers.ModelSerializer):
    """
    Order line (read-only). Name and variant labels come from the purchase-time
    snapshot, never from the live catalog.
    """

    product_name = serializers.SerializerMethodField()

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "kind",
            "product_name",
            "quantity",
            "unit_price",
            "total_price",
            "product_snapshot",
        ]
        read_only_fields = fields

    def get_product_name(self, obj):
        return (obj.product_snapshot or {}).get("name") or ""


class ReferralAttributionSerializer(serializers.ModelSerializer):
    affiliate_name = serializers.CharField(source="affiliate.name", read_only=True)

    class Meta:
        model = ReferralAttribution
        fields = ["code", "affiliate", "affiliate_name", "created_at"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    referral = serializers.SerializerMethodField()
    store_name = serializers.CharField(source="store.name", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "store",
            "store_name",
            "customer",
            "status",
            "source",
            "currency",
            "subtotal_amount",
            "discount_amount",
            "points_discount_amount",
            "points_redeemed",
            "shipping_cost",
            "bump_amount",
            "total",
            "coupon_code",
            "affiliate_code",
            "customer_snapshot",
            "shipping_address",
            "notes",
            "items",
            "referral",
            "created_at",
        ]
        read_only_fields = fields

    def get_referral(self, obj):
        attribution = getattr(obj, "referral_attribution", None)
        if attribution is None:
            return None
        return ReferralAttributionSerializer(attribution).data
