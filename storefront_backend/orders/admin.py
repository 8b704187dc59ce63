# orders/admin.py

from django.contrib import admin

from orders.models import Order, OrderItem, ReferralAttribution


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = (
        "product_id",
        "kind",
        "quantity",
        "unit_price",
        "total_price",
        "product_snapshot",
    )

    def has_add_permission(self, request, obj=None):
        return False


# ======================================================
# ORDER ADMIN
# ======================================================


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "store",
        "status",
        "source",
        "total",
        "currency",
        "created_at",
    )
    readonly_fields = (
        "order_number",
        "store",
        "customer",
        "source",
        "subtotal_amount",
        "discount_amount",
        "points_discount_amount",
        "points_redeemed",
        "shipping_cost",
        "bump_amount",
        "total",
        "currency",
        "coupon_code",
        "affiliate_code",
        "customer_snapshot",
        "shipping_address",
        "idempotency_key",
        "created_at",
        "updated_at",
    )
    search_fields = ("order_number", "customer__phone")
    list_filter = ("status", "source", "created_at")
    inlines = [OrderItemInline]


@admin.register(ReferralAttribution)
class ReferralAttributionAdmin(admin.ModelAdmin):
    list_display = ("code", "affiliate", "order", "created_at")
    search_fields = ("code", "order__order_number")
