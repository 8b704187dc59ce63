# store/admin.py

from django.contrib import admin

from store.models import Affiliate, Coupon, Store


# ======================================================
# STORE ADMIN
# ======================================================


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "slug",
        "currency",
        "shipping_mode",
        "loyalty_enabled",
        "is_active",
    )
    search_fields = ("name", "slug")
    list_filter = ("shipping_mode", "loyalty_enabled", "is_active")
    readonly_fields = ("created_at", "updated_at")


# ======================================================
# COUPON ADMIN
# ======================================================


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "store",
        "discount_type",
        "discount_value",
        "used_count",
        "usage_limit",
        "expires_at",
        "is_active",
    )
    # used_count is moved by checkout only
    readonly_fields = ("used_count", "created_at")
    search_fields = ("code",)
    list_filter = ("discount_type", "is_active")


@admin.register(Affiliate)
class AffiliateAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "store", "is_active")
    search_fields = ("code", "name")
    list_filter = ("is_active",)
