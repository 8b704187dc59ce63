# customers/admin.py

from django.contrib import admin

from customers.models import Customer, LoyaltyTransaction


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("phone", "name", "store", "total_orders", "total_spent", "created_at")
    search_fields = ("phone", "name")
    readonly_fields = ("created_at",)


@admin.register(LoyaltyTransaction)
class LoyaltyTransactionAdmin(admin.ModelAdmin):
    list_display = ("customer", "type", "points", "order", "created_at")
    list_filter = ("type",)
    search_fields = ("customer__phone", "description")
    readonly_fields = (
        "store",
        "customer",
        "points",
        "type",
        "order",
        "description",
        "created_at",
    )

    # Ledger is append-only.
    def has_change_permission(self, request, obj=None):
        return obj is None

    def has_delete_permission(self, request, obj=None):
        return False
