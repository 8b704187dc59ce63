# integrations/admin.py

from django.contrib import admin

from integrations.models import OutboundTask


@admin.register(OutboundTask)
class OutboundTaskAdmin(admin.ModelAdmin):
    list_display = ("kind", "store", "status", "attempts", "next_attempt_at", "delivered_at")
    list_filter = ("status", "kind")
    readonly_fields = ("payload", "attempts", "last_error", "created_at", "delivered_at")
