# orders/models/order_item.py

"""
ORDER ITEM (IMMUTABLE SNAPSHOT)

One row per cart line, plus one synthetic row for a selected bump offer.
product_snapshot freezes name + variant labels at purchase time so later
catalog edits cannot rewrite historical orders.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from .order import Order


class OrderItem(models.Model):
    KIND_PRODUCT = "product"
    KIND_BUMP_OFFER = "bump_offer"

    KIND_CHOICES = [
        (KIND_PRODUCT, "Product"),
        (KIND_BUMP_OFFER, "Bump offer"),
    ]

    BUMP_PRODUCT_ID = "bump-offer"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")

    # Catalog lives outside this service: keep the upstream id as text.
    product_id = models.CharField(max_length=64, null=True, blank=True)
    kind = models.CharField(max_length=16, choices=KIND_CHOICES, default=KIND_PRODUCT)

    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        validators=[MinValueValidator(Decimal("0"))],
    )
    total_price = models.DecimalField(max_digits=14, decimal_places=3)

    # {name, variants: [{variant_id, variant_name, option_id, option_label, price_modifier}]}
    product_snapshot = models.JSONField(default=dict)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["order"], name="order_item_order_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Order items are immutable once created")
        if self.quantity is None or int(self.quantity) < 1:
            raise ValidationError("quantity must be >= 1")
        super().save(*args, **kwargs)

    def __str__(self):
        name = (self.product_snapshot or {}).get("name") or self.product_id or self.kind
        return f"{name} x{self.quantity}"
