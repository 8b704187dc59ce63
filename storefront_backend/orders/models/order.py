# orders/models/order.py

import time
import uuid
from decimal import Decimal

from django.db import models
from django.db.models import Q

from customers.models import Customer
from store.models import Store


def generate_order_number() -> str:
    """
    Display number: ORD- + last 6 digits of the epoch milliseconds.
    Not collision-proof; the UUID id is the identity.
    """
    return f"ORD-{int(time.time() * 1000) % 1_000_000:06d}"


class Order(models.Model):
    """
    A storefront order, created once by the checkout commit.

    GUARANTEES:
    - Financial snapshot is stored exactly as priced at commit and never
      recomputed (immutable after insert)
    - Customer/shipping snapshots freeze what the buyer typed
    - idempotency_key (when supplied) is unique per store: retried submits
      resolve to the same order instead of duplicating it
    """

    STATUS_PENDING = "pending"
    STATUS_CONFIRMED = "confirmed"
    STATUS_SHIPPED = "shipped"
    STATUS_DELIVERED = "delivered"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_SHIPPED, "Shipped"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    SOURCE_CHECKOUT = "checkout"
    SOURCE_QUICK_ORDER = "quick_order"

    SOURCE_CHOICES = [
        (SOURCE_CHECKOUT, "Checkout"),
        (SOURCE_QUICK_ORDER, "Quick order"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order_number = models.CharField(max_length=32, blank=True, db_index=True)

    store = models.ForeignKey(Store, on_delete=models.PROTECT, related_name="orders")
    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="orders",
    )

    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_PENDING)
    source = models.CharField(max_length=16, choices=SOURCE_CHOICES, default=SOURCE_CHECKOUT)

    # Financial snapshot (server authoritative)
    subtotal_amount = models.DecimalField(
        max_digits=14, decimal_places=3, default=Decimal("0.000")
    )
    discount_amount = models.DecimalField(
        max_digits=14, decimal_places=3, default=Decimal("0.000")
    )
    points_discount_amount = models.DecimalField(
        max_digits=14, decimal_places=3, default=Decimal("0.000")
    )
    points_redeemed = models.PositiveIntegerField(default=0)
    shipping_cost = models.DecimalField(
        max_digits=14, decimal_places=3, default=Decimal("0.000")
    )
    bump_amount = models.DecimalField(
        max_digits=14, decimal_places=3, default=Decimal("0.000")
    )
    total = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal("0.000"))
    currency = models.CharField(max_length=3)

    coupon_code = models.CharField(max_length=64, null=True, blank=True)
    affiliate_code = models.CharField(max_length=64, null=True, blank=True)

    # {name, phone, alt_phone, city, region_id, address}
    customer_snapshot = models.JSONField(default=dict, blank=True)
    # {city, address, region_id}
    shipping_address = models.JSONField(default=dict, blank=True)
    notes = models.TextField(blank=True, default="")

    idempotency_key = models.CharField(max_length=128, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["store", "created_at"], name="order_store_created_idx"),
            models.Index(fields=["store", "status"], name="order_store_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["store", "idempotency_key"],
                condition=Q(idempotency_key__isnull=False),
                name="uniq_order_idempotency_key_per_store",
            ),
        ]

    _IMMUTABLE_FIELDS = (
        "store_id",
        "customer_id",
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
        "customer_snapshot",
        "shipping_address",
        "idempotency_key",
    )

    def _validate_immutable(self, previous: "Order"):
        for name in self._IMMUTABLE_FIELDS:
            if getattr(self, name) != getattr(previous, name):
                raise ValueError(
                    f"Order is immutable after checkout. Field '{name}' cannot be changed."
                )

    def save(self, *args, **kwargs):
        if self.pk and not self._state.adding:
            previous = Order.objects.filter(pk=self.pk).first()
            if previous is not None:
                self._validate_immutable(previous)

        if not self.order_number:
            self.order_number = generate_order_number()

        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.order_number} | {self.total} {self.currency} | {self.status}"
