# customers/models/customer.py

import uuid
from decimal import Decimal

from django.db import models

from store.models import Store


def normalize_phone(phone) -> str:
    return "".join(str(phone or "").split())


class Customer(models.Model):
    """
    A buyer of one store.

    Rules:
    - phone is the dedupe key within a store (unique constraint), so two
      concurrent first orders from the same phone resolve to one row
    - aggregates are seeded when the customer is created by checkout
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name="customers")

    phone = models.CharField(max_length=40)
    name = models.CharField(max_length=120, blank=True, default="")

    # {city, full_address, region_id, alt_phone}
    address = models.JSONField(default=dict, blank=True)

    total_orders = models.PositiveIntegerField(default=0)
    total_spent = models.DecimalField(
        max_digits=14, decimal_places=3, default=Decimal("0.000")
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["store", "phone"],
                name="uniq_customer_phone_per_store",
            ),
        ]

    def save(self, *args, **kwargs):
        self.phone = normalize_phone(self.phone)
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name or 'Customer'} | {self.phone}"
