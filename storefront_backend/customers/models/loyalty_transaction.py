# customers/models/loyalty_transaction.py

import uuid

from django.core.exceptions import ValidationError
from django.db import models

from store.models import Store

from .customer import Customer


class LoyaltyTransaction(models.Model):
    """
    Append-only loyalty ledger row.

    The points balance of a customer is the SUM of their rows; nothing stores
    a running balance. Redemptions are negative rows referencing the order.
    """

    TYPE_EARN = "earn"
    TYPE_REDEEM = "redeem"
    TYPE_ADJUST = "adjust"

    TYPE_CHOICES = [
        (TYPE_EARN, "Earn"),
        (TYPE_REDEEM, "Redeem"),
        (TYPE_ADJUST, "Adjust"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    store = models.ForeignKey(
        Store, on_delete=models.CASCADE, related_name="loyalty_transactions"
    )
    customer = models.ForeignKey(
        Customer, on_delete=models.CASCADE, related_name="loyalty_transactions"
    )

    points = models.IntegerField()
    type = models.CharField(max_length=16, choices=TYPE_CHOICES)

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="loyalty_transactions",
    )
    description = models.CharField(max_length=255, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["customer", "created_at"], name="loyalty_tx_customer_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Loyalty ledger rows are append-only")
        if self.type == self.TYPE_REDEEM and int(self.points) >= 0:
            raise ValidationError("Redemption rows must carry negative points")
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.customer_id} | {self.type} | {self.points}"
