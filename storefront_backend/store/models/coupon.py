# store/models/coupon.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from .store import Store


class Coupon(models.Model):
    """
    Store-scoped discount code.

    Rules:
    - code is unique per store, case-insensitive (normalized to upper-case on save)
    - used_count is only ever moved by the checkout commit, via a conditional
      UPDATE (see orders.services.checkout_orchestrator)
    """

    TYPE_PERCENTAGE = "percentage"
    TYPE_FIXED = "fixed"

    TYPE_CHOICES = [
        (TYPE_PERCENTAGE, "Percentage"),
        (TYPE_FIXED, "Fixed amount"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name="coupons")

    code = models.CharField(max_length=64)

    discount_type = models.CharField(
        max_length=16, choices=TYPE_CHOICES, default=TYPE_PERCENTAGE
    )
    discount_value = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        validators=[MinValueValidator(Decimal("0"))],
    )

    min_order_amount = models.DecimalField(
        max_digits=14, decimal_places=3, null=True, blank=True
    )
    usage_limit = models.PositiveIntegerField(null=True, blank=True)
    used_count = models.PositiveIntegerField(default=0)

    expires_at = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["store", "code"],
                name="uniq_coupon_code_per_store",
            ),
        ]

    @staticmethod
    def normalize_code(code) -> str:
        return str(code or "").strip().upper()

    def clean(self):
        self.code = self.normalize_code(self.code)
        if not self.code:
            raise ValidationError({"code": "code is required"})

        if (
            self.discount_type == self.TYPE_PERCENTAGE
            and self.discount_value is not None
            and Decimal(self.discount_value) > Decimal("100")
        ):
            raise ValidationError({"discount_value": "percentage cannot exceed 100"})

    def save(self, *args, **kwargs):
        self.code = self.normalize_code(self.code)
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.code} ({self.discount_type} {self.discount_value})"
