# store/models/store.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


def _default_currency():
    return getattr(settings, "DEFAULT_CURRENCY", "EGP")


def _default_redemption_rate():
    return int(getattr(settings, "LOYALTY_DEFAULT_REDEMPTION_RATE", 100) or 100)


class Store(models.Model):
    """
    A tenant storefront and its checkout configuration.

    Checkout reads (never writes) these settings:
    - currency (drives rounding to the minor unit)
    - shipping rule: fixed amount OR per-region price table
    - loyalty program switch + redemption rate (points per currency unit)
    - outbound order webhook (best-effort external sync target)
    """

    SHIPPING_FIXED = "fixed"
    SHIPPING_BY_REGION = "by_region"

    SHIPPING_MODE_CHOICES = [
        (SHIPPING_FIXED, "Fixed"),
        (SHIPPING_BY_REGION, "By region"),
    ]

    UNMAPPED_REGION_FREE = "free"
    UNMAPPED_REGION_REJECT = "reject"

    UNMAPPED_REGION_CHOICES = [
        (UNMAPPED_REGION_FREE, "Free shipping"),
        (UNMAPPED_REGION_REJECT, "Reject checkout"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=80, unique=True)

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stores",
    )

    currency = models.CharField(max_length=3, default=_default_currency)

    shipping_mode = models.CharField(
        max_length=16, choices=SHIPPING_MODE_CHOICES, default=SHIPPING_FIXED
    )
    shipping_fixed_amount = models.DecimalField(
        max_digits=14, decimal_places=3, default=Decimal("0.000")
    )
    shipping_region_prices = models.JSONField(
        default=dict,
        blank=True,
        help_text="Region id -> shipping amount, used when shipping_mode=by_region.",
    )
    unmapped_region_policy = models.CharField(
        max_length=16,
        choices=UNMAPPED_REGION_CHOICES,
        default=UNMAPPED_REGION_FREE,
        help_text="What a selected region missing from the price table costs.",
    )

    loyalty_enabled = models.BooleanField(default=False)
    loyalty_redemption_rate = models.PositiveIntegerField(
        default=_default_redemption_rate,
        help_text="Points needed for one currency unit of discount.",
    )

    order_webhook_url = models.URLField(blank=True, default="")

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def clean(self):
        self.currency = (self.currency or "").strip().upper()
        if len(self.currency) != 3:
            raise ValidationError({"currency": "currency must be a 3-letter ISO code"})

        if self.loyalty_redemption_rate is not None and int(self.loyalty_redemption_rate) <= 0:
            raise ValidationError({"loyalty_redemption_rate": "must be >= 1"})

        prices = self.shipping_region_prices or {}
        if not isinstance(prices, dict):
            raise ValidationError({"shipping_region_prices": "must be a mapping"})
        for region, amount in prices.items():
            try:
                if Decimal(str(amount)) < Decimal("0"):
                    raise ValidationError(
                        {"shipping_region_prices": f"negative price for region {region}"}
                    )
            except ArithmeticError as exc:
                raise ValidationError(
                    {"shipping_region_prices": f"invalid price for region {region}"}
                ) from exc

    def save(self, *args, **kwargs):
        self.currency = (self.currency or "").strip().upper()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name} ({self.slug})"
