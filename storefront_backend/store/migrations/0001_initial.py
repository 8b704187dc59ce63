# store/migrations/0001_initial.py

from __future__ import annotations

import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import store.models.store


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Store",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("slug", models.SlugField(max_length=80, unique=True)),
                ("currency", models.CharField(default=store.models.store._default_currency, max_length=3)),
                (
                    "shipping_mode",
                    models.CharField(
                        choices=[("fixed", "Fixed"), ("by_region", "By region")],
                        default="fixed",
                        max_length=16,
                    ),
                ),
                ("shipping_fixed_amount", models.DecimalField(decimal_places=3, default=Decimal("0.000"), max_digits=14)),
                (
                    "shipping_region_prices",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Region id -> shipping amount, used when shipping_mode=by_region.",
                    ),
                ),
                (
                    "unmapped_region_policy",
                    models.CharField(
                        choices=[("free", "Free shipping"), ("reject", "Reject checkout")],
                        default="free",
                        help_text="What a selected region missing from the price table costs.",
                        max_length=16,
                    ),
                ),
                ("loyalty_enabled", models.BooleanField(default=False)),
                (
                    "loyalty_redemption_rate",
                    models.PositiveIntegerField(
                        default=store.models.store._default_redemption_rate,
                        help_text="Points needed for one currency unit of discount.",
                    ),
                ),
                ("order_webhook_url", models.URLField(blank=True, default="")),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "owner",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stores",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Coupon",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("code", models.CharField(max_length=64)),
                (
                    "discount_type",
                    models.CharField(
                        choices=[("percentage", "Percentage"), ("fixed", "Fixed amount")],
                        default="percentage",
                        max_length=16,
                    ),
                ),
                (
                    "discount_value",
                    models.DecimalField(
                        decimal_places=3,
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                    ),
                ),
                ("min_order_amount", models.DecimalField(blank=True, decimal_places=3, max_digits=14, null=True)),
                ("usage_limit", models.PositiveIntegerField(blank=True, null=True)),
                ("used_count", models.PositiveIntegerField(default=0)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="coupons",
                        to="store.store",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(fields=("store", "code"), name="uniq_coupon_code_per_store"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Affiliate",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("code", models.CharField(max_length=64)),
                ("name", models.CharField(blank=True, default="", max_length=120)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="affiliates",
                        to="store.store",
                    ),
                ),
            ],
            options={
                "ordering": ["code"],
                "constraints": [
                    models.UniqueConstraint(fields=("store", "code"), name="uniq_affiliate_code_per_store"),
                ],
            },
        ),
    ]
