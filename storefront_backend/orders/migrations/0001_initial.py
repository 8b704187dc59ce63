# orders/migrations/0001_initial.py

from __future__ import annotations

import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


def _money(**kwargs):
    return models.DecimalField(decimal_places=3, max_digits=14, **kwargs)


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("store", "0001_initial"),
        ("customers", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("order_number", models.CharField(blank=True, db_index=True, max_length=32)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("shipped", "Shipped"),
                            ("delivered", "Delivered"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                        max_length=32,
                    ),
                ),
                (
                    "source",
                    models.CharField(
                        choices=[("checkout", "Checkout"), ("quick_order", "Quick order")],
                        default="checkout",
                        max_length=16,
                    ),
                ),
                ("subtotal_amount", _money(default=Decimal("0.000"))),
                ("discount_amount", _money(default=Decimal("0.000"))),
                ("points_discount_amount", _money(default=Decimal("0.000"))),
                ("points_redeemed", models.PositiveIntegerField(default=0)),
                ("shipping_cost", _money(default=Decimal("0.000"))),
                ("bump_amount", _money(default=Decimal("0.000"))),
                ("total", _money(default=Decimal("0.000"))),
                ("currency", models.CharField(max_length=3)),
                ("coupon_code", models.CharField(blank=True, max_length=64, null=True)),
                ("affiliate_code", models.CharField(blank=True, max_length=64, null=True)),
                ("customer_snapshot", models.JSONField(blank=True, default=dict)),
                ("shipping_address", models.JSONField(blank=True, default=dict)),
                ("notes", models.TextField(blank=True, default="")),
                ("idempotency_key", models.CharField(blank=True, max_length=128, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="customers.customer",
                    ),
                ),
                (
                    "store",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="store.store",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["store", "created_at"], name="order_store_created_idx"),
                    models.Index(fields=["store", "status"], name="order_store_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("idempotency_key__isnull", False)),
                        fields=("store", "idempotency_key"),
                        name="uniq_order_idempotency_key_per_store",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("product_id", models.CharField(blank=True, max_length=64, null=True)),
                (
                    "kind",
                    models.CharField(
                        choices=[("product", "Product"), ("bump_offer", "Bump offer")],
                        default="product",
                        max_length=16,
                    ),
                ),
                (
                    "quantity",
                    models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)]),
                ),
                (
                    "unit_price",
                    _money(validators=[django.core.validators.MinValueValidator(Decimal("0"))]),
                ),
                ("total_price", _money()),
                ("product_snapshot", models.JSONField(default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["order"], name="order_item_order_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReferralAttribution",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("code", models.CharField(max_length=64)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "affiliate",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="attributions",
                        to="store.affiliate",
                    ),
                ),
                (
                    "order",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="referral_attribution",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
