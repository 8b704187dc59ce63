# customers/migrations/0002_loyaltytransaction_order.py

"""
Ledger rows reference the order they were redeemed for.
Separate from 0001 because orders.0001 depends on customers.0001.
"""

from __future__ import annotations

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("customers", "0001_initial"),
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="loyaltytransaction",
            name="order",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="loyalty_transactions",
                to="orders.order",
            ),
        ),
    ]
