# orders/models/referral_attribution.py

import uuid

from django.db import models

from store.models import Affiliate

from .order import Order


class ReferralAttribution(models.Model):
    """
    Links an order to the referral partner whose code the buyer arrived with.
    At most one attribution per order.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.OneToOneField(
        Order, on_delete=models.CASCADE, related_name="referral_attribution"
    )
    affiliate = models.ForeignKey(
        Affiliate, on_delete=models.PROTECT, related_name="attributions"
    )
    code = models.CharField(max_length=64)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.code} -> {self.order_id}"
