# store/models/affiliate.py

import uuid

from django.db import models

from .store import Store


class Affiliate(models.Model):
    """
    Referral partner of a store.

    The storefront remembers the partner's code (the `ref` query param) in an
    `affiliate_code` cookie; checkout resolves it here for attribution.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name="affiliates")

    code = models.CharField(max_length=64)
    name = models.CharField(max_length=120, blank=True, default="")
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["code"]
        constraints = [
            models.UniqueConstraint(
                fields=["store", "code"],
                name="uniq_affiliate_code_per_store",
            ),
        ]

    def save(self, *args, **kwargs):
        self.code = str(self.code or "").strip().upper()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.code} | {self.store_id}"
