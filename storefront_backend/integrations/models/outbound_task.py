# integrations/models/outbound_task.py

import uuid

from django.db import models
from django.utils import timezone

from store.models import Store


class OutboundTask(models.Model):
    """
    One queued delivery to an external system (outbox row).

    Lifecycle:
    pending -> delivered
    pending -> pending (retry scheduled, attempts += 1)
    pending -> failed  (attempts exhausted)
    pending -> skipped (no delivery target configured)
    """

    KIND_ORDER_CREATED = "order.created"

    KIND_CHOICES = [
        (KIND_ORDER_CREATED, "Order created"),
    ]

    STATUS_PENDING = "pending"
    STATUS_DELIVERED = "delivered"
    STATUS_FAILED = "failed"
    STATUS_SKIPPED = "skipped"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_FAILED, "Failed"),
        (STATUS_SKIPPED, "Skipped"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name="outbound_tasks")

    kind = models.CharField(max_length=64, choices=KIND_CHOICES)
    payload = models.JSONField(default=dict)

    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)
    attempts = models.PositiveIntegerField(default=0)
    next_attempt_at = models.DateTimeField(default=timezone.now)
    last_error = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["next_attempt_at", "created_at"]
        indexes = [
            models.Index(fields=["status", "next_attempt_at"], name="outbound_status_due_idx"),
        ]

    def __str__(self):
        return f"{self.kind} | {self.status} | attempts={self.attempts}"
