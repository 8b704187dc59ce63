# integrations/services/outbound.py

"""
OUTBOUND SYNC QUEUE

Commit path:
- enqueue_order_created() writes an OutboundTask row and returns; nothing is
  sent while the buyer waits.

Worker path (manage.py dispatch_outbound_tasks):
- dispatch_due_tasks() drains due pending rows one at a time
- target URL: store.order_webhook_url, else settings.OUTBOUND["WEBHOOK_URL"]
- no target   -> skipped
- HTTP 2xx    -> delivered
- otherwise   -> retried with exponential backoff, failed after MAX_ATTEMPTS
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from datetime import timedelta
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from django.conf import settings
from django.db import connection, transaction
from django.utils import timezone

from integrations.models import OutboundTask

logger = logging.getLogger(__name__)

MAX_BACKOFF_SECONDS = 6 * 60 * 60


class DeliveryError(Exception):
    pass


def _outbound_cfg() -> dict:
    cfg = getattr(settings, "OUTBOUND", {}) or {}
    return cfg if isinstance(cfg, dict) else {}


def _safe_preview(text: str, limit: int = 500) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + " ...(truncated)"


# ============================================================
# ENQUEUE
# ============================================================


def order_created_payload(order) -> dict:
    items = [
        {
            "product_id": item.product_id,
            "kind": item.kind,
            "quantity": item.quantity,
            "unit_price": str(item.unit_price),
            "total_price": str(item.total_price),
            "product_snapshot": item.product_snapshot,
        }
        for item in order.items.all()
    ]

    return {
        "event": OutboundTask.KIND_ORDER_CREATED,
        "order": {
            "id": str(order.id),
            "order_number": order.order_number,
            "store_id": str(order.store_id),
            "status": order.status,
            "source": order.source,
            "currency": order.currency,
            "subtotal_amount": str(order.subtotal_amount),
            "discount_amount": str(order.discount_amount),
            "points_discount_amount": str(order.points_discount_amount),
            "points_redeemed": order.points_redeemed,
            "shipping_cost": str(order.shipping_cost),
            "bump_amount": str(order.bump_amount),
            "total": str(order.total),
            "coupon_code": order.coupon_code,
            "affiliate_code": order.affiliate_code,
            "customer_snapshot": order.customer_snapshot,
            "shipping_address": order.shipping_address,
            "notes": order.notes,
            "created_at": order.created_at.isoformat() if order.created_at else None,
            "items": items,
        },
    }


def enqueue_order_created(order) -> OutboundTask:
    task = OutboundTask.objects.create(
        store_id=order.store_id,
        kind=OutboundTask.KIND_ORDER_CREATED,
        payload=order_created_payload(order),
        next_attempt_at=timezone.now(),
    )
    logger.info(
        "Outbound task enqueued",
        extra={"task_id": str(task.id), "kind": task.kind, "order_id": str(order.id)},
    )
    return task


# ============================================================
# DELIVERY
# ============================================================


def target_url_for(task: OutboundTask) -> str:
    url = (getattr(task.store, "order_webhook_url", "") or "").strip()
    if url:
        return url
    return (_outbound_cfg().get("WEBHOOK_URL") or "").strip()


def sign_body(body: bytes) -> str:
    secret = (_outbound_cfg().get("SIGNING_SECRET") or "").strip()
    if not secret:
        return ""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def post_json(url: str, payload: dict, *, event: str, timeout: int) -> int:
    body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
        "User-Agent": "storefront-outbound/1.0",
        "X-Storefront-Event": event,
    }
    signature = sign_body(body)
    if signature:
        headers["X-Storefront-Signature"] = signature

    req = Request(url, data=body, headers=headers, method="POST")

    try:
        with urlopen(req, timeout=timeout) as resp:
            status = int(getattr(resp, "status", 200))
    except HTTPError as e:
        raw = ""
        try:
            raw = e.read().decode("utf-8", errors="replace")
        except OSError:
            raw = ""
        raise DeliveryError(f"HTTP {e.code}: {_safe_preview(raw) or e.reason}") from e
    except URLError as e:
        raise DeliveryError(f"URLError: {e.reason}") from e
    except OSError as e:
        raise DeliveryError(f"Request failed: {e}") from e

    if status < 200 or status >= 300:
        raise DeliveryError(f"HTTP {status}")
    return status


def backoff_seconds(attempts: int) -> int:
    base = int(_outbound_cfg().get("RETRY_BASE_SECONDS") or 30)
    exponent = max(int(attempts) - 1, 0)
    return min(base * (2 ** exponent), MAX_BACKOFF_SECONDS)


def _due_queryset(now):
    return OutboundTask.objects.filter(
        status=OutboundTask.STATUS_PENDING, next_attempt_at__lte=now
    )


def _lock(qs):
    if connection.features.has_select_for_update_skip_locked:
        return qs.select_for_update(skip_locked=True)
    return qs.select_for_update()


def process_task(task_id, *, now=None) -> str | None:
    """
    Deliver one task (row-locked). Returns the resulting status, or None when
    another worker took it or it is no longer due.
    """
    cfg = _outbound_cfg()
    max_attempts = int(cfg.get("MAX_ATTEMPTS") or 5)
    timeout = int(cfg.get("TIMEOUT_SECONDS") or 10)
    now = now or timezone.now()

    with transaction.atomic():
        task = _lock(_due_queryset(now).select_related("store").filter(pk=task_id)).first()
        if task is None:
            return None

        url = target_url_for(task)
        if not url:
            task.status = OutboundTask.STATUS_SKIPPED
            task.last_error = "No delivery target configured"
            task.save(update_fields=["status", "last_error"])
            logger.info("Outbound task skipped", extra={"task_id": str(task.id)})
            return task.status

        task.attempts += 1
        try:
            post_json(url, task.payload, event=task.kind, timeout=timeout)
        except DeliveryError as exc:
            task.last_error = str(exc)
            if task.attempts >= max_attempts:
                task.status = OutboundTask.STATUS_FAILED
                logger.error(
                    "Outbound task failed permanently",
                    extra={"task_id": str(task.id), "attempts": task.attempts, "error": str(exc)},
                )
            else:
                task.next_attempt_at = now + timedelta(seconds=backoff_seconds(task.attempts))
                logger.warning(
                    "Outbound delivery failed, retry scheduled",
                    extra={
                        "task_id": str(task.id),
                        "attempts": task.attempts,
                        "next_attempt_at": task.next_attempt_at.isoformat(),
                        "error": str(exc),
                    },
                )
            task.save(update_fields=["attempts", "status", "last_error", "next_attempt_at"])
            return task.status

        task.status = OutboundTask.STATUS_DELIVERED
        task.delivered_at = timezone.now()
        task.last_error = ""
        task.save(update_fields=["attempts", "status", "last_error", "delivered_at"])
        logger.info(
            "Outbound task delivered",
            extra={"task_id": str(task.id), "attempts": task.attempts},
        )
        return task.status


def dispatch_due_tasks(*, limit: int = 100, now=None) -> dict:
    now = now or timezone.now()
    ids = list(_due_queryset(now).values_list("id", flat=True)[: int(limit)])

    summary = {
        OutboundTask.STATUS_DELIVERED: 0,
        OutboundTask.STATUS_PENDING: 0,
        OutboundTask.STATUS_FAILED: 0,
        OutboundTask.STATUS_SKIPPED: 0,
    }
    for task_id in ids:
        status = process_task(task_id, now=now)
        if status is not None:
            summary[status] += 1
    return summary
