import hashlib
import hmac
from datetime import timedelta
from io import StringIO
from unittest import mock
from urllib.error import URLError

from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone

from integrations.models import OutboundTask
from integrations.services.outbound import (
    MAX_BACKOFF_SECONDS,
    backoff_seconds,
    dispatch_due_tasks,
    process_task,
)
from store.models import Store

OUTBOUND_TEST_CFG = {
    "WEBHOOK_URL": "https://sync.example.test/orders",
    "MAX_ATTEMPTS": 3,
    "RETRY_BASE_SECONDS": 30,
    "TIMEOUT_SECONDS": 5,
    "SIGNING_SECRET": "",
}


def _ok_response(mocked_urlopen, status=200):
    mocked_urlopen.return_value.__enter__.return_value.status = status
    return mocked_urlopen


@override_settings(OUTBOUND=OUTBOUND_TEST_CFG)
class OutboundDeliveryTests(TestCase):
    """
    Tests for the outbound sync worker.

    GUARANTEES:
    - 2xx marks a task delivered
    - Failures reschedule with exponential backoff until MAX_ATTEMPTS, then fail
    - No delivery target means skipped, never retried
    """

    def setUp(self):
        self.store = Store.objects.create(name="Demo", slug="demo", currency="EGP")
        self.task = OutboundTask.objects.create(
            store=self.store,
            kind=OutboundTask.KIND_ORDER_CREATED,
            payload={"event": "order.created", "order": {"id": "abc"}},
        )

    @mock.patch("integrations.services.outbound.urlopen")
    def test_delivered_on_2xx(self, mocked_urlopen):
        _ok_response(mocked_urlopen)

        status = process_task(self.task.id)

        self.assertEqual(status, OutboundTask.STATUS_DELIVERED)
        self.task.refresh_from_db()
        self.assertEqual(self.task.attempts, 1)
        self.assertIsNotNone(self.task.delivered_at)

        request = mocked_urlopen.call_args[0][0]
        self.assertEqual(request.full_url, OUTBOUND_TEST_CFG["WEBHOOK_URL"])
        self.assertEqual(request.get_header("X-storefront-event"), "order.created")
        self.assertIsNone(request.get_header("X-storefront-signature"))

    @mock.patch("integrations.services.outbound.urlopen")
    def test_store_webhook_overrides_default_target(self, mocked_urlopen):
        _ok_response(mocked_urlopen)
        self.store.order_webhook_url = "https://store.example.test/hook"
        self.store.save()

        process_task(self.task.id)

        request = mocked_urlopen.call_args[0][0]
        self.assertEqual(request.full_url, "https://store.example.test/hook")

    @mock.patch("integrations.services.outbound.urlopen")
    def test_body_signed_when_secret_configured(self, mocked_urlopen):
        _ok_response(mocked_urlopen)

        with override_settings(OUTBOUND={**OUTBOUND_TEST_CFG, "SIGNING_SECRET": "s3cret"}):
            process_task(self.task.id)

        request = mocked_urlopen.call_args[0][0]
        expected = hmac.new(b"s3cret", request.data, hashlib.sha256).hexdigest()
        self.assertEqual(request.get_header("X-storefront-signature"), expected)

    @mock.patch("integrations.services.outbound.urlopen")
    def test_failure_retries_with_backoff_then_fails(self, mocked_urlopen):
        mocked_urlopen.side_effect = URLError("connection refused")
        now = timezone.now()

        self.assertEqual(process_task(self.task.id, now=now), OutboundTask.STATUS_PENDING)
        self.task.refresh_from_db()
        self.assertEqual(self.task.attempts, 1)
        self.assertEqual(self.task.next_attempt_at, now + timedelta(seconds=30))
        self.assertIn("connection refused", self.task.last_error)

        # not due yet
        self.assertIsNone(process_task(self.task.id, now=now + timedelta(seconds=10)))

        later = now + timedelta(seconds=31)
        self.assertEqual(process_task(self.task.id, now=later), OutboundTask.STATUS_PENDING)
        self.task.refresh_from_db()
        self.assertEqual(self.task.next_attempt_at, later + timedelta(seconds=60))

        final = later + timedelta(seconds=61)
        self.assertEqual(process_task(self.task.id, now=final), OutboundTask.STATUS_FAILED)
        self.task.refresh_from_db()
        self.assertEqual(self.task.attempts, 3)

        self.assertIsNone(process_task(self.task.id, now=final + timedelta(days=1)))

    def test_skipped_without_target(self):
        with override_settings(OUTBOUND={**OUTBOUND_TEST_CFG, "WEBHOOK_URL": ""}):
            status = process_task(self.task.id)

        self.assertEqual(status, OutboundTask.STATUS_SKIPPED)
        self.task.refresh_from_db()
        self.assertEqual(self.task.attempts, 0)

    @mock.patch("integrations.services.outbound.urlopen")
    def test_dispatch_summary(self, mocked_urlopen):
        _ok_response(mocked_urlopen)
        OutboundTask.objects.create(
            store=self.store,
            kind=OutboundTask.KIND_ORDER_CREATED,
            payload={},
            next_attempt_at=timezone.now() + timedelta(hours=1),
        )

        summary = dispatch_due_tasks()

        self.assertEqual(summary[OutboundTask.STATUS_DELIVERED], 1)
        self.assertEqual(OutboundTask.objects.filter(status=OutboundTask.STATUS_PENDING).count(), 1)

    @mock.patch("integrations.services.outbound.urlopen")
    def test_management_command_single_pass(self, mocked_urlopen):
        _ok_response(mocked_urlopen)
        out = StringIO()

        call_command("dispatch_outbound_tasks", "--limit", "10", stdout=out)

        self.assertIn("delivered=1", out.getvalue())
        self.task.refresh_from_db()
        self.assertEqual(self.task.status, OutboundTask.STATUS_DELIVERED)


@override_settings(OUTBOUND=OUTBOUND_TEST_CFG)
class BackoffTests(TestCase):
    def test_doubles_per_attempt(self):
        self.assertEqual(backoff_seconds(1), 30)
        self.assertEqual(backoff_seconds(2), 60)
        self.assertEqual(backoff_seconds(4), 240)

    def test_capped(self):
        self.assertEqual(backoff_seconds(50), MAX_BACKOFF_SECONDS)
