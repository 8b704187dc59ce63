# integrations/management/commands/dispatch_outbound_tasks.py

from __future__ import annotations

import time

from django.core.management.base import BaseCommand

from integrations.services.outbound import dispatch_due_tasks


class Command(BaseCommand):
    help = "Deliver due outbound sync tasks (order webhooks) with retry/backoff."

    def add_arguments(self, parser):
        parser.add_argument(
            "--limit",
            type=int,
            default=100,
            help="Maximum tasks to process per pass.",
        )
        parser.add_argument(
            "--loop",
            action="store_true",
            help="Keep polling instead of running a single pass.",
        )
        parser.add_argument(
            "--interval",
            type=float,
            default=5.0,
            help="Seconds to sleep between passes in --loop mode.",
        )

    def handle(self, *args, **options):
        limit = int(options.get("limit") or 100)
        loop = bool(options.get("loop"))
        interval = float(options.get("interval") or 5.0)

        while True:
            summary = dispatch_due_tasks(limit=limit)
            self.stdout.write(
                "delivered={delivered} retrying={pending} failed={failed} skipped={skipped}".format(
                    **summary
                )
            )
            if not loop:
                break
            time.sleep(interval)
