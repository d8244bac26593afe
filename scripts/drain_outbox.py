"""
Deliver pending outbox messages.

Runs billing sync calls and department notifications recorded by
conversions. Failed deliveries are rescheduled with exponential backoff.
Meant to run on a schedule (cron, systemd timer).

Usage:
    python scripts/drain_outbox.py
    python scripts/drain_outbox.py --batch-size 200
"""

import argparse
import os
import sys

# Allow imports from the project root when running as a script
_root_dir = os.path.join(os.path.dirname(__file__), "..")
sys.path.insert(0, _root_dir)

from dotenv import load_dotenv
load_dotenv(os.path.join(_root_dir, ".env"))

from config import configure_logging, settings
from services.outbox_service import OutboxWorker, get_outbox_service
from services.notification_service import get_notification_service
from integrations.billing_sync import get_billing_sync_client


def main():
    parser = argparse.ArgumentParser(description="Deliver pending outbox messages")
    parser.add_argument(
        "--batch-size",
        type=int,
        default=settings.outbox_batch_size,
        help=f"Messages to deliver in this run (default: {settings.outbox_batch_size})"
    )

    args = parser.parse_args()

    configure_logging()

    worker = OutboxWorker(
        outbox=get_outbox_service(),
        billing_sync=get_billing_sync_client(),
        notifications=get_notification_service(),
    )

    summary = worker.drain(limit=args.batch_size)

    print(f"Delivered: {summary.delivered}")
    print(f"Retrying:  {summary.retried}")
    print(f"Failed:    {summary.failed}")

    sys.exit(1 if summary.failed else 0)


if __name__ == "__main__":
    main()
