"""
Convert reviewed bookings into billing requests.

Picks up reviewed bookings that have no billing request yet and converts
them. Safe to re-run: bookings already converted are only relinked.

Usage:
    python scripts/convert_reviewed_bookings.py
    python scripts/convert_reviewed_bookings.py --limit 20
    python scripts/convert_reviewed_bookings.py --booking-id <uuid>
    python scripts/convert_reviewed_bookings.py --check
"""

import argparse
import os
import sys

# Allow imports from the project root when running as a script
_root_dir = os.path.join(os.path.dirname(__file__), "..")
sys.path.insert(0, _root_dir)

from dotenv import load_dotenv
load_dotenv(os.path.join(_root_dir, ".env"))

from config import configure_logging, check_connection
from services.conversion_service import get_conversion_service
from exceptions import AppError


def convert_one(booking_id: str) -> int:
    service = get_conversion_service()

    try:
        result = service.convert(booking_id)
    except AppError as e:
        print(f"FAILED  {booking_id}: [{e.code}] {e.message}")
        return 1

    billing_request = result.billing_request
    action = "CREATED" if result.created else "LINKED "
    print(f"{action} {booking_id} -> {billing_request.id} "
          f"(invoice {billing_request.invoice_number}, tracking {billing_request.tracking_code})")
    return 0


def convert_batch(limit: int) -> int:
    service = get_conversion_service()
    summary = service.convert_pending(limit=limit)

    print("=" * 60)
    print("REVIEWED BOOKINGS -> BILLING REQUESTS")
    print("=" * 60)

    for result in summary.converted:
        print(f"CREATED {result.booking_id} -> {result.billing_request.id}")
    for result in summary.relinked:
        print(f"LINKED  {result.booking_id} -> {result.billing_request.id}")
    for failure in summary.failed:
        print(f"FAILED  {failure.booking_id}: [{failure.error_code}] {failure.message}")

    print("-" * 60)
    print(f"Processed: {summary.total}")
    print(f"Created:   {len(summary.converted)}")
    print(f"Linked:    {len(summary.relinked)}")
    print(f"Failed:    {len(summary.failed)}")

    return 1 if summary.failed else 0


def main():
    parser = argparse.ArgumentParser(
        description="Convert reviewed bookings into billing requests"
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=100,
        help="Maximum bookings to convert (default: 100)"
    )
    parser.add_argument(
        "--booking-id",
        help="Convert a single booking instead of the pending batch"
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Report database health and pending bookings, then exit"
    )

    args = parser.parse_args()

    configure_logging()

    if args.check:
        status = check_connection()
        print(status)
        sys.exit(0 if status["status"] == "healthy" else 1)

    if args.booking_id:
        sys.exit(convert_one(args.booking_id))

    sys.exit(convert_batch(args.limit))


if __name__ == "__main__":
    main()
