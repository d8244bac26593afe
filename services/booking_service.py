"""
Booking service for store operations.

Bookings are read as plain dicts. The pipeline only ever writes the
review fields and the billing request back-link.
"""

from typing import Optional
from datetime import datetime, timezone
import structlog

from config import get_supabase_client
from models.booking import BILLING_LINK_FIELD, ReviewStatus
from exceptions import BookingNotFoundError, DatabaseError

logger = structlog.get_logger(__name__)


class BookingService:
    """
    Booking store access.

    Handles lookups, review marking and linking to billing requests.
    """

    def __init__(self, db=None):
        self.db = db or get_supabase_client()
        self.table = "bookings"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_by_id(self, booking_id: str) -> dict:
        """
        Get a single booking by ID.

        Args:
            booking_id: Booking UUID

        Returns:
            Booking row as a dict

        Raises:
            BookingNotFoundError: If booking doesn't exist
        """
        logger.debug("getting_booking", booking_id=booking_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", booking_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_booking_failed", booking_id=booking_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise BookingNotFoundError(booking_id)

        return result.data[0]

    def get_reviewed_unconverted(self, limit: int = 100) -> list[dict]:
        """
        Get reviewed bookings that have no billing request link yet.

        Args:
            limit: Maximum bookings to return

        Returns:
            Booking rows, oldest review first
        """
        logger.info("getting_reviewed_unconverted_bookings", limit=limit)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("review_status", ReviewStatus.REVIEWED.value)
                .is_(BILLING_LINK_FIELD, "null")
                .order("reviewed_at")
                .limit(limit)
                .execute()
            )

            bookings = result.data or []

            logger.info("reviewed_unconverted_bookings_retrieved", count=len(bookings))

            return bookings

        except Exception as e:
            logger.error("get_reviewed_unconverted_failed", error=str(e))
            raise DatabaseError("select", str(e))

    # ===================
    # WRITE OPERATIONS
    # ===================

    def mark_reviewed(self, booking_id: str, employee_id: Optional[str]) -> dict:
        """
        Mark a booking as reviewed.

        Args:
            booking_id: Booking UUID
            employee_id: Reviewing employee, if known

        Returns:
            Updated booking row
        """
        logger.info("marking_booking_reviewed", booking_id=booking_id, employee_id=employee_id)

        update_data = {
            "review_status": ReviewStatus.REVIEWED.value,
            "reviewed_by_employee_id": employee_id,
            "reviewed_at": datetime.now(timezone.utc).isoformat(),
        }

        return self._update(booking_id, update_data)

    def set_billing_link(self, booking_id: str, billing_request_id: str) -> dict:
        """
        Point a booking at the billing request derived from it.

        Args:
            booking_id: Booking UUID
            billing_request_id: Billing request UUID

        Returns:
            Updated booking row
        """
        logger.info(
            "linking_booking_to_billing_request",
            booking_id=booking_id,
            billing_request_id=billing_request_id
        )

        return self._update(booking_id, {BILLING_LINK_FIELD: billing_request_id})

    def _update(self, booking_id: str, update_data: dict) -> dict:
        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", booking_id)
                .execute()
            )
        except Exception as e:
            logger.error("update_booking_failed", booking_id=booking_id, error=str(e))
            raise DatabaseError("update", str(e))

        if not result.data:
            raise BookingNotFoundError(booking_id)

        return result.data[0]


# Singleton instance
_booking_service: Optional[BookingService] = None


def get_booking_service() -> BookingService:
    """Get or create BookingService instance."""
    global _booking_service
    if _booking_service is None:
        _booking_service = BookingService()
    return _booking_service
