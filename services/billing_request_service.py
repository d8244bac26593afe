"""
Billing request service for store operations.

Billing requests are written once, by the conversion pipeline, in a
single insert. Unique constraints on tracking_code and invoice_number
back the identifier checks; a violation surfaces as
DuplicateIdentifierError so the caller can regenerate and retry.
"""

from typing import Any, Optional
from decimal import Decimal
import structlog

from config import get_supabase_client
from models.billing_request import (
    BillingRequestCreate,
    BillingRequestResponse,
    Verification,
)
from exceptions import (
    BillingRequestNotFoundError,
    BillingRequestPersistenceError,
    DuplicateIdentifierError,
    DatabaseError,
)

logger = structlog.get_logger(__name__)

# Columns carrying unique constraints, in the order they are reported
UNIQUE_COLUMNS = ("tracking_code", "invoice_number")

DUPLICATE_MARKERS = ("duplicate key", "23505")


def duplicate_column(error_message: str) -> Optional[str]:
    """
    Column named by a unique-constraint violation, or None.

    Handles the PostgREST message shapes:
    - duplicate key value violates unique constraint "billing_requests_tracking_code_key"
    - {'code': '23505', 'details': 'Key (invoice_number)=(INV-...) already exists.'}
    """
    lowered = error_message.lower()
    if not any(marker in lowered for marker in DUPLICATE_MARKERS):
        return None

    for column in UNIQUE_COLUMNS:
        if column in lowered:
            return column

    return None


def quote_filter_value(value: str) -> str:
    """
    Quote a value for a PostgREST logic filter such as or_().

    Commas and parentheses are reserved in those filters, so the
    value is wrapped in double quotes with backslash and quote escaped.
    """
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class BillingRequestService:
    """
    Billing request store access.

    Handles lookups used by the idempotency guard and the identifier
    checks, and the single insert that persists a conversion.
    """

    def __init__(self, db=None):
        self.db = db or get_supabase_client()
        self.table = "billing_requests"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_by_id(self, billing_request_id: str) -> BillingRequestResponse:
        """
        Get a single billing request by ID.

        Raises:
            BillingRequestNotFoundError: If it doesn't exist
        """
        billing_request = self.find_by_id(billing_request_id)
        if billing_request is None:
            raise BillingRequestNotFoundError(billing_request_id)
        return billing_request

    def find_by_id(self, billing_request_id: str) -> Optional[BillingRequestResponse]:
        """Get a billing request by ID, or None."""
        logger.debug("getting_billing_request", billing_request_id=billing_request_id)
        return self._first_where("id", billing_request_id)

    def get_by_booking_id(self, booking_id: str) -> Optional[BillingRequestResponse]:
        """
        Get the billing request derived from a booking.

        Args:
            booking_id: Booking UUID

        Returns:
            BillingRequestResponse or None if not found
        """
        logger.debug("getting_billing_request_by_booking", booking_id=booking_id)
        return self._first_where("booking_id", booking_id)

    def get_by_tracking_code(self, tracking_code: str) -> Optional[BillingRequestResponse]:
        """
        Get a billing request by tracking code.

        Matches the tracking_code column and its awb_number alias.

        Args:
            tracking_code: Tracking code / AWB

        Returns:
            BillingRequestResponse or None if not found
        """
        code = tracking_code.strip()
        quoted = quote_filter_value(code)
        logger.debug("getting_billing_request_by_tracking", tracking_code=code)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .or_(f"tracking_code.eq.{quoted},awb_number.eq.{quoted}")
                .limit(1)
                .execute()
            )

            if not result.data:
                return None

            return self._row_to_response(result.data[0])

        except Exception as e:
            logger.error("get_billing_request_by_tracking_failed", tracking_code=code, error=str(e))
            raise DatabaseError("select", str(e))

    def get_by_invoice_number(self, invoice_number: str) -> Optional[BillingRequestResponse]:
        """Get a billing request by invoice number, or None."""
        logger.debug("getting_billing_request_by_invoice", invoice_number=invoice_number)
        return self._first_where("invoice_number", invoice_number.strip())

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: BillingRequestCreate) -> BillingRequestResponse:
        """
        Insert a fully assembled billing request.

        Args:
            data: Billing request assembled in memory

        Returns:
            Created BillingRequestResponse

        Raises:
            DuplicateIdentifierError: If tracking code or invoice number is taken
            BillingRequestPersistenceError: If the insert fails for any other reason
        """
        logger.info(
            "creating_billing_request",
            booking_id=data.booking_id,
            invoice_number=data.invoice_number,
            tracking_code=data.tracking_code
        )

        row = self._to_row(data)

        try:
            result = (
                self.db.table(self.table)
                .insert(row)
                .execute()
            )
        except Exception as e:
            column = duplicate_column(str(e))
            if column:
                logger.warning(
                    "billing_request_identifier_conflict",
                    booking_id=data.booking_id,
                    column=column,
                    value=row[column]
                )
                raise DuplicateIdentifierError(column, row[column])

            logger.error("create_billing_request_failed", booking_id=data.booking_id, error=str(e))
            raise BillingRequestPersistenceError(data.booking_id, str(e))

        if not result.data:
            logger.error("create_billing_request_empty_result", booking_id=data.booking_id)
            raise BillingRequestPersistenceError(data.booking_id, "insert returned no rows")

        created = self._row_to_response(result.data[0])

        logger.info(
            "billing_request_created",
            billing_request_id=created.id,
            booking_id=data.booking_id,
            invoice_number=created.invoice_number,
            tracking_code=created.tracking_code
        )

        return created

    # ===================
    # UTILITY METHODS
    # ===================

    def invoice_number_exists(self, invoice_number: str) -> bool:
        """Check if an invoice number is already issued."""
        return self.get_by_invoice_number(invoice_number) is not None

    def tracking_code_exists(self, tracking_code: str) -> bool:
        """Check if a tracking code is issued as tracking_code or awb_number."""
        return self.get_by_tracking_code(tracking_code) is not None

    def count(self) -> int:
        """Count billing requests."""
        try:
            result = self.db.table(self.table).select("id", count="exact").execute()
            return result.count or 0
        except Exception as e:
            logger.error("count_billing_requests_failed", error=str(e))
            raise DatabaseError("count", str(e))

    def _first_where(self, column: str, value: Any) -> Optional[BillingRequestResponse]:
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq(column, value)
                .limit(1)
                .execute()
            )

            if not result.data:
                return None

            return self._row_to_response(result.data[0])

        except Exception as e:
            logger.error("get_billing_request_failed", column=column, value=value, error=str(e))
            raise DatabaseError("select", str(e))

    def _to_row(self, data: BillingRequestCreate) -> dict:
        """Convert a create schema to an insertable row."""
        row = data.model_dump(mode="json")
        row["declared_amount"] = float(data.declared_amount) if data.declared_amount is not None else None
        row["weight"] = float(data.weight) if data.weight is not None else None
        row["awb_number"] = data.tracking_code
        return row

    def _row_to_response(self, row: dict) -> BillingRequestResponse:
        """Convert database row to BillingRequestResponse."""
        return BillingRequestResponse(
            id=str(row["id"]),
            invoice_number=row["invoice_number"],
            tracking_code=row["tracking_code"],
            awb_number=row.get("awb_number"),
            service_code=row.get("service_code"),
            booking_id=str(row.get("booking_id") or ""),
            customer_name=row.get("customer_name") or "",
            customer_phone=row.get("customer_phone") or "",
            receiver_name=row.get("receiver_name") or "",
            receiver_address=row.get("receiver_address") or "",
            receiver_phone=row.get("receiver_phone") or "",
            receiver_company=row.get("receiver_company") or "",
            origin_place=row.get("origin_place") or "",
            destination_place=row.get("destination_place") or "",
            shipment_type=row.get("shipment_type") or "NON_DOCUMENT",
            items_description=row.get("items_description") or "",
            sender_delivery_option=row.get("sender_delivery_option"),
            receiver_delivery_option=row.get("receiver_delivery_option"),
            insured=bool(row.get("insured")),
            declared_amount=Decimal(str(row["declared_amount"])) if row.get("declared_amount") is not None else None,
            weight=Decimal(str(row["weight"])) if row.get("weight") is not None else None,
            status=row.get("status") or "SUBMITTED",
            delivery_status=row.get("delivery_status") or "PENDING",
            is_leviable=row.get("is_leviable", True),
            created_by_employee_id=str(row.get("created_by_employee_id") or ""),
            notes=row.get("notes") or "",
            identity_documents=row.get("identity_documents") or {},
            verification=Verification(**(row.get("verification") or {})),
            booking_snapshot=row.get("booking_snapshot") or {},
            booking_data=row.get("booking_data") or {},
            created_at=row["created_at"],
            updated_at=row.get("updated_at"),
        )


# Singleton instance
_billing_request_service: Optional[BillingRequestService] = None


def get_billing_request_service() -> BillingRequestService:
    """Get or create BillingRequestService instance."""
    global _billing_request_service
    if _billing_request_service is None:
        _billing_request_service = BillingRequestService()
    return _billing_request_service
