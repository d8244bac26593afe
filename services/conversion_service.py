"""
Booking conversion service.

Turns a reviewed booking into a billing request:

    BOOKING_RECEIVED -> BOOKING_REVIEWED -> CONVERSION_IN_PROGRESS
        -> CONVERSION_COMPLETE | CONVERSION_FAILED

The billing request is assembled in memory and written with one insert,
so a failed conversion never leaves a partial record and can be retried.
Converting the same booking twice returns the existing billing request.
Downstream work (billing sync, department notifications) is recorded in
the outbox and delivered by scripts/drain_outbox.py.
"""

from typing import Optional
from datetime import datetime, timezone
import structlog

from config import settings
from models.booking import BILLING_LINK_FIELD, ReviewStatus
from models.billing_request import (
    BillingRequestCreate,
    BillingRequestResponse,
    BillingRequestStatus,
    DeliveryStatus,
    ConversionState,
    ConversionResult,
    ConversionFailure,
    ConversionBatchSummary,
    Verification,
    VerificationBox,
)
from models.outbox import OutboxKind
from services.booking_service import BookingService, get_booking_service
from services.billing_request_service import BillingRequestService, get_billing_request_service
from services.identifier_service import IdentifierService
from services.outbox_service import OutboxService, get_outbox_service
from services.responsible_party_service import (
    ResponsiblePartyResolver,
    EmployeeResponsiblePartyResolver,
)
from services.field_resolver import (
    SENDER,
    RECEIVER,
    resolve_party,
    resolve_booking_field,
    resolve_booking_value,
    resolve_items,
    resolve_item_descriptions,
    item_description,
    item_quantity,
    listed_commodities,
)
from services.route_classifier import normalize_service_code
from services.shipment_classifier import classify_shipment
from services.snapshot_service import (
    build_audit_snapshot,
    build_integration_payload,
    extract_identity_metadata,
    warn_if_oversized,
)
from utils.coercion import to_decimal, to_positive_int, normalize_boolean
from utils.text_utils import clean_text
from exceptions import (
    AppError,
    BookingNotReviewedError,
    BillingRequestPersistenceError,
    DuplicateIdentifierError,
)

logger = structlog.get_logger(__name__)


def build_verification_boxes(booking: dict) -> list[VerificationBox]:
    """
    Boxes for the verification record.

    Copied from booking["boxes"] when it is a list, otherwise one box per
    item ("Item N" when the item has no description).
    """
    boxes = booking.get("boxes")

    if isinstance(boxes, list):
        sources = [
            (
                clean_text(box.get("items")) or item_description(box) or "",
                box,
            )
            for box in boxes
            if isinstance(box, dict)
        ]
    else:
        sources = [
            (item_description(item) or f"Item {index}", item)
            for index, item in enumerate(resolve_items(booking), start=1)
        ]

    return [
        VerificationBox(
            items=description,
            quantity=to_positive_int(item_quantity(source)),
            length=to_decimal(source.get("length")),
            width=to_decimal(source.get("width")),
            height=to_decimal(source.get("height")),
            vm=to_decimal(source.get("vm") if source.get("vm") is not None else source.get("volume")),
        )
        for description, source in sources
    ]


class BookingConversionService:
    """
    Booking to billing request conversion.

    Collaborators are injected; get_conversion_service() wires the
    Supabase-backed defaults.
    """

    def __init__(
        self,
        bookings: Optional[BookingService] = None,
        billing_requests: Optional[BillingRequestService] = None,
        identifiers: Optional[IdentifierService] = None,
        party_resolver: Optional[ResponsiblePartyResolver] = None,
        outbox: Optional[OutboxService] = None,
        departments: Optional[list[str]] = None,
        persist_max_attempts: Optional[int] = None
    ):
        self.bookings = bookings or get_booking_service()
        self.billing_requests = billing_requests or get_billing_request_service()
        self.identifiers = identifiers or IdentifierService(billing_requests=self.billing_requests)
        self.party_resolver = party_resolver or EmployeeResponsiblePartyResolver()
        self.outbox = outbox or get_outbox_service()
        self.departments = departments if departments is not None else settings.notification_departments
        self.persist_max_attempts = persist_max_attempts or settings.persist_max_attempts

    # ===================
    # PUBLIC OPERATIONS
    # ===================

    def convert(self, booking_id: str) -> ConversionResult:
        """
        Convert a booking by ID.

        Args:
            booking_id: Booking UUID

        Returns:
            ConversionResult (created=False when the booking was already converted)

        Raises:
            BookingNotFoundError: If booking doesn't exist
            IdentifierGenerationExhaustedError: If no free identifier was found
            BillingRequestPersistenceError: If the billing request could not be written
        """
        booking = self.bookings.get_by_id(booking_id)
        return self.convert_booking(booking)

    def review_and_convert(self, booking_id: str, employee_id: Optional[str]) -> ConversionResult:
        """
        Mark a booking reviewed, then convert it.

        A booking that is already reviewed keeps its original reviewer.

        Raises:
            BookingNotReviewedError: If the booking was rejected
        """
        booking = self.bookings.get_by_id(booking_id)
        review_status = booking.get("review_status")

        if review_status == ReviewStatus.REJECTED.value:
            logger.warning("rejected_booking_conversion_refused", booking_id=booking_id)
            raise BookingNotReviewedError(booking_id, review_status)

        if review_status != ReviewStatus.REVIEWED.value:
            booking = self.bookings.mark_reviewed(booking_id, employee_id)
            self._log_state(booking_id, ConversionState.BOOKING_REVIEWED)

        return self.convert_booking(booking)

    def convert_pending(self, limit: int = 100) -> ConversionBatchSummary:
        """
        Convert reviewed bookings that have no billing request yet.

        One failing booking does not stop the batch.

        Args:
            limit: Maximum bookings to process

        Returns:
            ConversionBatchSummary with converted, relinked and failed bookings
        """
        bookings = self.bookings.get_reviewed_unconverted(limit=limit)

        logger.info("converting_pending_bookings", count=len(bookings))

        converted: list[ConversionResult] = []
        relinked: list[ConversionResult] = []
        failed: list[ConversionFailure] = []

        for booking in bookings:
            booking_id = str(booking.get("id"))
            try:
                result = self.convert_booking(booking)
            except AppError as e:
                failed.append(ConversionFailure(booking_id=booking_id, error_code=e.code, message=e.message))
                continue
            except Exception as e:
                logger.error("unexpected_conversion_error", booking_id=booking_id, error=str(e))
                failed.append(ConversionFailure(booking_id=booking_id, error_code="UNEXPECTED_ERROR", message=str(e)))
                continue

            if result.created:
                converted.append(result)
            else:
                relinked.append(result)

        summary = ConversionBatchSummary(
            converted=converted,
            relinked=relinked,
            failed=failed,
            completed_at=datetime.now(timezone.utc),
        )

        logger.info(
            "pending_bookings_converted",
            converted=len(converted),
            relinked=len(relinked),
            failed=len(failed)
        )

        return summary

    def convert_booking(self, booking: dict) -> ConversionResult:
        """
        Convert an already loaded booking.

        See convert() for the raised errors.
        """
        booking_id = str(booking["id"])

        if booking.get("review_status") != ReviewStatus.REVIEWED.value:
            logger.warning(
                "converting_unreviewed_booking",
                booking_id=booking_id,
                review_status=booking.get("review_status")
            )

        existing = self.find_existing(booking)
        if existing:
            return self._relink(booking, existing)

        self._log_state(booking_id, ConversionState.CONVERSION_IN_PROGRESS)

        try:
            data = self.assemble(booking)
            billing_request = self._persist(data)
        except AppError as e:
            self._log_state(booking_id, ConversionState.CONVERSION_FAILED, error_code=e.code, error=e.message)
            raise
        except Exception as e:
            self._log_state(
                booking_id,
                ConversionState.CONVERSION_FAILED,
                error_code="UNEXPECTED_ERROR",
                error=str(e),
                error_type=type(e).__name__
            )
            raise

        linked = self._link(booking_id, billing_request.id)
        self._enqueue_fanout(billing_request)

        self._log_state(booking_id, ConversionState.CONVERSION_COMPLETE, billing_request_id=billing_request.id)

        return ConversionResult(
            booking_id=booking_id,
            state=ConversionState.CONVERSION_COMPLETE,
            billing_request=billing_request,
            created=True,
            linked=linked,
        )

    # ===================
    # IDEMPOTENCY GUARD
    # ===================

    def find_existing(self, booking: dict) -> Optional[BillingRequestResponse]:
        """
        Billing request already derived from this booking, if any.

        Checked in order: the booking's back-link, a billing request with
        this booking_id, then one carrying the booking's tracking code that
        belongs to this booking or to none.
        """
        booking_id = str(booking["id"])

        link = clean_text(booking.get(BILLING_LINK_FIELD))
        if link:
            existing = self.billing_requests.find_by_id(link)
            if existing:
                return existing
            logger.warning("booking_link_dangling", booking_id=booking_id, billing_request_id=link)

        existing = self.billing_requests.get_by_booking_id(booking_id)
        if existing:
            return existing

        tracking = resolve_booking_field(booking, "tracking")
        if tracking:
            existing = self.billing_requests.get_by_tracking_code(tracking)
            if existing and existing.booking_id in (booking_id, ""):
                return existing

        return None

    # ===================
    # ASSEMBLY
    # ===================

    def assemble(self, booking: dict) -> BillingRequestCreate:
        """
        Build the complete billing request in memory.

        Issues identifiers and resolves the responsible party; nothing is
        written.
        """
        booking_id = str(booking["id"])

        sender = resolve_party(booking, SENDER)
        receiver = resolve_party(booking, RECEIVER)

        service_code = normalize_service_code(resolve_booking_field(booking, "service"))
        descriptions = resolve_item_descriptions(booking)
        shipment_type = classify_shipment(descriptions)

        invoice_number = self.identifiers.generate_invoice_number()
        tracking_code = self.identifiers.assign_tracking_code(
            resolve_booking_field(booking, "tracking"),
            service_code
        )

        booking_snapshot = build_audit_snapshot(booking)
        booking_data = build_integration_payload(booking)
        for name, snapshot in (("booking_snapshot", booking_snapshot), ("booking_data", booking_data)):
            warn_if_oversized(name, snapshot, settings.snapshot_size_warning_bytes, booking_id=booking_id)

        created_by = self.resolve_responsible_party(booking)

        boxes = build_verification_boxes(booking)
        number_of_boxes = (
            to_positive_int(resolve_booking_value(booking, "number_of_boxes"))
            or len(boxes)
            or len(resolve_items(booking))
            or 1
        )

        destination_place = resolve_booking_field(booking, "destination_place") or ""

        verification = Verification(
            service_code=service_code,
            listed_commodities=listed_commodities(booking),
            boxes=boxes,
            number_of_boxes=number_of_boxes,
            receiver_address=receiver.address or "",
            receiver_phone=receiver.phone or "",
            agents_name=sender.agent_name or "",
            sender_details_complete=sender.details_complete,
            receiver_details_complete=receiver.details_complete,
        )

        insured = normalize_boolean(resolve_booking_value(booking, "insured"))

        return BillingRequestCreate(
            invoice_number=invoice_number,
            tracking_code=tracking_code,
            service_code=service_code,
            booking_id=booking_id,
            customer_name=sender.name or "",
            customer_phone=sender.phone or "",
            receiver_name=receiver.name or "",
            receiver_address=receiver.address or destination_place,
            receiver_phone=receiver.phone or "",
            receiver_company=receiver.company or "",
            origin_place=resolve_booking_field(booking, "origin_place") or "",
            destination_place=destination_place,
            shipment_type=shipment_type,
            items_description=", ".join(descriptions),
            sender_delivery_option=sender.delivery_option,
            receiver_delivery_option=receiver.delivery_option,
            insured=insured if insured is not None else False,
            declared_amount=to_decimal(resolve_booking_value(booking, "declared_amount")),
            weight=to_decimal(resolve_booking_value(booking, "weight")),
            status=BillingRequestStatus.SUBMITTED,
            delivery_status=DeliveryStatus.PENDING,
            is_leviable=True,
            created_by_employee_id=created_by,
            notes=resolve_booking_field(booking, "notes") or "",
            identity_documents=extract_identity_metadata(booking),
            verification=verification,
            booking_snapshot=booking_snapshot,
            booking_data=booking_data,
        )

    def resolve_responsible_party(self, booking: dict) -> str:
        """The reviewer, or the default party when nobody reviewed it."""
        reviewer = clean_text(booking.get("reviewed_by_employee_id"))
        if reviewer:
            return reviewer
        return self.party_resolver.resolve_default_party()

    # ===================
    # PERSISTENCE
    # ===================

    def _persist(self, data: BillingRequestCreate) -> BillingRequestResponse:
        """
        Insert the billing request, regenerating identifiers on conflict.

        Raises:
            BillingRequestPersistenceError: If conflicts persist past persist_max_attempts
        """
        for attempt in range(1, self.persist_max_attempts + 1):
            for field in self.identifiers.verify_available(data.invoice_number, data.tracking_code):
                data = self._with_new_identifier(data, field)

            try:
                return self.billing_requests.create(data)
            except DuplicateIdentifierError as e:
                logger.warning(
                    "billing_request_insert_conflict",
                    booking_id=data.booking_id,
                    field=e.field,
                    value=e.value,
                    attempt=attempt
                )
                if attempt == self.persist_max_attempts:
                    raise BillingRequestPersistenceError(
                        data.booking_id,
                        f"{e.field} conflict persisted after {attempt} attempts"
                    )
                data = self._with_new_identifier(data, e.field)

        raise BillingRequestPersistenceError(data.booking_id, "no insert attempted")

    def _with_new_identifier(self, data: BillingRequestCreate, field: str) -> BillingRequestCreate:
        value = self.identifiers.regenerate(field, data.service_code)
        logger.info("identifier_regenerated", booking_id=data.booking_id, field=field, value=value)
        return data.model_copy(update={field: value})

    def _link(self, booking_id: str, billing_request_id: str) -> bool:
        """
        Set the booking back-link.

        A failure is logged only: the billing request exists and the next
        conversion of this booking finds it by booking_id and relinks.
        """
        try:
            self.bookings.set_billing_link(booking_id, billing_request_id)
            return True
        except Exception as e:
            logger.error(
                "booking_link_failed",
                booking_id=booking_id,
                billing_request_id=billing_request_id,
                error=str(e)
            )
            return False

    def _relink(self, booking: dict, existing: BillingRequestResponse) -> ConversionResult:
        booking_id = str(booking["id"])

        logger.info(
            "booking_already_converted",
            booking_id=booking_id,
            billing_request_id=existing.id
        )

        linked = True
        if clean_text(booking.get(BILLING_LINK_FIELD)) != existing.id:
            linked = self._link(booking_id, existing.id)

        return ConversionResult(
            booking_id=booking_id,
            state=ConversionState.CONVERSION_COMPLETE,
            billing_request=existing,
            created=False,
            linked=linked,
        )

    # ===================
    # FAN-OUT
    # ===================

    def _enqueue_fanout(self, billing_request: BillingRequestResponse) -> None:
        """Record billing sync and department notifications in the outbox."""
        intents = [
            (OutboxKind.BILLING_SYNC, {
                "billing_request_id": billing_request.id,
                "reason": "created",
            })
        ]
        for department in self.departments:
            intents.append((OutboxKind.DEPARTMENT_NOTIFICATION, {
                "department": department,
                "entity_type": "billing_request",
                "entity_id": billing_request.id,
                "actor_id": billing_request.created_by_employee_id,
                "invoice_number": billing_request.invoice_number,
                "tracking_code": billing_request.tracking_code,
            }))

        for kind, payload in intents:
            try:
                self.outbox.enqueue(kind, payload)
            except Exception as e:
                logger.error(
                    "outbox_enqueue_failed",
                    billing_request_id=billing_request.id,
                    kind=kind.value,
                    error=str(e)
                )

    def _log_state(self, booking_id: str, state: ConversionState, **context) -> None:
        logger.info("conversion_state_changed", booking_id=booking_id, state=state.value, **context)


# Singleton instance
_conversion_service: Optional[BookingConversionService] = None


def get_conversion_service() -> BookingConversionService:
    """Get or create BookingConversionService instance."""
    global _conversion_service
    if _conversion_service is None:
        _conversion_service = BookingConversionService()
    return _conversion_service
