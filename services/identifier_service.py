"""
Identifier service.

Issues invoice numbers and tracking codes that are unique against the
billing request store. Candidates come from an IdentifierSource; each is
checked against the store and rejected candidates are retried up to
identifier_max_attempts times.

Checking is read-then-write, so two concurrent conversions can still pick
the same candidate. The unique constraints on billing_requests catch that
case and the conversion service calls regenerate() for the losing column.
"""

from typing import Optional
import structlog

from config import settings
from models.billing_request import MAX_TRACKING_CODE_LENGTH
from services.billing_request_service import BillingRequestService, get_billing_request_service
from services.identifier_source import IdentifierSource, RandomIdentifierSource
from services.route_classifier import tracking_prefix_for
from utils.text_utils import clean_text
from exceptions import IdentifierGenerationExhaustedError

logger = structlog.get_logger(__name__)

INVOICE_NUMBER = "invoice_number"
TRACKING_CODE = "tracking_code"


class IdentifierService:
    """
    Unique identifier generation.

    Handles invoice numbers, tracking codes and pre-write re-verification.
    """

    def __init__(
        self,
        billing_requests: Optional[BillingRequestService] = None,
        source: Optional[IdentifierSource] = None,
        max_attempts: Optional[int] = None
    ):
        self.billing_requests = billing_requests or get_billing_request_service()
        self.source = source or RandomIdentifierSource()
        self.max_attempts = max_attempts or settings.identifier_max_attempts

    # ===================
    # GENERATION
    # ===================

    def generate_invoice_number(self) -> str:
        """
        Generate an unused invoice number.

        Raises:
            IdentifierGenerationExhaustedError: If every candidate is taken
        """
        for attempt in range(1, self.max_attempts + 1):
            candidate = self.source.next_invoice_candidate()
            if not self.billing_requests.invoice_number_exists(candidate):
                logger.debug("invoice_number_generated", invoice_number=candidate, attempt=attempt)
                return candidate

            logger.warning("invoice_number_taken", invoice_number=candidate, attempt=attempt)

        logger.error("invoice_number_generation_exhausted", attempts=self.max_attempts)
        raise IdentifierGenerationExhaustedError(INVOICE_NUMBER, self.max_attempts)

    def generate_tracking_code(self, service_code: Optional[str] = None) -> str:
        """
        Generate an unused tracking code with the route's prefix.

        Raises:
            IdentifierGenerationExhaustedError: If every candidate is taken
        """
        prefix = tracking_prefix_for(service_code)

        for attempt in range(1, self.max_attempts + 1):
            candidate = self.source.next_tracking_candidate(prefix=prefix)
            if not self.billing_requests.tracking_code_exists(candidate):
                logger.debug("tracking_code_generated", tracking_code=candidate, attempt=attempt)
                return candidate

            logger.warning("tracking_code_taken", tracking_code=candidate, attempt=attempt)

        logger.error("tracking_code_generation_exhausted", attempts=self.max_attempts)
        raise IdentifierGenerationExhaustedError(TRACKING_CODE, self.max_attempts)

    def assign_tracking_code(
        self,
        booking_tracking: Optional[str],
        service_code: Optional[str] = None
    ) -> str:
        """
        Pick the tracking code for a new billing request.

        The booking's own AWB is kept when it is free and fits the column;
        otherwise a new code is generated.

        Args:
            booking_tracking: Tracking value resolved from the booking
            service_code: Normalized service code, selects the prefix

        Returns:
            Tracking code not present on any billing request
        """
        existing = clean_text(booking_tracking)
        if existing and len(existing) > MAX_TRACKING_CODE_LENGTH:
            logger.warning("booking_tracking_code_too_long", tracking_code=existing, length=len(existing))
            existing = None

        if existing:
            if not self.billing_requests.tracking_code_exists(existing):
                logger.debug("booking_tracking_code_reused", tracking_code=existing)
                return existing

            logger.warning("booking_tracking_code_taken", tracking_code=existing)

        return self.generate_tracking_code(service_code)

    # ===================
    # VERIFICATION
    # ===================

    def verify_available(self, invoice_number: str, tracking_code: str) -> list[str]:
        """
        Re-check both identifiers right before the write.

        Returns:
            Names of identifiers that have been taken meanwhile (empty if both free)
        """
        taken = []
        if self.billing_requests.invoice_number_exists(invoice_number):
            taken.append(INVOICE_NUMBER)
        if self.billing_requests.tracking_code_exists(tracking_code):
            taken.append(TRACKING_CODE)

        if taken:
            logger.warning(
                "identifiers_taken_before_write",
                invoice_number=invoice_number,
                tracking_code=tracking_code,
                taken=taken
            )

        return taken

    def regenerate(self, field: str, service_code: Optional[str] = None) -> str:
        """Issue a fresh value for the named identifier."""
        if field == INVOICE_NUMBER:
            return self.generate_invoice_number()
        if field == TRACKING_CODE:
            return self.generate_tracking_code(service_code)
        raise ValueError(f"Unknown identifier: {field}")
