"""
Billing request schemas for validation and serialization.

A billing request is the canonical record derived from a reviewed booking.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import Field, field_validator

from models.base import BaseSchema, TimestampMixin

# Column width of tracking_code and awb_number
MAX_TRACKING_CODE_LENGTH = 50


class ShipmentType(str, Enum):
    """Shipment content classification."""
    DOCUMENT = "DOCUMENT"
    NON_DOCUMENT = "NON_DOCUMENT"


class BillingRequestStatus(str, Enum):
    """Billing request workflow status."""
    SUBMITTED = "SUBMITTED"
    IN_PROGRESS = "IN_PROGRESS"
    VERIFIED = "VERIFIED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class DeliveryStatus(str, Enum):
    """Physical delivery status."""
    PENDING = "PENDING"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"


class ConversionState(str, Enum):
    """Lifecycle of a booking through the conversion pipeline."""
    BOOKING_RECEIVED = "BOOKING_RECEIVED"
    BOOKING_REVIEWED = "BOOKING_REVIEWED"
    CONVERSION_IN_PROGRESS = "CONVERSION_IN_PROGRESS"
    CONVERSION_COMPLETE = "CONVERSION_COMPLETE"
    CONVERSION_FAILED = "CONVERSION_FAILED"


# ===================
# VERIFICATION SCHEMAS
# ===================

class VerificationBox(BaseSchema):
    """One measured box in the verification data."""

    items: str = Field(default="", description="Box contents")
    quantity: Optional[int] = Field(None, ge=0, description="Units in the box")
    length: Optional[Decimal] = Field(None, description="Length in cm")
    width: Optional[Decimal] = Field(None, description="Width in cm")
    height: Optional[Decimal] = Field(None, description="Height in cm")
    vm: Optional[Decimal] = Field(None, description="Volumetric measure")


class Verification(BaseSchema):
    """
    Measurement and commodity data attached to a billing request.

    Downstream pricing reads boxes and listed commodities from here.
    """

    service_code: Optional[str] = None
    listed_commodities: str = ""
    boxes: list[VerificationBox] = Field(default_factory=list)
    number_of_boxes: int = Field(default=1, ge=1)
    receiver_address: str = ""
    receiver_phone: str = ""
    agents_name: str = ""
    sender_details_complete: bool = False
    receiver_details_complete: bool = False


# ===================
# BILLING REQUEST SCHEMAS
# ===================

class BillingRequestCreate(BaseSchema):
    """
    Fully assembled billing request, ready for a single insert.
    """

    invoice_number: str = Field(..., min_length=1, max_length=50)
    tracking_code: str = Field(..., min_length=1, max_length=MAX_TRACKING_CODE_LENGTH)
    service_code: Optional[str] = None
    booking_id: str = Field(..., description="Originating booking UUID")

    customer_name: str = ""
    customer_phone: str = ""
    receiver_name: str = ""
    receiver_address: str = ""
    receiver_phone: str = ""
    receiver_company: str = ""
    origin_place: str = ""
    destination_place: str = ""

    shipment_type: ShipmentType = ShipmentType.NON_DOCUMENT
    items_description: str = ""

    sender_delivery_option: Optional[str] = None
    receiver_delivery_option: Optional[str] = None

    insured: bool = False
    declared_amount: Optional[Decimal] = None
    weight: Optional[Decimal] = None

    status: BillingRequestStatus = BillingRequestStatus.SUBMITTED
    delivery_status: DeliveryStatus = DeliveryStatus.PENDING
    is_leviable: bool = True

    created_by_employee_id: str
    notes: str = ""

    identity_documents: dict[str, Any] = Field(default_factory=dict)
    verification: Verification
    booking_snapshot: dict[str, Any] = Field(default_factory=dict)
    booking_data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("tracking_code", "invoice_number")
    @classmethod
    def normalize_identifier(cls, v: str) -> str:
        """Identifiers are stored trimmed."""
        return v.strip()

    @field_validator("declared_amount", "weight")
    @classmethod
    def round_amount(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        """Round to 2 decimal places."""
        if v is None:
            return v
        return round(v, 2)


class BillingRequestResponse(BillingRequestCreate, TimestampMixin):
    """Billing request as stored."""

    id: str
    awb_number: Optional[str] = None


# ===================
# CONVERSION RESULTS
# ===================

class ConversionResult(BaseSchema):
    """Outcome of converting one booking."""

    booking_id: str
    state: ConversionState
    billing_request: Optional[BillingRequestResponse] = None
    created: bool = Field(
        default=False,
        description="False when an existing billing request was re-linked"
    )
    linked: bool = Field(
        default=False,
        description="Whether the booking back-link is set"
    )


class ConversionFailure(BaseSchema):
    """A booking that could not be converted in a batch run."""

    booking_id: str
    error_code: str
    message: str


class ConversionBatchSummary(BaseSchema):
    """Summary of a batch conversion run."""

    converted: list[ConversionResult] = Field(default_factory=list)
    relinked: list[ConversionResult] = Field(default_factory=list)
    failed: list[ConversionFailure] = Field(default_factory=list)
    completed_at: datetime

    @property
    def total(self) -> int:
        return len(self.converted) + len(self.relinked) + len(self.failed)
