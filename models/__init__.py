"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema, TimestampMixin
from models.booking import BILLING_LINK_FIELD, ReviewStatus
from models.billing_request import (
    ShipmentType,
    BillingRequestStatus,
    DeliveryStatus,
    ConversionState,
    VerificationBox,
    Verification,
    BillingRequestCreate,
    BillingRequestResponse,
    ConversionResult,
    ConversionFailure,
    ConversionBatchSummary,
)
from models.outbox import (
    OutboxKind,
    OutboxStatus,
    OutboxMessageCreate,
    OutboxMessage,
    DrainSummary,
)
from models.notification import NotificationCreate

__all__ = [
    # Base
    "BaseSchema",
    "TimestampMixin",

    # Booking
    "BILLING_LINK_FIELD",
    "ReviewStatus",

    # Billing request
    "ShipmentType",
    "BillingRequestStatus",
    "DeliveryStatus",
    "ConversionState",
    "VerificationBox",
    "Verification",
    "BillingRequestCreate",
    "BillingRequestResponse",
    "ConversionResult",
    "ConversionFailure",
    "ConversionBatchSummary",

    # Outbox
    "OutboxKind",
    "OutboxStatus",
    "OutboxMessageCreate",
    "OutboxMessage",
    "DrainSummary",

    # Notifications
    "NotificationCreate",
]
