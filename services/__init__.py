"""
Business logic services.

Each service handles one domain area.
"""

from services.booking_service import BookingService, get_booking_service
from services.billing_request_service import BillingRequestService, get_billing_request_service
from services.identifier_source import IdentifierSource, RandomIdentifierSource
from services.identifier_service import IdentifierService
from services.responsible_party_service import (
    ResponsiblePartyResolver,
    EmployeeResponsiblePartyResolver,
)
from services.outbox_service import OutboxService, OutboxWorker, get_outbox_service
from services.notification_service import NotificationService, get_notification_service
from services.conversion_service import BookingConversionService, get_conversion_service

__all__ = [
    "BookingService",
    "get_booking_service",
    "BillingRequestService",
    "get_billing_request_service",
    "IdentifierSource",
    "RandomIdentifierSource",
    "IdentifierService",
    "ResponsiblePartyResolver",
    "EmployeeResponsiblePartyResolver",
    "OutboxService",
    "OutboxWorker",
    "get_outbox_service",
    "NotificationService",
    "get_notification_service",
    "BookingConversionService",
    "get_conversion_service",
]
