"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DuplicateError,
    ExternalServiceError,
    DatabaseError,

    # Bookings
    BookingNotFoundError,
    BookingNotReviewedError,

    # Billing requests
    BillingRequestNotFoundError,
    DuplicateIdentifierError,
    IdentifierGenerationExhaustedError,
    BillingRequestPersistenceError,

    # Downstream collaborators
    BillingSyncError,
    NotificationError,
    TelegramError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DuplicateError",
    "ExternalServiceError",
    "DatabaseError",

    # Bookings
    "BookingNotFoundError",
    "BookingNotReviewedError",

    # Billing requests
    "BillingRequestNotFoundError",
    "DuplicateIdentifierError",
    "IdentifierGenerationExhaustedError",
    "BillingRequestPersistenceError",

    # Downstream collaborators
    "BillingSyncError",
    "NotificationError",
    "TelegramError",
]
