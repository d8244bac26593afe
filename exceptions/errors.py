"""
Custom exception classes for the application.

Every error carries a stable code, an HTTP-style status and details.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.
    
    All custom exceptions inherit from this.
    
    Attributes:
        code: Error code (e.g., "BOOKING_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """
    
    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)
    
    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""
    
    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""
    
    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""
    
    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DuplicateError(ConflictError):
    """Duplicate resource (409)."""
    
    def __init__(
        self,
        resource: str,
        field: str,
        value: str
    ):
        super().__init__(
            code=f"{resource.upper()}_{field.upper()}_EXISTS",
            message=f"{resource} with this {field} already exists",
            details={field: value}
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""
    
    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""
    
    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )




# ===================
# BOOKING ERRORS
# ===================

class BookingNotFoundError(NotFoundError):
    """Booking not found."""

    def __init__(self, booking_id: str):
        super().__init__(
            resource="Booking",
            identifier=booking_id,
            code="BOOKING_NOT_FOUND"
        )


class BookingNotReviewedError(ValidationError):
    """Booking cannot be converted in its current review state."""

    def __init__(self, booking_id: str, review_status: Optional[str]):
        super().__init__(
            code="BOOKING_NOT_REVIEWABLE",
            message=f"Booking in status {review_status or 'unknown'} cannot be converted",
            details={"booking_id": booking_id, "review_status": review_status}
        )


# ===================
# BILLING REQUEST ERRORS
# ===================

class BillingRequestNotFoundError(NotFoundError):
    """Billing request not found."""

    def __init__(self, billing_request_id: str):
        super().__init__(
            resource="Billing request",
            identifier=billing_request_id,
            code="BILLING_REQUEST_NOT_FOUND"
        )


class DuplicateIdentifierError(DuplicateError):
    """A unique billing request identifier was rejected by the store."""

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(
            resource="Billing request",
            field=field,
            value=value
        )
        self.code = f"BILLING_REQUEST_{field.upper()}_EXISTS"


class IdentifierGenerationExhaustedError(ConflictError):
    """No free identifier candidate within the retry bound."""

    def __init__(self, identifier: str, attempts: int):
        super().__init__(
            code="IDENTIFIER_GENERATION_EXHAUSTED",
            message=f"Could not generate a unique {identifier} after {attempts} attempts",
            details={"identifier": identifier, "attempts": attempts}
        )


class BillingRequestPersistenceError(DatabaseError):
    """Writing the billing request failed; the booking stays retryable."""

    def __init__(self, booking_id: str, message: str):
        super().__init__(
            operation="insert",
            message=message,
            details={"booking_id": booking_id, "retryable": True}
        )


# ===================
# DOWNSTREAM ERRORS
# ===================

class BillingSyncError(ExternalServiceError):
    """Billing system sync call failed."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            service="billing_sync",
            message=message,
            details=details
        )


class NotificationError(ExternalServiceError):
    """Department notification could not be delivered."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            service="notification",
            message=message,
            details=details
        )


class TelegramError(ExternalServiceError):
    """Telegram API error."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            service="telegram",
            message=message,
            details=details
        )
