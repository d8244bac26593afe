"""
Booking schemas.

Bookings arrive from intake as loosely structured documents, so the
pipeline reads them as plain dicts. Only the review lifecycle is typed.
"""

from enum import Enum


# Column that links a booking to the billing request derived from it
BILLING_LINK_FIELD = "converted_to_billing_request_id"


class ReviewStatus(str, Enum):
    """Booking review status values."""
    PENDING = "pending"
    REVIEWED = "reviewed"
    REJECTED = "rejected"
