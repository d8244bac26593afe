"""
Field resolver for loosely structured booking records.

Intake records spell the same concept many ways: a customer's name can be
a flat ``customer_name``, a nested ``sender.fullName`` or separate
first/last parts. Each semantic field maps to an ordered list of candidate
paths below; one generic function walks the list and returns the first
non-empty value.

Resolution never raises. Missing sub-objects simply contribute no
candidates, and a field with no match resolves to None.
"""

from dataclasses import dataclass
from typing import Any, Optional

from utils.text_utils import clean_text, join_names

SENDER = "sender"
RECEIVER = "receiver"
ROLES = (SENDER, RECEIVER)


# ===================
# CANDIDATE PATHS
# ===================

# Per-role paths for party fields. Dotted paths walk nested dicts.
FIELD_PATHS: dict[str, dict[str, list[str]]] = {
    SENDER: {
        "name": ["customer_name", "name", "sender.fullName", "sender.name"],
        "first_name": ["sender.firstName", "customer_first_name"],
        "last_name": ["sender.lastName", "customer_last_name"],
        "phone": [
            "sender.contactNo",
            "sender.phoneNumber",
            "sender.phone",
            "customer_phone",
            "phone",
        ],
        "address": [
            "sender.completeAddress",
            "sender.addressLine1",
            "sender.address",
            "sender_address",
            "origin_place",
        ],
        "city": ["sender.city", "origin_city"],
        "country": ["sender.country", "origin_country"],
        "company": ["sender.company", "customer_company"],
        "email": ["sender.emailAddress", "sender.email", "customer_email", "email"],
        "delivery_option": ["sender.deliveryOption", "sender_delivery_option"],
        "agent_name": ["sender.agentName", "agent_name"],
    },
    RECEIVER: {
        "name": ["receiver_name", "receiverName", "receiver.fullName", "receiver.name"],
        "first_name": ["receiver.firstName", "receiver_first_name"],
        "last_name": ["receiver.lastName", "receiver_last_name"],
        "phone": [
            "receiver.contactNo",
            "receiver.phoneNumber",
            "receiver.phone",
            "receiver_phone",
            "receiverPhone",
        ],
        "address": [
            "receiver.completeAddress",
            "receiver.addressLine1",
            "receiver.address",
            "receiver_address",
            "receiverAddress",
        ],
        "city": ["receiver.city", "destination_city"],
        "country": ["receiver.country", "destination_country"],
        "company": ["receiver.company", "receiver_company"],
        "email": ["receiver.emailAddress", "receiver.email", "receiver_email"],
        "delivery_option": ["receiver.deliveryOption", "receiver_delivery_option"],
        "agent_name": ["receiver.agentName"],
    },
}

# Booking-level text fields
BOOKING_FIELD_PATHS: dict[str, list[str]] = {
    "origin_place": [
        "origin_place",
        "origin",
        "sender.completeAddress",
        "sender.addressLine1",
        "sender.address",
        "sender.country",
    ],
    "destination_place": [
        "destination_place",
        "destination",
        "receiver.completeAddress",
        "receiver.addressLine1",
        "receiver.address",
        "receiver.country",
    ],
    "tracking": ["awb", "tracking_code", "awb_number"],
    "service": ["service", "service_code"],
    "notes": ["additionalDetails", "notes"],
}

# Booking-level raw values, coerced by the caller
BOOKING_VALUE_PATHS: dict[str, list[str]] = {
    "declared_amount": [
        "declaredAmount",
        "declared_amount",
        "declared_value",
        "declaredValue",
        "sender.declaredAmount",
        "sender.declared_amount",
        "sender.declared_value",
        "sender.declaredValue",
    ],
    "insured": [
        "insured",
        "insurance",
        "isInsured",
        "is_insured",
        "sender.insured",
        "sender.insurance",
        "sender.isInsured",
        "sender.is_insured",
    ],
    "weight": ["weight", "weight_kg", "total_weight"],
    "number_of_boxes": ["number_of_boxes", "numberOfBoxes"],
}

ITEM_DESCRIPTION_KEYS = ("commodity", "name", "description")
ITEM_QUANTITY_KEYS = ("qty", "quantity")


@dataclass
class ResolvedParty:
    """Canonical contact fields for one side of a shipment."""
    role: str
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    company: Optional[str] = None
    email: Optional[str] = None
    delivery_option: Optional[str] = None
    agent_name: Optional[str] = None

    @property
    def details_complete(self) -> bool:
        """Name and phone are both known."""
        return bool(self.name and self.phone)


# ===================
# GENERIC RESOLUTION
# ===================

def resolve_path(record: Any, path: str) -> Any:
    """
    Walk a dotted path through nested dicts.

    Returns None as soon as a step is missing or not a dict.
    """
    current = record
    for key in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current


def first_text(record: Any, paths: list[str]) -> Optional[str]:
    """Return the first candidate that is non-empty text after trimming."""
    for path in paths:
        value = clean_text(resolve_path(record, path))
        if value:
            return value
    return None


def first_value(record: Any, paths: list[str]) -> Any:
    """Return the first candidate that is present (not None)."""
    for path in paths:
        value = resolve_path(record, path)
        if value is not None:
            return value
    return None


def resolve_field(record: Any, field: str, role: str = SENDER) -> Optional[str]:
    """
    Resolve one party field for the given role.

    For ``name``, when no candidate matches, first and last name parts are
    joined if both are non-empty after trimming.

    Args:
        record: Booking dict
        field: Semantic field (see FIELD_PATHS)
        role: "sender" or "receiver"

    Returns:
        Resolved text or None
    """
    paths = FIELD_PATHS.get(role, {}).get(field)
    if not paths:
        return None

    value = first_text(record, paths)
    if value or field != "name":
        return value

    return join_names(
        resolve_field(record, "first_name", role),
        resolve_field(record, "last_name", role),
    )


def resolve_party(record: Any, role: str) -> ResolvedParty:
    """Resolve every party field for one role."""
    party = ResolvedParty(role=role)
    for field in FIELD_PATHS.get(role, {}):
        setattr(party, field, resolve_field(record, field, role))
    return party


def resolve_booking_field(record: Any, field: str) -> Optional[str]:
    """Resolve a booking-level text field (origin, tracking, service...)."""
    return first_text(record, BOOKING_FIELD_PATHS.get(field, []))


def resolve_booking_value(record: Any, field: str) -> Any:
    """Resolve a booking-level raw value (declared amount, insured...)."""
    return first_value(record, BOOKING_VALUE_PATHS.get(field, []))


# ===================
# ITEMS
# ===================

def resolve_items(record: Any) -> list[dict]:
    """Return the booking's item list, skipping anything that is not a dict."""
    items = resolve_path(record, "items")
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def item_description(item: dict) -> Optional[str]:
    """Commodity, then name, then description."""
    for key in ITEM_DESCRIPTION_KEYS:
        value = clean_text(item.get(key))
        if value:
            return value
    return None


def item_quantity(item: dict) -> Any:
    for key in ITEM_QUANTITY_KEYS:
        if item.get(key) is not None:
            return item[key]
    return None


def resolve_item_descriptions(record: Any) -> list[str]:
    """Non-empty descriptions of every item, in order."""
    descriptions = []
    for item in resolve_items(record):
        description = item_description(item)
        if description:
            descriptions.append(description)
    return descriptions


def listed_commodities(record: Any) -> str:
    """
    Comma-separated commodity list with quantities.

    Example: "Dried Mango (Qty: 3), Documents"
    """
    entries = []
    for item in resolve_items(record):
        description = item_description(item)
        if not description:
            continue
        quantity = clean_text(item_quantity(item))
        if quantity and quantity != "0":
            description = f"{description} (Qty: {quantity})"
        entries.append(description)
    return ", ".join(entries)
