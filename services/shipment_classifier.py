"""
Shipment classifier.

A shipment is DOCUMENT when any item description mentions paperwork.
"""

from typing import Iterable, Optional

from models.billing_request import ShipmentType

DOCUMENT_KEYWORDS = (
    "document",
    "documents",
    "paper",
    "papers",
    "letter",
    "letters",
    "file",
    "files",
)


def is_document_description(description: Optional[str]) -> bool:
    """Case-insensitive substring match against the keyword set."""
    if not description:
        return False
    lowered = description.lower()
    return any(keyword in lowered for keyword in DOCUMENT_KEYWORDS)


def classify_shipment(descriptions: Iterable[Optional[str]]) -> ShipmentType:
    """
    Classify a shipment from its item descriptions.

    Examples:
        ["Birth certificate documents"] -> DOCUMENT
        ["Dried mango", "Shoes"]        -> NON_DOCUMENT
        []                              -> NON_DOCUMENT
    """
    if any(is_document_description(d) for d in descriptions):
        return ShipmentType.DOCUMENT
    return ShipmentType.NON_DOCUMENT
