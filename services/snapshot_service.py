"""
Snapshot builder.

Bookings embed identity document images that can run to megabytes. The
copies stored on a billing request drop those keys at every nesting level
and keep everything else intact. The source booking is never modified.
"""

import copy
import json
from typing import Any
import structlog

logger = structlog.get_logger(__name__)


EXCLUDED_FIELDS = frozenset({
    "identityDocuments",
    "images",
    "selfie",
    "customerImage",
    "customerImages",
    "eidFrontImage",
    "eidBackImage",
    "philippinesIdFront",
    "philippinesIdBack",
    "eid_front_image",
    "eid_back_image",
    "philippines_id_front",
    "philippines_id_back",
    "emiratesIdFront",
    "emiratesIdBack",
    "phIdFront",
    "phIdBack",
})

# Store-internal keys that never belong in a snapshot
INTERNAL_FIELDS = frozenset({"__v"})

# Identity metadata that is safe to keep (no image data)
IDENTITY_METADATA_FIELDS = ("eidFrontImageFirstName", "eidFrontImageLastName")


def strip_excluded(value: Any) -> Any:
    """
    Deep copy of value with excluded keys removed from every dict.

    Lists are walked element by element, so items and boxes are covered.
    """
    if isinstance(value, dict):
        return {
            key: strip_excluded(item)
            for key, item in value.items()
            if key not in EXCLUDED_FIELDS
        }
    if isinstance(value, list):
        return [strip_excluded(item) for item in value]
    return copy.deepcopy(value)


def build_audit_snapshot(booking: dict) -> dict:
    """
    Copy of the booking kept for audit.

    Excluded fields are removed at all levels, __v is dropped and id is a
    string.
    """
    snapshot = strip_excluded(booking or {})

    for key in INTERNAL_FIELDS:
        snapshot.pop(key, None)

    if snapshot.get("id") is not None:
        snapshot["id"] = str(snapshot["id"])

    return snapshot


def build_integration_payload(booking: dict) -> dict:
    """
    Copy of the booking handed to downstream consumers.

    Same as the audit snapshot, but a missing sender or receiver becomes an
    empty dict and missing items an empty list. Values that are present
    are passed through unchanged.
    """
    payload = build_audit_snapshot(booking)

    for role in ("sender", "receiver"):
        if payload.get(role) is None:
            payload[role] = {}

    if payload.get("items") is None:
        payload["items"] = []

    return payload


def extract_identity_metadata(booking: dict) -> dict:
    """
    Identity document metadata without any image data.

    Looks in booking["identityDocuments"] first, then at the top level.
    Empty values are left out.
    """
    booking = booking or {}
    documents = booking.get("identityDocuments")
    if not isinstance(documents, dict):
        documents = {}

    metadata = {}
    for key in IDENTITY_METADATA_FIELDS:
        value = documents.get(key) or booking.get(key)
        if value not in (None, ""):
            metadata[key] = value
    return metadata


def payload_size(payload: Any) -> int:
    """Size of the JSON encoding in bytes."""
    return len(json.dumps(payload, default=str).encode("utf-8"))


def warn_if_oversized(name: str, payload: Any, limit_bytes: int, **context) -> int:
    """Log a warning when a payload is over the size limit. Returns its size."""
    size = payload_size(payload)
    if size > limit_bytes:
        logger.warning(
            "snapshot_oversized",
            snapshot=name,
            size_bytes=size,
            limit_bytes=limit_bytes,
            **context
        )
    return size
