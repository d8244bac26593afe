"""
Service route classifier.

Normalizes free-text service codes to canonical route tokens:
- "ph-to-uae"          -> "PH_TO_UAE"
- "PH_TO_UAE_EXPRESS"  -> "PH_TO_UAE_EXPRESS" (suffix kept)
- "uae to pinas"       -> "UAE_TO_PH"
"""

import re
from typing import Any, Optional

import structlog

logger = structlog.get_logger(__name__)


PH_TO_UAE = "PH_TO_UAE"
UAE_TO_PH = "UAE_TO_PH"

CANONICAL_ROUTES = (PH_TO_UAE, UAE_TO_PH)

# Historical spellings still found in older bookings
ROUTE_ALIASES = {
    "UAE_TO_PINAS": UAE_TO_PH,
    "UAE_TO_PHILIPPINES": UAE_TO_PH,
    "PINAS_TO_UAE": PH_TO_UAE,
    "PHILIPPINES_TO_UAE": PH_TO_UAE,
}

# Tracking codes for shipments leaving the Philippines carry a prefix
TRACKING_PREFIXES = {
    PH_TO_UAE: "PHL",
}

_SEPARATOR_RE = re.compile(r"[\s\-]+")


def _matches(token: str, route: str) -> bool:
    return token == route or token.startswith(f"{route}_")


def normalize_service_code(raw: Any) -> Optional[str]:
    """
    Normalize a raw service code.

    Uppercases, collapses whitespace/hyphen runs to "_", then maps known
    aliases onto canonical routes. Unknown codes come back normalized.

    Args:
        raw: Service code from the booking

    Returns:
        Normalized code, or None for empty or unreadable input
    """
    if raw is None:
        return None

    try:
        text = str(raw)
    except Exception as e:
        logger.warning(
            "service_code_unreadable",
            value_type=type(raw).__name__,
            error=str(e)
        )
        return None

    token = _SEPARATOR_RE.sub("_", text.strip().upper())
    if not token:
        return None

    for route in CANONICAL_ROUTES:
        if _matches(token, route):
            return token

    for alias, route in ROUTE_ALIASES.items():
        if _matches(token, alias):
            return route + token[len(alias):]

    return token


def route_family(service_code: Any) -> Optional[str]:
    """Canonical route a service code belongs to, or None."""
    token = normalize_service_code(service_code)
    if not token:
        return None

    for route in CANONICAL_ROUTES:
        if _matches(token, route):
            return route

    return None


def tracking_prefix_for(service_code: Any) -> Optional[str]:
    """Tracking code prefix for the route, or None when unprefixed."""
    return TRACKING_PREFIXES.get(route_family(service_code))
