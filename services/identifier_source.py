"""
Identifier candidate sources.

A source only proposes candidates; uniqueness against the store is checked
by the identifier service.
"""

import secrets
from datetime import datetime, timezone
from typing import Optional, Protocol

INVOICE_PREFIX = "INV"
INVOICE_RANDOM_DIGITS = 6
TRACKING_RANDOM_DIGITS = 12


class IdentifierSource(Protocol):
    """Anything that can propose identifier candidates."""

    def next_invoice_candidate(self) -> str:
        ...

    def next_tracking_candidate(self, prefix: Optional[str] = None) -> str:
        ...


def _random_digits(count: int) -> str:
    return "".join(str(secrets.randbelow(10)) for _ in range(count))


class RandomIdentifierSource:
    """
    Default source backed by the secrets module.

    Formats:
        invoice:  INV-YYMMDD-NNNNNN
        tracking: <prefix>NNNNNNNNNNNN
    """

    def next_invoice_candidate(self) -> str:
        today = datetime.now(timezone.utc).strftime("%y%m%d")
        return f"{INVOICE_PREFIX}-{today}-{_random_digits(INVOICE_RANDOM_DIGITS)}"

    def next_tracking_candidate(self, prefix: Optional[str] = None) -> str:
        return f"{prefix or ''}{_random_digits(TRACKING_RANDOM_DIGITS)}"
