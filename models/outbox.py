"""
Outbox schemas.

Downstream fan-out (billing sync, department notifications) is recorded
as outbox messages and delivered by a separate worker.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import Field

from models.base import BaseSchema


class OutboxKind(str, Enum):
    """What the worker should do with a message."""
    BILLING_SYNC = "BILLING_SYNC"
    DEPARTMENT_NOTIFICATION = "DEPARTMENT_NOTIFICATION"


class OutboxStatus(str, Enum):
    """Delivery status of an outbox message."""
    PENDING = "PENDING"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"  # Gave up after max attempts


class OutboxMessageCreate(BaseSchema):
    """Enqueue a fan-out intent."""

    kind: OutboxKind
    payload: dict[str, Any] = Field(default_factory=dict)


class OutboxMessage(BaseSchema):
    """Outbox message as stored."""

    id: str
    kind: OutboxKind
    payload: dict[str, Any] = Field(default_factory=dict)
    status: OutboxStatus = OutboxStatus.PENDING
    attempts: int = 0
    last_error: Optional[str] = None
    next_attempt_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class DrainSummary(BaseSchema):
    """Counts from one worker run."""

    delivered: int = 0
    retried: int = 0
    failed: int = 0
