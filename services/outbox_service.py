"""
Outbox service for downstream fan-out.

A conversion records what must happen next (billing sync, department
notifications) as rows in conversion_outbox. OutboxWorker drains due
rows, calls the collaborators and reschedules failures with exponential
backoff. A message that keeps failing is marked FAILED after
outbox_max_attempts deliveries.
"""

from typing import Any, Optional
from datetime import datetime, timedelta, timezone
import structlog

from config import get_supabase_client, settings
from models.outbox import (
    OutboxKind,
    OutboxStatus,
    OutboxMessageCreate,
    OutboxMessage,
    DrainSummary,
)
from exceptions import BillingSyncError, DatabaseError, ValidationError

logger = structlog.get_logger(__name__)


def backoff_delay(
    attempts: int,
    base_seconds: Optional[int] = None,
    max_seconds: Optional[int] = None
) -> int:
    """
    Seconds to wait after the given number of failed attempts.

    Doubles per attempt: base, 2*base, 4*base ... capped at max_seconds.
    """
    base = base_seconds or settings.outbox_base_delay_seconds
    cap = max_seconds or settings.outbox_max_delay_seconds
    exponent = max(attempts - 1, 0)
    return min(base * (2 ** exponent), cap)


class OutboxService:
    """
    Outbox store access.

    Handles enqueueing, due-message lookup and delivery bookkeeping.
    """

    def __init__(self, db=None, max_attempts: Optional[int] = None):
        self.db = db or get_supabase_client()
        self.table = "conversion_outbox"
        self.max_attempts = max_attempts or settings.outbox_max_attempts

    # ===================
    # WRITE OPERATIONS
    # ===================

    def enqueue(self, kind: OutboxKind, payload: dict[str, Any]) -> OutboxMessage:
        """
        Record a fan-out intent.

        Args:
            kind: What the worker should do
            payload: Arguments for the collaborator

        Returns:
            Stored OutboxMessage
        """
        data = OutboxMessageCreate(kind=kind, payload=payload)
        now = datetime.now(timezone.utc)

        row = {
            "kind": data.kind.value,
            "payload": data.payload,
            "status": OutboxStatus.PENDING.value,
            "attempts": 0,
            "last_error": None,
            "next_attempt_at": now.isoformat(),
        }

        try:
            result = (
                self.db.table(self.table)
                .insert(row)
                .execute()
            )
        except Exception as e:
            logger.error("enqueue_outbox_message_failed", kind=data.kind.value, error=str(e))
            raise DatabaseError("insert", str(e))

        message = self._row_to_message(result.data[0])

        logger.info("outbox_message_enqueued", message_id=message.id, kind=message.kind.value)

        return message

    def mark_delivered(self, message: OutboxMessage) -> None:
        """Mark a message as delivered."""
        self._update(message.id, {
            "status": OutboxStatus.DELIVERED.value,
            "attempts": message.attempts + 1,
            "last_error": None,
        })

        logger.info("outbox_message_delivered", message_id=message.id, kind=message.kind.value)

    def mark_retry(self, message: OutboxMessage, error: str) -> OutboxStatus:
        """
        Record a failed delivery.

        Reschedules with backoff, or marks FAILED once max attempts is hit.

        Returns:
            The message's new status
        """
        attempts = message.attempts + 1

        if attempts >= self.max_attempts:
            self._update(message.id, {
                "status": OutboxStatus.FAILED.value,
                "attempts": attempts,
                "last_error": error,
            })
            logger.error(
                "outbox_message_failed",
                message_id=message.id,
                kind=message.kind.value,
                attempts=attempts,
                error=error
            )
            return OutboxStatus.FAILED

        delay = backoff_delay(attempts)
        next_attempt_at = datetime.now(timezone.utc) + timedelta(seconds=delay)

        self._update(message.id, {
            "attempts": attempts,
            "last_error": error,
            "next_attempt_at": next_attempt_at.isoformat(),
        })

        logger.warning(
            "outbox_message_rescheduled",
            message_id=message.id,
            kind=message.kind.value,
            attempts=attempts,
            delay_seconds=delay,
            error=error
        )
        return OutboxStatus.PENDING

    # ===================
    # READ OPERATIONS
    # ===================

    def get_due(self, limit: Optional[int] = None, now: Optional[datetime] = None) -> list[OutboxMessage]:
        """
        Get pending messages whose next attempt is due.

        Args:
            limit: Maximum messages (defaults to outbox_batch_size)
            now: Reference time (defaults to current UTC time)

        Returns:
            Due messages, oldest schedule first
        """
        limit = limit or settings.outbox_batch_size
        now = now or datetime.now(timezone.utc)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("status", OutboxStatus.PENDING.value)
                .lte("next_attempt_at", now.isoformat())
                .order("next_attempt_at")
                .limit(limit)
                .execute()
            )

            return [self._row_to_message(row) for row in result.data or []]

        except Exception as e:
            logger.error("get_due_outbox_messages_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def _update(self, message_id: str, update_data: dict) -> None:
        try:
            (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", message_id)
                .execute()
            )
        except Exception as e:
            logger.error("update_outbox_message_failed", message_id=message_id, error=str(e))
            raise DatabaseError("update", str(e))

    def _row_to_message(self, row: dict) -> OutboxMessage:
        """Convert database row to OutboxMessage."""
        return OutboxMessage(
            id=str(row["id"]),
            kind=row["kind"],
            payload=row.get("payload") or {},
            status=row.get("status") or OutboxStatus.PENDING.value,
            attempts=row.get("attempts") or 0,
            last_error=row.get("last_error"),
            next_attempt_at=row.get("next_attempt_at"),
            created_at=row.get("created_at"),
        )


class OutboxWorker:
    """
    Drains the outbox.

    Collaborators are injected; the script wires the real ones.
    """

    def __init__(self, outbox: OutboxService, billing_sync, notifications):
        self.outbox = outbox
        self.billing_sync = billing_sync
        self.notifications = notifications

    def drain(self, limit: Optional[int] = None) -> DrainSummary:
        """
        Deliver every due message once.

        Returns:
            Counts of delivered, rescheduled and permanently failed messages
        """
        messages = self.outbox.get_due(limit=limit)
        summary = DrainSummary()

        logger.info("draining_outbox", due=len(messages))

        for message in messages:
            try:
                self.deliver(message)
            except Exception as e:
                error = getattr(e, "message", None) or str(e)
                status = self.outbox.mark_retry(message, error)
                if status == OutboxStatus.FAILED:
                    summary.failed += 1
                else:
                    summary.retried += 1
                continue

            self.outbox.mark_delivered(message)
            summary.delivered += 1

        logger.info(
            "outbox_drained",
            delivered=summary.delivered,
            retried=summary.retried,
            failed=summary.failed
        )

        return summary

    def deliver(self, message: OutboxMessage) -> None:
        """
        Call the collaborator for one message.

        Raises:
            BillingSyncError: If billing sync is unavailable or fails
            NotificationError: If the notification cannot be written
            ValidationError: If the message kind is unknown
        """
        payload = message.payload

        if message.kind == OutboxKind.BILLING_SYNC:
            synced = self.billing_sync.sync(
                payload["billing_request_id"],
                payload.get("reason", "created")
            )
            if not synced:
                raise BillingSyncError("Billing sync is not configured")
            return

        if message.kind == OutboxKind.DEPARTMENT_NOTIFICATION:
            self.notifications.notify(
                department=payload["department"],
                entity_id=payload["entity_id"],
                actor_id=payload.get("actor_id"),
                entity_type=payload.get("entity_type", "billing_request"),
                invoice_number=payload.get("invoice_number"),
                tracking_code=payload.get("tracking_code"),
            )
            return

        raise ValidationError(f"Unknown outbox message kind: {message.kind}")


# Singleton instance
_outbox_service: Optional[OutboxService] = None


def get_outbox_service() -> OutboxService:
    """Get or create OutboxService instance."""
    global _outbox_service
    if _outbox_service is None:
        _outbox_service = OutboxService()
    return _outbox_service
