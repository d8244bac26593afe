"""
Notification service for department fan-out.

Each notification is a row in the notifications table. When Telegram is
configured a short message is pushed as well; a Telegram failure does not
fail the notification.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.notification import NotificationCreate
from integrations.telegram import format_department_message, send_message
from exceptions import NotificationError, TelegramError

logger = structlog.get_logger(__name__)


class NotificationService:
    """
    Department notification delivery.
    """

    def __init__(self, db=None):
        self.db = db or get_supabase_client()
        self.table = "notifications"

    def notify(
        self,
        department: str,
        entity_id: str,
        actor_id: Optional[str] = None,
        entity_type: str = "billing_request",
        invoice_number: Optional[str] = None,
        tracking_code: Optional[str] = None
    ) -> dict:
        """
        Notify a department about an entity.

        Args:
            department: Department name
            entity_id: Referenced entity UUID
            actor_id: Employee who triggered it
            entity_type: Kind of entity
            invoice_number: Shown in the Telegram message
            tracking_code: Shown in the Telegram message

        Returns:
            Created notification row

        Raises:
            NotificationError: If the notification row cannot be written
        """
        data = NotificationCreate(
            department=department,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
        )

        logger.info(
            "creating_notification",
            department=data.department,
            entity_type=data.entity_type,
            entity_id=data.entity_id
        )

        try:
            result = (
                self.db.table(self.table)
                .insert(data.model_dump(mode="json"))
                .execute()
            )
        except Exception as e:
            logger.error("create_notification_failed", department=department, error=str(e))
            raise NotificationError(
                f"Failed to notify {department}: {str(e)}",
                details={"department": department, "entity_id": entity_id}
            )

        row = result.data[0] if result.data else data.model_dump(mode="json")

        try:
            send_message(format_department_message(
                department=data.department,
                entity_type=data.entity_type,
                entity_id=data.entity_id,
                invoice_number=invoice_number,
                tracking_code=tracking_code,
            ))
        except TelegramError as e:
            logger.warning(
                "telegram_notification_failed",
                department=department,
                entity_id=entity_id,
                error=e.message
            )

        logger.info("notification_created", department=department, entity_id=entity_id)

        return row


# Singleton instance
_notification_service: Optional[NotificationService] = None


def get_notification_service() -> NotificationService:
    """Get or create NotificationService instance."""
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService()
    return _notification_service
