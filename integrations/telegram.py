"""
Telegram bot integration for department notifications.

Sends a short message to the operations chat when a billing request is
created.
"""

from typing import Optional
import requests
import structlog

from config import settings
from exceptions import TelegramError

logger = structlog.get_logger(__name__)


DEPARTMENT_EMOJIS = {
    "Sales": "💼",
    "Operations": "🚚",
    "Finance": "💰",
}


def get_telegram_config() -> tuple[Optional[str], Optional[str]]:
    """
    Get Telegram configuration from settings.

    Returns:
        tuple: (bot_token, chat_id)
    """
    bot_token = settings.telegram_bot_token
    chat_id = settings.telegram_chat_id

    if not bot_token or not chat_id:
        logger.warning(
            "telegram_not_configured",
            has_token=bool(bot_token),
            has_chat_id=bool(chat_id)
        )

    return bot_token, chat_id


def format_department_message(
    department: str,
    entity_type: str,
    entity_id: str,
    invoice_number: Optional[str] = None,
    tracking_code: Optional[str] = None
) -> str:
    """
    Format a department notification as a Telegram message.

    Args:
        department: Department being notified
        entity_type: Kind of entity ("billing_request")
        entity_id: Entity UUID
        invoice_number: Invoice number, if known
        tracking_code: Tracking code, if known

    Returns:
        Formatted message string
    """
    emoji = DEPARTMENT_EMOJIS.get(department, "•")
    title = entity_type.replace("_", " ").capitalize()

    lines = [
        f"{emoji} *{department}*",
        "",
        f"New {title.lower()} ready for processing",
        "",
        f"ID: `{entity_id}`",
    ]

    if invoice_number:
        lines.append(f"Invoice: `{invoice_number}`")
    if tracking_code:
        lines.append(f"Tracking: `{tracking_code}`")

    return "\n".join(lines)


def send_message(message: str, parse_mode: str = "Markdown") -> bool:
    """
    Send message to Telegram.

    Args:
        message: Message text to send
        parse_mode: Telegram parse mode (Markdown or HTML)

    Returns:
        True if sent, False if Telegram is not configured

    Raises:
        TelegramError: If send fails
    """
    bot_token, chat_id = get_telegram_config()

    if not bot_token or not chat_id:
        logger.warning("telegram_not_configured_skipping_send")
        return False

    url = f"https://api.telegram.org/bot{bot_token}/sendMessage"

    payload = {
        "chat_id": chat_id,
        "text": message,
        "parse_mode": parse_mode,
        "disable_web_page_preview": True,
    }

    try:
        logger.info("sending_telegram_message", chat_id=chat_id)

        response = requests.post(url, json=payload, timeout=10)
        response.raise_for_status()

        result = response.json()

        if not result.get("ok"):
            error_msg = result.get("description", "Unknown error")
            logger.error("telegram_api_error", error=error_msg)
            raise TelegramError(f"Telegram API error: {error_msg}")

        logger.info("telegram_message_sent", message_id=result.get("result", {}).get("message_id"))
        return True

    except requests.exceptions.RequestException as e:
        logger.error("telegram_request_failed", error=str(e))
        raise TelegramError(f"Failed to send Telegram message: {str(e)}")
