"""
Billing system sync client.

Tells the external billing system that a billing request exists. The
call is made by the outbox worker, never inline with a conversion.
"""

from typing import Optional
import requests
import structlog

from config import settings
from exceptions import BillingSyncError

logger = structlog.get_logger(__name__)


class BillingSyncClient:
    """HTTP client for the billing system's sync endpoint."""

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[int] = None
    ):
        self.url = url if url is not None else settings.billing_sync_url
        self.api_key = api_key if api_key is not None else settings.billing_sync_api_key
        self.timeout = timeout or settings.billing_sync_timeout_seconds

    @property
    def configured(self) -> bool:
        return bool(self.url)

    def sync(self, billing_request_id: str, reason: str = "created") -> bool:
        """
        Push a billing request to the billing system.

        Args:
            billing_request_id: Billing request UUID
            reason: Why the sync is requested

        Returns:
            True if accepted, False if sync is not configured

        Raises:
            BillingSyncError: If the request fails or is rejected
        """
        if not self.configured:
            logger.warning("billing_sync_not_configured", billing_request_id=billing_request_id)
            return False

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        payload = {
            "billing_request_id": billing_request_id,
            "reason": reason,
        }

        try:
            logger.info("syncing_billing_request", billing_request_id=billing_request_id, reason=reason)

            response = requests.post(self.url, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()

            logger.info(
                "billing_request_synced",
                billing_request_id=billing_request_id,
                status_code=response.status_code
            )
            return True

        except requests.exceptions.RequestException as e:
            logger.error("billing_sync_failed", billing_request_id=billing_request_id, error=str(e))
            raise BillingSyncError(
                f"Failed to sync billing request: {str(e)}",
                details={"billing_request_id": billing_request_id}
            )


# Singleton instance
_billing_sync_client: Optional[BillingSyncClient] = None


def get_billing_sync_client() -> BillingSyncClient:
    """Get or create BillingSyncClient instance."""
    global _billing_sync_client
    if _billing_sync_client is None:
        _billing_sync_client = BillingSyncClient()
    return _billing_sync_client
