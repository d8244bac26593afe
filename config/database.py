"""
Database connection management.

Provides the Supabase client singleton shared by all services.
"""

from supabase import create_client, Client
from functools import lru_cache
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)


class SupabaseConnectionError(Exception):
    """Failed to connect to database."""
    pass


@lru_cache()
def get_supabase_client() -> Client:
    """
    Get cached Supabase client instance.

    Prefers the service role key when configured, since conversion runs
    as a batch job that writes bookings it does not own.
    Call reset_connection() to reconnect.

    Returns:
        Client: Supabase client

    Raises:
        SupabaseConnectionError: If connection fails or is not configured
    """
    key = settings.supabase_service_key or settings.supabase_key

    if not settings.supabase_url or not key:
        logger.error("supabase_not_configured")
        raise SupabaseConnectionError("SUPABASE_URL and SUPABASE_KEY must be set")

    try:
        logger.info(
            "connecting_to_supabase",
            url=settings.supabase_url[:30] + "...",  # Log partial URL only
            service_role=bool(settings.supabase_service_key)
        )

        client = create_client(settings.supabase_url, key)

        logger.info("supabase_connected")

        return client

    except Exception as e:
        logger.error(
            "supabase_connection_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise SupabaseConnectionError(f"Failed to connect to Supabase: {e}") from e


# ===================
# HELPER FUNCTIONS
# ===================

def check_connection() -> dict:
    """
    Check database connection health.

    Returns:
        dict: Connection status with billing request and pending booking counts
    """
    try:
        client = get_supabase_client()

        billing_requests = client.table("billing_requests").select("id", count="exact").execute()
        pending = (
            client.table("bookings")
            .select("id", count="exact")
            .eq("review_status", "reviewed")
            .is_("converted_to_billing_request_id", "null")
            .execute()
        )

        return {
            "status": "healthy",
            "billing_requests_count": billing_requests.count,
            "pending_conversions_count": pending.count
        }

    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e)
        }


def reset_connection():
    """Drop the cached client so the next call reconnects."""
    get_supabase_client.cache_clear()
    logger.info("database_connection_reset")
