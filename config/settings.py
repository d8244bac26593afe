"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on first access.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(
        default="",
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        default="",
        description="Supabase anon/public key"
    )
    supabase_service_key: Optional[str] = Field(
        None,
        description="Supabase service role key (for admin operations)"
    )

    # ===================
    # TELEGRAM
    # ===================
    telegram_bot_token: Optional[str] = Field(
        None,
        description="Telegram bot token from @BotFather"
    )
    telegram_chat_id: Optional[str] = Field(
        None,
        description="Telegram chat ID for department notifications"
    )

    # ===================
    # BILLING SYSTEM SYNC
    # ===================
    billing_sync_url: Optional[str] = Field(
        None,
        description="Endpoint that receives billing request sync calls"
    )
    billing_sync_api_key: Optional[str] = Field(
        None,
        description="Bearer token for the billing sync endpoint"
    )
    billing_sync_timeout_seconds: int = Field(
        default=10,
        ge=1,
        le=120,
        description="HTTP timeout for billing sync calls"
    )

    # ===================
    # CONVERSION PIPELINE
    # ===================
    identifier_max_attempts: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Candidates requested per identifier before giving up"
    )
    persist_max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Insert attempts when a unique constraint rejects an identifier"
    )
    snapshot_size_warning_bytes: int = Field(
        default=8 * 1024 * 1024,
        ge=1024,
        description="Log a warning when an embedded snapshot exceeds this size"
    )
    notification_departments: list[str] = Field(
        default=["Sales", "Operations", "Finance"],
        description="Departments notified about new billing requests"
    )

    # ===================
    # OUTBOX
    # ===================
    outbox_max_attempts: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Delivery attempts before an outbox message is marked FAILED"
    )
    outbox_base_delay_seconds: int = Field(
        default=30,
        ge=1,
        description="Backoff delay after the first failed delivery"
    )
    outbox_max_delay_seconds: int = Field(
        default=3600,
        ge=1,
        description="Upper bound for the backoff delay"
    )
    outbox_batch_size: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Messages drained per worker run"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
