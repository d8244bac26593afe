"""
Configuration module.

Exports:
    settings: Application settings instance
    get_settings: Function to get settings
    get_supabase_client: Cached Supabase client
    check_connection: Health check function
    configure_logging: structlog setup for scripts and workers
"""

from config.settings import settings, get_settings, Settings
from config.database import (
    get_supabase_client,
    check_connection,
    reset_connection,
    SupabaseConnectionError,
)
from config.logging_config import configure_logging

__all__ = [
    # Settings
    "settings",
    "get_settings",
    "Settings",

    # Database
    "get_supabase_client",
    "check_connection",
    "reset_connection",
    "SupabaseConnectionError",

    # Logging
    "configure_logging",
]
