"""
Halaqa application settings.

Extends the base settings with Halaqa-specific configuration.
"""

from common.config import BaseAppSettings


class Settings(BaseAppSettings):
    """Halaqa-specific settings."""

    # ==========================================================================
    # Database Behaviour
    # ==========================================================================
    # Multi-document transactions need a replica set (Atlas, or a local
    # single-node replica set). Disable for a standalone mongod.
    MONGODB_USE_TRANSACTIONS: bool = True

    # ==========================================================================
    # Localization
    # ==========================================================================
    LOCALES_DIR: str = "locales"

    # ==========================================================================
    # Application Settings
    # ==========================================================================
    # Default window for a student's attendance history
    ATTENDANCE_HISTORY_DAYS: int = 30

    # Threads returned by the inbox endpoint
    THREAD_LIST_LIMIT: int = 50

    # Messages returned when opening a thread
    THREAD_MESSAGE_LIMIT: int = 200


settings = Settings()
