"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode identities, credentials or connection strings in code.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Ledger Share"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./ledger_share.db"
    )

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Identity of the user who owns this ledger
    CURRENT_USER_EMAIL: str = os.getenv("CURRENT_USER_EMAIL", "")

    # Remote object store
    REMOTE_STORE_BACKEND: str = os.getenv("REMOTE_STORE_BACKEND", "filesystem")
    REMOTE_STORE_ROOT: str = os.getenv("REMOTE_STORE_ROOT", "./remote_store")
    GOOGLE_CREDENTIALS_FILE: str = os.getenv(
        "GOOGLE_CREDENTIALS_FILE", "./google_token.json"
    )
    REMOTE_TIMEOUT_SECONDS: float = float(
        os.getenv("REMOTE_TIMEOUT_SECONDS", "30")
    )

    # Snapshot publication
    SNAPSHOT_FOLDER_NAME: str = os.getenv(
        "SNAPSHOT_FOLDER_NAME", "PersonalBudgetBackups"
    )
    SNAPSHOT_FILE_NAME: str = os.getenv(
        "SNAPSHOT_FILE_NAME", "my_personalbudget_data.json"
    )
    BACKUP_FILE_PREFIX: str = os.getenv(
        "BACKUP_FILE_PREFIX", "personalbudget_backup_"
    )
    TEMP_DIR: str | None = os.getenv("TEMP_DIR") or None

    # Sync
    MERGE_POLICY: str = os.getenv("MERGE_POLICY", "insert_or_replace")


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Using lru_cache means the Settings object is created once
    and reused for all subsequent calls.
    """
    return Settings()
