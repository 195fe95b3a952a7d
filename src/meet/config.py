"""Application configuration via Pydantic BaseSettings."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    development = "development"
    staging = "staging"
    production = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Environment
    ENVIRONMENT: Environment = Environment.development

    # Logging
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ALLOWED_ORIGINS: str = "*"

    # Monitoring
    SENTRY_DSN: str = ""

    # Firestore
    GCP_PROJECT_ID: str = ""  # Empty uses the project from application default credentials
    FIRESTORE_DATABASE: str = "(default)"
    MEETINGS_COLLECTION: str = "meetings"

    # Google OAuth client (Calendar / Meet integration)
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_REFRESH_TOKEN: str = ""
    GOOGLE_CALENDAR_ID: str = "primary"
    CALENDAR_TIME_ZONE: str = "UTC"  # Applied to start times without an offset

    # Remote runtime config (functions.config() equivalent)
    CLOUD_RUNTIME_CONFIG: str = ""  # Inline JSON, takes precedence over the file
    RUNTIME_CONFIG_PATH: str = ".runtimeconfig.json"

    # Meetings
    MEET_BASE_URL: str = "https://meet.google.com"
    DEFAULT_MEETING_DURATION_MINUTES: int = 60
    MEETING_LIST_LIMIT: int = 50


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
