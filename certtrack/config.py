"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Reminder thresholds are normalized to strictly descending positive day counts

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: the local backend works out-of-the-box
"""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from certtrack.core.domain_types import ReminderPolicy
from certtrack.core.reminder_thresholds import (
    EXPIRY_WARNING_DAYS, PLAN_REMINDER_DAYS, normalize_thresholds,
)


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Storage
    storage_backend: Literal["local", "remote"] = "local"
    data_dir: str = "./data"
    backup_dir: str = "./backups"
    backup_retention_days: int = 30

    # Remote content store (GitHub-compatible contents API)
    remote_api_url: str = "https://api.github.com"
    remote_owner: str = ""
    remote_repo: str = ""
    remote_branch: str = "main"
    remote_token: str = ""
    remote_data_prefix: str = "data"
    remote_timeout_seconds: float = 30.0

    # Sessions
    session_ttl_hours: int = 24

    # Notifications
    reminder_policy: ReminderPolicy = ReminderPolicy.CATCH_UP
    plan_reminder_days: list[int] = list(PLAN_REMINDER_DAYS)
    expiry_warning_days: list[int] = list(EXPIRY_WARNING_DAYS)
    notification_retention_days: int = 30

    @field_validator("plan_reminder_days", "expiry_warning_days")
    @classmethod
    def normalize_days(cls, v: list[int]) -> list[int]:
        return list(normalize_thresholds(v))

    # Bootstrap admin (created once if no admin exists)
    bootstrap_admin: bool = True
    default_admin_email: str = "admin@example.com"
    default_admin_password: str = "change-me-now"

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
