"""Environment-driven configuration."""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

DEFAULT_PRIVILEGED_ROLES = (
    "SYSTEM_ADMIN",
    "HR_ADMIN",
    "GENERAL_MANAGER",
    "TERRITORY_MANAGER",
    "MANAGER",
    "TRUE_ADMIN",
    "ADMIN",
    "TERRITORY_SALES_MANAGER",
)


@dataclass
class Settings:
    """Scheduler settings. Defaults are usable without any environment."""
    default_timezone: str = "America/New_York"
    slot_increment_minutes: int = 30
    suggestion_horizon_days: int = 14
    max_suggestions: int = 3
    default_reminder_hours: int = 24
    privileged_roles: tuple[str, ...] = DEFAULT_PRIVILEGED_ROLES
    admin_emails: list[str] = field(default_factory=list)
    integration_timeout_seconds: float = 10.0
    calendar_api_base_url: str = ""
    calendar_api_token: str = ""
    app_url: str = ""
    log_level: str = "INFO"


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def load_settings(env_file: str = None) -> Settings:
    """
    Load settings from the environment.

    A .env file (or the given env_file) is read first; variables already set in
    the process environment win.
    """
    load_dotenv(env_file)

    roles = os.getenv("SCHEDULER_PRIVILEGED_ROLES")
    return Settings(
        default_timezone=os.getenv("SCHEDULER_DEFAULT_TIMEZONE", "America/New_York"),
        slot_increment_minutes=int(os.getenv("SCHEDULER_SLOT_INCREMENT_MINUTES", "30")),
        suggestion_horizon_days=int(os.getenv("SCHEDULER_SUGGESTION_HORIZON_DAYS", "14")),
        max_suggestions=int(os.getenv("SCHEDULER_MAX_SUGGESTIONS", "3")),
        default_reminder_hours=int(os.getenv("SCHEDULER_DEFAULT_REMINDER_HOURS", "24")),
        privileged_roles=tuple(_split_csv(roles)) if roles else DEFAULT_PRIVILEGED_ROLES,
        admin_emails=_split_csv(os.getenv("SCHEDULER_ADMIN_EMAILS", "")),
        integration_timeout_seconds=float(os.getenv("SCHEDULER_INTEGRATION_TIMEOUT_SECONDS", "10")),
        calendar_api_base_url=os.getenv("CALENDAR_API_BASE_URL", ""),
        calendar_api_token=os.getenv("CALENDAR_API_TOKEN", ""),
        app_url=os.getenv("SCHEDULER_APP_URL", ""),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
