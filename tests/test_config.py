"""Tests for environment-driven settings."""

import pytest

from interview_scheduler.config import DEFAULT_PRIVILEGED_ROLES, Settings, load_settings

ENV_VARS = [
    "SCHEDULER_DEFAULT_TIMEZONE",
    "SCHEDULER_SLOT_INCREMENT_MINUTES",
    "SCHEDULER_SUGGESTION_HORIZON_DAYS",
    "SCHEDULER_MAX_SUGGESTIONS",
    "SCHEDULER_DEFAULT_REMINDER_HOURS",
    "SCHEDULER_PRIVILEGED_ROLES",
    "SCHEDULER_ADMIN_EMAILS",
    "SCHEDULER_INTEGRATION_TIMEOUT_SECONDS",
    "CALENDAR_API_BASE_URL",
    "CALENDAR_API_TOKEN",
    "SCHEDULER_APP_URL",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    empty = tmp_path / "empty.env"
    empty.write_text("")
    return empty


def test_defaults(clean_env):
    settings = load_settings(str(clean_env))

    assert settings == Settings()
    assert settings.default_timezone == "America/New_York"
    assert settings.privileged_roles == DEFAULT_PRIVILEGED_ROLES
    assert settings.admin_emails == []


def test_environment_values(clean_env, monkeypatch):
    monkeypatch.setenv("SCHEDULER_SLOT_INCREMENT_MINUTES", "15")
    monkeypatch.setenv("SCHEDULER_PRIVILEGED_ROLES", "HR_ADMIN, OWNER")
    monkeypatch.setenv("SCHEDULER_ADMIN_EMAILS", "hr@example.com, ops@example.com,")
    monkeypatch.setenv("SCHEDULER_INTEGRATION_TIMEOUT_SECONDS", "2.5")

    settings = load_settings(str(clean_env))

    assert settings.slot_increment_minutes == 15
    assert settings.privileged_roles == ("HR_ADMIN", "OWNER")
    assert settings.admin_emails == ["hr@example.com", "ops@example.com"]
    assert settings.integration_timeout_seconds == 2.5


def test_env_file_is_read_but_process_env_wins(clean_env, monkeypatch, tmp_path):
    env_file = tmp_path / "scheduler.env"
    env_file.write_text("SCHEDULER_MAX_SUGGESTIONS=5\nSCHEDULER_DEFAULT_TIMEZONE=Europe/London\n")
    monkeypatch.setenv("SCHEDULER_DEFAULT_TIMEZONE", "Asia/Kolkata")

    settings = load_settings(str(env_file))

    assert settings.max_suggestions == 5
    assert settings.default_timezone == "Asia/Kolkata"
