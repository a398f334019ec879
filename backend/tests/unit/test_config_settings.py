"""Unit tests for application settings configuration."""

from datetime import time
from pathlib import Path

import pytest

from app.config import Settings


def test_settings_uses_backend_env_file_independent_of_cwd():
    """Settings should always include backend/.env as an env source."""
    env_files = Settings.model_config.get("env_file")
    assert env_files is not None

    normalized = {str(Path(item)) for item in env_files}
    expected_backend_env = str(Path(__file__).resolve().parents[2] / ".env")

    assert expected_backend_env in normalized
    assert str(Path(".env")) in normalized


def test_default_schedule_slots():
    settings = Settings(_env_file=None)

    assert settings.backup_at == time(23, 59)
    assert settings.release_at == time(3, 0)
    assert settings.timezone.key == "Europe/Berlin"


def test_schedule_slots_from_environment(monkeypatch):
    monkeypatch.setenv("BACKUP_TIME", "22:30")
    monkeypatch.setenv("RELEASE_TIME", " 4:05 ")
    monkeypatch.setenv("SCHEDULE_TIMEZONE", "UTC")

    settings = Settings(_env_file=None)

    assert settings.backup_at == time(22, 30)
    assert settings.release_at == time(4, 5)
    assert settings.timezone.key == "UTC"


def test_invalid_clock_value_raises():
    settings = Settings(_env_file=None, release_time="three")

    with pytest.raises(ValueError):
        _ = settings.release_at


def test_sync_state_defaults():
    settings = Settings(_env_file=None)

    assert settings.sync_state_backend == "database"
    assert settings.history_limit == 100
    assert "database/sync-state.json" in settings.backup_files
