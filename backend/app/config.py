from datetime import time
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings

_BACKEND_DIR = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _BACKEND_DIR / ".env",
    ".env",
)


def _parse_clock(raw: str) -> time:
    """Parse an ``HH:MM`` string into a ``datetime.time``."""
    hours, minutes = raw.strip().split(":", 1)
    return time(int(hours), int(minutes))


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_title: str = "Site Sync API"
    app_version: str = "0.1.0"
    app_env: str = "development"
    database_url: str = "sqlite:///database/database.db"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Sync state persistence: "database" (SQLite via SQLAlchemy) or "json"
    sync_state_backend: str = "database"
    sync_state_file: str = "database/sync-state.json"
    history_limit: int = 100

    # Backups
    backup_dir: str = "backups"
    backup_files: list[str] = [
        "database/database.db",
        "database/sync-state.json",
        "data.json",
        "index.html",
    ]

    # Daily schedule, wall-clock time in schedule_timezone
    backup_time: str = "23:59"
    release_time: str = "03:00"
    schedule_timezone: str = "Europe/Berlin"

    # Logging — per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_sql: str = "WARNING"           # sqlalchemy.engine — SQL queries
    log_level_uvicorn: str = "INFO"          # uvicorn.access / uvicorn.error
    log_level_sync: str = "INFO"             # Coordinator, registry, scheduler

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
    }

    @property
    def backup_at(self) -> time:
        return _parse_clock(self.backup_time)

    @property
    def release_at(self) -> time:
        return _parse_clock(self.release_time)

    @property
    def timezone(self) -> ZoneInfo:
        return ZoneInfo(self.schedule_timezone)


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance — reads .env once."""
    return Settings()
