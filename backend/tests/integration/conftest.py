"""Fixtures building a fully wired app on temporary paths."""

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app


@pytest.fixture
def site_dir(tmp_path):
    root = tmp_path / "site"
    root.mkdir()
    (root / "index.html").write_text("<html></html>", encoding="utf-8")
    (root / "data.json").write_text("{}", encoding="utf-8")
    return root


@pytest.fixture
def sync_settings(tmp_path, site_dir) -> Settings:
    return Settings(
        _env_file=None,
        app_env="test",
        database_url=f"sqlite:///{tmp_path / 'database' / 'database.db'}",
        sync_state_backend="json",
        sync_state_file=str(tmp_path / "database" / "sync-state.json"),
        backup_dir=str(tmp_path / "backups"),
        backup_files=[
            str(site_dir / "index.html"),
            str(site_dir / "data.json"),
            str(site_dir / "missing.txt"),
            str(tmp_path / "database" / "sync-state.json"),
        ],
        schedule_timezone="UTC",
    )


@pytest.fixture
def client(sync_settings):
    with TestClient(create_app(sync_settings)) as test_client:
        yield test_client
