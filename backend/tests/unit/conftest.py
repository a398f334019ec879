"""Fixtures wiring the sync services to in-memory fakes."""

from datetime import datetime

import pytest

from app.application.services import (
    BackupManager,
    ClientRegistry,
    SyncCoordinator,
    SyncStateStore,
)

from fakes import CET, FakeClock, FakeConnection, InMemorySyncStateRepository


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 10, 19, 14, 0, tzinfo=CET))


@pytest.fixture
def repository() -> InMemorySyncStateRepository:
    return InMemorySyncStateRepository()


@pytest.fixture
def store(repository) -> SyncStateStore:
    return SyncStateStore(repository)


@pytest.fixture
def registry(clock) -> ClientRegistry:
    return ClientRegistry(clock=clock)


@pytest.fixture
def backup_manager(store, registry, clock, tmp_path) -> BackupManager:
    data_dir = tmp_path / "site"
    (data_dir / "database").mkdir(parents=True)
    (data_dir / "database" / "database.db").write_bytes(b"sqlite")
    (data_dir / "index.html").write_text("<html></html>", encoding="utf-8")
    return BackupManager(
        store,
        registry,
        backup_dir=tmp_path / "backups",
        source_files=["database/database.db", "database/sync-state.json", "data.json", "index.html"],
        base_dir=data_dir,
        clock=clock,
    )


@pytest.fixture
def coordinator(store, registry, clock, backup_manager) -> SyncCoordinator:
    return SyncCoordinator(store, registry, clock=clock, backup_manager=backup_manager)


@pytest.fixture
def connect(coordinator):
    """Connect a fake client; returns (client_id, connection)."""

    async def _connect(role, fail: bool = False):
        connection = FakeConnection(fail=fail)
        client_id = await coordinator.connect(connection, role)
        return client_id, connection

    return _connect
