"""Unit tests for the BackupManager — snapshot folders, skip rules and notifications."""

from datetime import datetime, timedelta, timezone

import pytest

from app.application.services import BackupManager, SyncStateStore
from app.application.services.backup_manager import BACKUP_PREFIX, backup_folder_name
from app.domain.entities import ClientRole, PendingChange
from app.domain.exceptions import BackupError, BackupNotFoundError
from app.infrastructure.storage.json_sync_state_store import JsonFileSyncStateRepository


def test_backup_folder_name_is_utc_and_filesystem_safe():
    stamp = datetime(2026, 10, 19, 23, 59, 0, 123456, tzinfo=timezone.utc)

    assert backup_folder_name(stamp) == "backup_2026-10-19T23-59-00-123456Z"


@pytest.mark.asyncio
async def test_create_backup_copies_existing_files_and_skips_missing(backup_manager: BackupManager, clock):
    assert await backup_manager.create_backup() is True

    folders = list(backup_manager.backup_dir.iterdir())
    assert len(folders) == 1
    assert folders[0].name == backup_folder_name(clock.now)
    assert sorted(p.name for p in folders[0].iterdir()) == ["database.db", "index.html"]
    assert (folders[0] / "database.db").read_bytes() == b"sqlite"


@pytest.mark.asyncio
async def test_create_backup_records_last_backup_and_persists(backup_manager: BackupManager, clock, repository):
    await backup_manager.create_backup()

    assert backup_manager.last_backup == clock.now
    assert repository.save_count == 1
    assert repository.saved.last_backup == clock.now


@pytest.mark.asyncio
async def test_backups_with_frozen_clock_get_distinct_increasing_stamps(backup_manager: BackupManager):
    assert await backup_manager.create_backup() is True
    first = backup_manager.last_backup
    assert await backup_manager.create_backup() is True
    second = backup_manager.last_backup

    assert second > first
    folders = sorted(p.name for p in backup_manager.backup_dir.iterdir())
    assert len(folders) == 2
    assert folders[0] != folders[1]


@pytest.mark.asyncio
async def test_create_backup_notifies_every_client(backup_manager: BackupManager, connect):
    _, dev = await connect(ClientRole.DEV_ADMIN)
    _, site = await connect(ClientRole.WEBSITE)
    dev.sent.clear()
    site.sent.clear()

    await backup_manager.create_backup()

    for conn in (dev, site):
        (status,) = conn.of_type("backup_status")
        assert status["priority"] == "low"
        assert status["data"]["success"] is True
        assert status["data"]["files"] == ["database.db", "index.html"]
        assert status["data"]["backupPath"].endswith(backup_folder_name(backup_manager.last_backup))


@pytest.mark.asyncio
async def test_create_backup_failure_leaves_state_untouched(store, registry, clock, tmp_path, repository):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")
    manager = BackupManager(
        store,
        registry,
        backup_dir=blocker / "backups",
        source_files=["index.html"],
        base_dir=tmp_path,
        clock=clock,
    )

    assert await manager.create_backup() is False

    assert manager.last_backup is None
    assert repository.save_count == 0


def test_list_backups_newest_first(backup_manager: BackupManager):
    root = backup_manager.backup_dir
    root.mkdir(parents=True)
    older = root / f"{BACKUP_PREFIX}2026-10-17T23-59-00-000000Z"
    newer = root / f"{BACKUP_PREFIX}2026-10-18T23-59-00-000000Z"
    for folder in (older, newer):
        folder.mkdir()
        (folder / "index.html").write_text("<html></html>", encoding="utf-8")
    (root / "unrelated").mkdir()
    (root / "notes.txt").write_text("ignore me", encoding="utf-8")

    backups = backup_manager.list_backups()

    assert [b["id"] for b in backups] == [newer.name, older.name]
    assert backups[0]["files"] == ["index.html"]
    assert backups[0]["path"] == str(newer)


def test_list_backups_without_directory_is_empty(backup_manager: BackupManager):
    assert backup_manager.list_backups() == []


# ── Restore ──────────────────────────────────────────────────────────


@pytest.fixture
def json_store(tmp_path) -> SyncStateStore:
    return SyncStateStore(JsonFileSyncStateRepository(tmp_path / "site" / "database" / "sync-state.json"))


@pytest.fixture
def json_backup_manager(json_store, registry, clock, tmp_path) -> BackupManager:
    data_dir = tmp_path / "site"
    (data_dir / "database").mkdir(parents=True)
    (data_dir / "index.html").write_text("<html>v1</html>", encoding="utf-8")
    return BackupManager(
        json_store,
        registry,
        backup_dir=tmp_path / "backups",
        source_files=["database/sync-state.json", "index.html"],
        base_dir=data_dir,
        clock=clock,
    )


@pytest.mark.asyncio
async def test_restore_copies_files_back_after_a_safety_backup(backup_manager: BackupManager, tmp_path):
    await backup_manager.create_backup()
    (backup_id,) = [b["id"] for b in backup_manager.list_backups()]
    index = tmp_path / "site" / "index.html"
    index.write_text("<html>broken</html>", encoding="utf-8")

    restored = await backup_manager.restore_backup(backup_id)

    assert restored == ["database.db", "index.html"]
    assert index.read_text("utf-8") == "<html></html>"
    backups = backup_manager.list_backups()
    assert len(backups) == 2
    assert backups[0]["id"] != backup_id
    assert (backup_manager.backup_dir / backups[0]["id"] / "index.html").read_text("utf-8") == "<html>broken</html>"


@pytest.mark.asyncio
async def test_restore_records_history_and_notifies_every_client(backup_manager: BackupManager, connect, repository):
    await backup_manager.create_backup()
    (backup_id,) = [b["id"] for b in backup_manager.list_backups()]
    _, dev = await connect(ClientRole.DEV_ADMIN)
    _, site = await connect(ClientRole.WEBSITE)
    dev.sent.clear()
    site.sent.clear()

    await backup_manager.restore_backup(backup_id)

    for conn in (dev, site):
        (restored,) = conn.of_type("database_restored")
        assert restored["data"]["backupId"] == backup_id
        assert restored["data"]["restoredFiles"] == ["database.db", "index.html"]
    last = repository.saved.sync_history[-1]
    assert (last.kind, last.source, last.target) == ("restore", "dev_admin", "all")


@pytest.mark.asyncio
@pytest.mark.parametrize("backup_id", ["backup_2026-01-01T00-00-00-000000Z", "../backups", "backup_../../site", "notes"])
async def test_restore_unknown_backup_is_rejected(backup_manager: BackupManager, backup_id, repository):
    await backup_manager.create_backup()

    with pytest.raises(BackupNotFoundError):
        await backup_manager.restore_backup(backup_id)
    assert len(backup_manager.list_backups()) == 1
    assert repository.save_count == 1


@pytest.mark.asyncio
async def test_restore_reloads_sync_state_without_moving_last_backup_back(
    json_backup_manager: BackupManager, json_store: SyncStateStore, clock
):
    json_store.state.last_backup = clock.now - timedelta(days=1)
    json_store.state.add_pending(
        PendingChange(kind="menu", payload={"type": "menu"}, created_at=clock.now, scheduled_for=clock.now)
    )
    await json_store.persist()
    await json_backup_manager.create_backup()
    (backup_id,) = [b["id"] for b in json_backup_manager.list_backups()]
    json_store.state.pending_changes[0].mark_applied()
    await json_store.persist()

    clock.advance(hours=1)
    restored = await json_backup_manager.restore_backup(backup_id)

    assert restored == ["sync-state.json", "index.html"]
    assert json_store.state.pending_count == 1
    assert json_store.state.last_backup == clock.now
    assert json_store.state.sync_history[-1].kind == "restore"


@pytest.mark.asyncio
async def test_restore_of_unreadable_sync_state_fails(json_backup_manager: BackupManager):
    folder = json_backup_manager.backup_dir / "backup_2026-10-01T23-59-00-000000Z"
    folder.mkdir(parents=True)
    (folder / "sync-state.json").write_text("{", encoding="utf-8")

    with pytest.raises(BackupError):
        await json_backup_manager.restore_backup(folder.name)
