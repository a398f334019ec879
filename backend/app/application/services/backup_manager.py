"""Backup Manager — timestamped snapshots of the site's data files.

Layout:
    <backup_dir>/backup_<YYYY-MM-DDTHH-MM-SS-ffffff>Z/<file name>
"""

import shutil
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from app.application.schemas.sync_message import server_message
from app.application.services.client_registry import ClientRegistry
from app.application.services.sync_state_store import SyncStateStore
from app.domain.entities import TARGET_ALL, ClientRole, MessagePriority, MessageType, SyncHistoryEntry
from app.domain.exceptions import BackupError, BackupNotFoundError, PersistenceError
from app.infrastructure.logging.colored_logger import SyncEventLogger, SyncStage

_log = SyncEventLogger(__name__)

BACKUP_PREFIX = "backup_"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def backup_folder_name(stamp: datetime) -> str:
    """Filesystem-safe folder name for a backup taken at ``stamp``."""
    utc = stamp.astimezone(timezone.utc)
    return f"{BACKUP_PREFIX}{utc.strftime('%Y-%m-%dT%H-%M-%S-%f')}Z"


class BackupManager:
    """Copies the known durable data files into a fresh snapshot directory.

    A missing source file is skipped. Any other I/O error aborts the whole
    cycle: the partial folder is removed, ``last_backup`` is left alone and
    ``create_backup`` returns False.
    """

    def __init__(
        self,
        store: SyncStateStore,
        registry: ClientRegistry,
        backup_dir: str | Path,
        source_files: Sequence[str | Path],
        base_dir: str | Path = ".",
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._registry = registry
        self._backup_dir = Path(backup_dir)
        self._base_dir = Path(base_dir)
        self._source_files = [Path(f) for f in source_files]
        self._clock = clock

    @property
    def backup_dir(self) -> Path:
        return self._backup_dir

    @property
    def last_backup(self) -> datetime | None:
        return self._store.state.last_backup

    def _next_stamp(self) -> datetime:
        """Current time, nudged forward so ``last_backup`` always increases."""
        now = self._clock()
        previous = self._store.state.last_backup
        if previous is not None and now <= previous:
            return previous + timedelta(microseconds=1)
        return now

    def _source_path(self, rel: Path) -> Path:
        return rel if rel.is_absolute() else self._base_dir / rel

    def _copy_files(self, folder: Path) -> list[str]:
        folder.mkdir(parents=True, exist_ok=False)
        copied: list[str] = []
        for rel in self._source_files:
            src = self._source_path(rel)
            if not src.is_file():
                _log.detail(f"Skipping missing file {src}")
                continue
            shutil.copy2(src, folder / src.name)
            copied.append(src.name)
        return copied

    async def create_backup(self) -> bool:
        """Take one snapshot, record it and notify every connected client."""
        stamp = self._next_stamp()
        folder = self._backup_dir / backup_folder_name(stamp)

        try:
            with _log.timed(SyncStage.BACKUP, "Creating backup", path=str(folder)):
                copied = self._copy_files(folder)
        except OSError:
            shutil.rmtree(folder, ignore_errors=True)
            return False

        state = self._store.state
        state.last_backup = stamp
        await self._store.persist()
        _log.event(SyncStage.BACKUP, f"Backup created with {len(copied)} file(s)", path=str(folder))

        await self._registry.broadcast(
            server_message(
                MessageType.BACKUP_STATUS,
                {
                    "success": True,
                    "backupPath": str(folder),
                    "timestamp": stamp.isoformat(),
                    "files": copied,
                },
                priority=MessagePriority.LOW,
            )
        )
        return True

    def _backup_folder(self, backup_id: str) -> Path:
        """Folder of an existing backup; ids never address anything outside ``backup_dir``."""
        if not backup_id.startswith(BACKUP_PREFIX) or Path(backup_id).name != backup_id:
            raise BackupNotFoundError(backup_id)
        folder = self._backup_dir / backup_id
        if not folder.is_dir():
            raise BackupNotFoundError(backup_id)
        return folder

    async def restore_backup(self, backup_id: str) -> list[str]:
        """Copy a backup's files back in place and reload the sync state.

        The current files are backed up first, so a restore can itself be
        undone. Returns the names of the restored files.
        """
        folder = self._backup_folder(backup_id)
        if not await self.create_backup():
            raise BackupError(backup_id, "pre-restore backup failed")
        pre_restore_stamp = self._store.state.last_backup

        restored: list[str] = []
        try:
            with _log.timed(SyncStage.BACKUP, f"Restoring {backup_id}"):
                for rel in self._source_files:
                    saved_copy = folder / rel.name
                    if not saved_copy.is_file():
                        continue
                    target = self._source_path(rel)
                    target.parent.mkdir(parents=True, exist_ok=True)
                    shutil.copy2(saved_copy, target)
                    restored.append(rel.name)
        except OSError as exc:
            raise BackupError(backup_id, f"copy failed: {exc}") from exc

        try:
            state = await self._store.reload()
        except PersistenceError as exc:
            raise BackupError(backup_id, f"restored sync state is unreadable: {exc}") from exc

        now = self._clock()
        if state.last_backup is None or state.last_backup < pre_restore_stamp:
            state.last_backup = pre_restore_stamp
        state.record_history(
            SyncHistoryEntry(kind="restore", source=ClientRole.DEV_ADMIN.value, target=TARGET_ALL, timestamp=now)
        )
        await self._store.persist()
        _log.event(SyncStage.BACKUP, f"Restored {len(restored)} file(s) from {backup_id}")

        await self._registry.broadcast(
            server_message(
                MessageType.DATABASE_RESTORED,
                {"backupId": backup_id, "restoredFiles": restored, "timestamp": now.isoformat()},
                timestamp=now,
            )
        )
        return restored

    def list_backups(self) -> list[dict[str, Any]]:
        """Existing backups, newest first."""
        if not self._backup_dir.is_dir():
            return []

        backups = []
        for folder in self._backup_dir.iterdir():
            if not folder.is_dir() or not folder.name.startswith(BACKUP_PREFIX):
                continue
            modified = datetime.fromtimestamp(folder.stat().st_mtime, tz=timezone.utc)
            backups.append(
                {
                    "id": folder.name,
                    "path": str(folder),
                    "timestamp": modified.isoformat(),
                    "files": sorted(p.name for p in folder.iterdir() if p.is_file()),
                }
            )
        backups.sort(key=lambda b: b["id"], reverse=True)
        return backups
