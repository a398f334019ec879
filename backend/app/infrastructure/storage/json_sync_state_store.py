"""JSON document store for the sync state — ``database/sync-state.json``.

Keys are camelCase to stay compatible with the state files the admin UIs
already read. Writes go to a sibling temp file first and are then swapped
in, so a crash mid-write never leaves a truncated document behind.
"""

import json
import logging
import os
from contextlib import suppress
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from app.application.interfaces import SyncStateRepository
from app.domain.entities import ClientRole, PendingChange, SyncHistoryEntry, SyncState
from app.domain.exceptions import PersistenceError

logger = logging.getLogger(__name__)


def _parse_ts(raw: str | None) -> datetime | None:
    if not raw:
        return None
    parsed = datetime.fromisoformat(raw)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class JsonFileSyncStateRepository(SyncStateRepository):
    """Infrastructure adapter storing the whole state as one JSON file."""

    backend_name = "json"

    def __init__(self, path: str | Path, history_limit: int = 100):
        self._path = Path(path)
        self._history_limit = history_limit

    async def load_state(self) -> SyncState:
        if not self._path.exists():
            logger.info("No sync state at %s — starting empty", self._path)
            return SyncState(history_limit=self._history_limit)

        try:
            document = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError, RecursionError) as exc:
            raise PersistenceError(self.backend_name, f"cannot read {self._path}: {exc}") from exc
        if not isinstance(document, dict):
            raise PersistenceError(self.backend_name, f"{self._path} does not hold a JSON object")
        try:
            return self._to_entity(document)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise PersistenceError(
                self.backend_name, f"{self._path} has an invalid layout: {exc!r}"
            ) from exc

    async def save_state(self, state: SyncState) -> None:
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(state.to_dict(), indent=2), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except (OSError, TypeError, ValueError) as exc:
            with suppress(OSError):
                tmp_path.unlink(missing_ok=True)
            raise PersistenceError(self.backend_name, f"cannot write {self._path}: {exc}") from exc

    def _to_entity(self, document: dict[str, Any]) -> SyncState:
        """Map JSON document → domain aggregate."""
        state = SyncState(
            last_backup=_parse_ts(document.get("lastBackup")),
            last_sync=_parse_ts(document.get("lastSync")),
            last_release=_parse_ts(document.get("lastRelease")),
            history_limit=self._history_limit,
        )
        for raw in document.get("pendingChanges", []):
            created_at = _parse_ts(raw["timestamp"])
            state.add_pending(
                PendingChange(
                    id=raw["id"],
                    source=ClientRole(raw.get("source", ClientRole.DEV_ADMIN.value)),
                    kind=raw.get("type", "unknown"),
                    payload=raw.get("data"),
                    created_at=created_at,
                    scheduled_for=_parse_ts(raw.get("scheduledFor")) or created_at,
                    applied=bool(raw.get("applied", False)),
                )
            )
        for raw in document.get("syncHistory", []):
            state.record_history(
                SyncHistoryEntry(
                    timestamp=_parse_ts(raw["timestamp"]),
                    kind=raw.get("type", "unknown"),
                    source=raw.get("source", ""),
                    target=raw.get("target", ""),
                    success=bool(raw.get("success", True)),
                )
            )
        return state
