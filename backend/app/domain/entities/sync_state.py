"""Domain entities for the persisted sync state aggregate."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .client import ClientRole

HISTORY_LIMIT = 100


def new_change_id(now: datetime) -> str:
    return f"change_{int(now.timestamp() * 1000)}_{uuid.uuid4().hex[:6]}"


@dataclass
class PendingChange:
    """A developer update held back until the next daily cutover.

    ``applied`` only ever moves from False to True; released changes stay in
    the state for audit.
    """

    kind: str
    payload: Any
    created_at: datetime
    scheduled_for: datetime
    source: ClientRole = ClientRole.DEV_ADMIN
    id: str = ""
    applied: bool = False

    def __post_init__(self) -> None:
        if not self.id:
            self.id = new_change_id(self.created_at)

    def mark_applied(self) -> None:
        self.applied = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source.value,
            "type": self.kind,
            "data": self.payload,
            "timestamp": self.created_at.isoformat(),
            "scheduledFor": self.scheduled_for.isoformat(),
            "applied": self.applied,
        }


@dataclass
class SyncHistoryEntry:
    """Audit record of one completed propagation."""

    kind: str
    source: str
    target: str
    success: bool = True
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "type": self.kind,
            "source": self.source,
            "target": self.target,
            "success": self.success,
        }


@dataclass
class SyncState:
    """Aggregate root: backup/sync timestamps, staged changes and history.

    ``last_sync`` moves on every propagation; ``last_release`` only when a
    release sweep applied staged changes.
    """

    last_backup: datetime | None = None
    last_sync: datetime | None = None
    last_release: datetime | None = None
    pending_changes: list[PendingChange] = field(default_factory=list)
    sync_history: list[SyncHistoryEntry] = field(default_factory=list)
    history_limit: int = HISTORY_LIMIT

    def unapplied_changes(self) -> list[PendingChange]:
        """Staged changes not yet released, in staging order."""
        return [c for c in self.pending_changes if not c.applied]

    @property
    def pending_count(self) -> int:
        return len(self.unapplied_changes())

    def add_pending(self, change: PendingChange) -> None:
        self.pending_changes.append(change)

    def record_history(self, entry: SyncHistoryEntry) -> None:
        """Append an entry, evicting the oldest ones beyond the cap."""
        self.sync_history.append(entry)
        overflow = len(self.sync_history) - self.history_limit
        if overflow > 0:
            del self.sync_history[:overflow]

    def to_summary(self) -> dict[str, Any]:
        """Short form sent to every client on connect."""
        return {
            "lastBackup": self.last_backup.isoformat() if self.last_backup else None,
            "lastSync": self.last_sync.isoformat() if self.last_sync else None,
            "pendingChangesCount": self.pending_count,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "lastBackup": self.last_backup.isoformat() if self.last_backup else None,
            "lastSync": self.last_sync.isoformat() if self.last_sync else None,
            "lastRelease": self.last_release.isoformat() if self.last_release else None,
            "pendingChanges": [c.to_dict() for c in self.pending_changes],
            "syncHistory": [e.to_dict() for e in self.sync_history],
        }
