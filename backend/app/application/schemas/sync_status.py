"""Pydantic DTOs for the sync and backup REST endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class ScheduleResponse(BaseModel):
    next_backup: str = Field(..., serialization_alias="nextBackup")
    next_sync: str = Field(..., serialization_alias="nextSync")


class ConnectedClientResponse(BaseModel):
    type: str
    connected: bool
    last_ping: str = Field(..., serialization_alias="lastPing")


class SyncHistoryEntryResponse(BaseModel):
    timestamp: str
    type: str
    source: str
    target: str
    success: bool


class PendingChangeResponse(BaseModel):
    id: str
    source: str
    type: str
    data: Any = None
    timestamp: str
    scheduled_for: str = Field(..., serialization_alias="scheduledFor")
    applied: bool


class SyncStatusResponse(BaseModel):
    """Snapshot returned by ``GET /sync/status``."""

    last_backup: str | None = Field(None, serialization_alias="lastBackup")
    last_sync: str | None = Field(None, serialization_alias="lastSync")
    pending_changes_count: int = Field(..., serialization_alias="pendingChangesCount")
    schedule: ScheduleResponse
    connected_clients: list[ConnectedClientResponse] = Field(
        default_factory=list, serialization_alias="connectedClients"
    )
    recent_history: list[SyncHistoryEntryResponse] = Field(
        default_factory=list, serialization_alias="recentHistory"
    )


class ReleaseResponse(BaseModel):
    released: int
    pending_changes_count: int = Field(..., serialization_alias="pendingChangesCount")


class BackupResponse(BaseModel):
    id: str
    path: str
    timestamp: str
    files: list[str] = Field(default_factory=list)


class CreateBackupResponse(BaseModel):
    success: bool
    last_backup: str | None = Field(None, serialization_alias="lastBackup")


class RestoreBackupResponse(BaseModel):
    success: bool
    backup_id: str = Field(..., serialization_alias="backupId")
    restored_files: list[str] = Field(default_factory=list, serialization_alias="restoredFiles")
