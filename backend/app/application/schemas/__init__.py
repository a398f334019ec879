from .sync_message import SyncMessage, server_message
from .sync_status import (
    BackupResponse,
    ConnectedClientResponse,
    CreateBackupResponse,
    PendingChangeResponse,
    ReleaseResponse,
    RestoreBackupResponse,
    ScheduleResponse,
    SyncHistoryEntryResponse,
    SyncStatusResponse,
)

__all__ = [
    "SyncMessage",
    "server_message",
    "BackupResponse",
    "ConnectedClientResponse",
    "CreateBackupResponse",
    "PendingChangeResponse",
    "ReleaseResponse",
    "RestoreBackupResponse",
    "ScheduleResponse",
    "SyncHistoryEntryResponse",
    "SyncStatusResponse",
]
