from .sync_state_store import SyncStateStore
from .client_registry import ClientRegistry
from .sync_coordinator import SyncCoordinator
from .backup_manager import BackupManager
from .sync_scheduler import DailyJob, SyncScheduler

__all__ = [
    "SyncStateStore",
    "ClientRegistry",
    "SyncCoordinator",
    "BackupManager",
    "DailyJob",
    "SyncScheduler",
]
