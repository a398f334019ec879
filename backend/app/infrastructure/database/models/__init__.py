from .sync_state_models import PendingChangeModel, SyncHistoryModel, SyncMetaModel

__all__ = [
    "PendingChangeModel",
    "SyncHistoryModel",
    "SyncMetaModel",
]
