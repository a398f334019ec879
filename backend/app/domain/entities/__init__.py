from .client import ClientRole, SyncClient, new_client_id
from .sync_message import MessagePriority, MessageType, SyncRequestType, TARGET_ALL
from .sync_state import HISTORY_LIMIT, PendingChange, SyncHistoryEntry, SyncState

__all__ = [
    "ClientRole",
    "SyncClient",
    "new_client_id",
    "MessagePriority",
    "MessageType",
    "SyncRequestType",
    "TARGET_ALL",
    "HISTORY_LIMIT",
    "PendingChange",
    "SyncHistoryEntry",
    "SyncState",
]
