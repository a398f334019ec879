from .client_connection import ClientConnection
from .sync_state_repository import SyncStateRepository

__all__ = [
    "ClientConnection",
    "SyncStateRepository",
]
