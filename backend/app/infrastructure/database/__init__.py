from .base import Base
from .session import create_engine, create_session_factory, sqlite_file_path
from .models import PendingChangeModel, SyncHistoryModel, SyncMetaModel

__all__ = [
    "Base",
    "create_engine",
    "create_session_factory",
    "sqlite_file_path",
    "PendingChangeModel",
    "SyncHistoryModel",
    "SyncMetaModel",
]
