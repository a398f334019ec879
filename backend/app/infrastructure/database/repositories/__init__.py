from .sync_state_repository import SQLAlchemySyncStateRepository

__all__ = [
    "SQLAlchemySyncStateRepository",
]
