"""Abstract repository interface (port) for SyncState persistence."""

from abc import ABC, abstractmethod

from app.domain.entities import SyncState


class SyncStateRepository(ABC):
    """Port for loading and storing the whole sync state document."""

    backend_name: str = "unknown"

    @abstractmethod
    async def load_state(self) -> SyncState:
        """Return the stored state, or an empty state when nothing is stored."""
        ...

    @abstractmethod
    async def save_state(self, state: SyncState) -> None:
        """Replace the stored state. Raises PersistenceError on failure."""
        ...
