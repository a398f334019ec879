"""Persistent Sync State — the in-memory aggregate plus its write-through port."""

import logging

from app.application.interfaces import SyncStateRepository
from app.domain.entities import HISTORY_LIMIT, SyncState
from app.domain.exceptions import PersistenceError
from app.infrastructure.logging.colored_logger import SyncEventLogger, SyncStage

logger = logging.getLogger(__name__)
_log = SyncEventLogger(__name__)


class SyncStateStore:
    """Owns the one SyncState instance of the process.

    Callers mutate ``state`` in memory and then ``persist()``. A failed write
    is logged at CRITICAL and the in-memory state stays ahead of the durable
    copy until the next successful write; there is no automatic retry.
    """

    def __init__(self, repository: SyncStateRepository, state: SyncState | None = None) -> None:
        self._repository = repository
        self._state = state if state is not None else SyncState()

    @classmethod
    async def open(cls, repository: SyncStateRepository, history_limit: int = HISTORY_LIMIT) -> "SyncStateStore":
        """Load the stored state; an unreadable store starts empty and is logged."""
        try:
            state = await repository.load_state()
        except PersistenceError as exc:
            _log.failure(SyncStage.ERROR, "Could not load sync state — starting empty", exc)
            state = SyncState(history_limit=history_limit)
        logger.info(
            "Sync state loaded from %s: %d pending, %d history entries",
            repository.backend_name,
            state.pending_count,
            len(state.sync_history),
        )
        return cls(repository, state)

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def backend_name(self) -> str:
        return self._repository.backend_name

    async def persist(self) -> bool:
        """Write the whole state. Returns False (after logging) on failure."""
        try:
            await self._repository.save_state(self._state)
        except PersistenceError as exc:
            _log.failure(
                SyncStage.ERROR,
                "Sync state NOT persisted — in-memory state is ahead of storage",
                exc,
                level=logging.CRITICAL,
            )
            return False
        return True

    async def reload(self) -> SyncState:
        """Swap the in-memory state for what storage holds now.

        Raises PersistenceError and keeps the current state when the stored
        copy cannot be read.
        """
        self._state = await self._repository.load_state()
        return self._state
