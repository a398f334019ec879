"""Concrete SyncState repository backed by SQLAlchemy (SQLite by default)."""

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.interfaces import SyncStateRepository
from app.domain.entities import ClientRole, PendingChange, SyncHistoryEntry, SyncState
from app.domain.exceptions import PersistenceError
from app.infrastructure.database.models import (
    PendingChangeModel,
    SyncHistoryModel,
    SyncMetaModel,
)

logger = logging.getLogger(__name__)

_META_ROW_ID = 1


def _to_utc(value: datetime | None) -> datetime | None:
    """SQLite drops offsets, so timestamps are stored normalized to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _from_db(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class SQLAlchemySyncStateRepository(SyncStateRepository):
    """Implements the SyncStateRepository port with one session per call.

    The whole aggregate is written on every save: the meta row is upserted,
    pending changes are merged by id and the capped history is replaced.
    """

    backend_name = "database"

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], history_limit: int = 100):
        self._session_factory = session_factory
        self._history_limit = history_limit

    # ── Mapping ─────────────────────────────────────────────────────

    def _change_to_entity(self, model: PendingChangeModel) -> PendingChange:
        """Map ORM model → domain entity."""
        return PendingChange(
            id=model.id,
            source=ClientRole(model.source),
            kind=model.kind,
            payload=model.payload,
            created_at=_from_db(model.created_at),
            scheduled_for=_from_db(model.scheduled_for),
            applied=model.applied,
        )

    def _change_to_model(self, entity: PendingChange, position: int) -> PendingChangeModel:
        """Map domain entity → ORM model."""
        return PendingChangeModel(
            id=entity.id,
            position=position,
            source=entity.source.value,
            kind=entity.kind,
            payload=entity.payload,
            created_at=_to_utc(entity.created_at),
            scheduled_for=_to_utc(entity.scheduled_for),
            applied=entity.applied,
        )

    def _history_to_entity(self, model: SyncHistoryModel) -> SyncHistoryEntry:
        return SyncHistoryEntry(
            timestamp=_from_db(model.timestamp),
            kind=model.kind,
            source=model.source,
            target=model.target,
            success=model.success,
        )

    def _history_to_model(self, entity: SyncHistoryEntry) -> SyncHistoryModel:
        return SyncHistoryModel(
            timestamp=_to_utc(entity.timestamp),
            kind=entity.kind,
            source=entity.source,
            target=entity.target,
            success=entity.success,
        )

    # ── Port implementation ─────────────────────────────────────────

    async def load_state(self) -> SyncState:
        try:
            async with self._session_factory() as session:
                meta = await session.get(SyncMetaModel, _META_ROW_ID)
                changes = (
                    await session.execute(select(PendingChangeModel).order_by(PendingChangeModel.position))
                ).scalars().all()
                history = (
                    await session.execute(select(SyncHistoryModel).order_by(SyncHistoryModel.id))
                ).scalars().all()
        except SQLAlchemyError as exc:
            raise PersistenceError(self.backend_name, str(exc)) from exc

        state = SyncState(
            last_backup=_from_db(meta.last_backup) if meta else None,
            last_sync=_from_db(meta.last_sync) if meta else None,
            last_release=_from_db(meta.last_release) if meta else None,
            pending_changes=[self._change_to_entity(m) for m in changes],
            history_limit=self._history_limit,
        )
        for model in history:
            state.record_history(self._history_to_entity(model))

        logger.debug(
            "Loaded sync state: %d pending, %d history entries",
            state.pending_count,
            len(state.sync_history),
        )
        return state

    async def save_state(self, state: SyncState) -> None:
        try:
            async with self._session_factory() as session:
                try:
                    meta = await session.get(SyncMetaModel, _META_ROW_ID)
                    if meta is None:
                        meta = SyncMetaModel(id=_META_ROW_ID)
                        session.add(meta)
                    meta.last_backup = _to_utc(state.last_backup)
                    meta.last_sync = _to_utc(state.last_sync)
                    meta.last_release = _to_utc(state.last_release)

                    for position, change in enumerate(state.pending_changes):
                        await session.merge(self._change_to_model(change, position))

                    await session.execute(delete(SyncHistoryModel))
                    session.add_all(self._history_to_model(e) for e in state.sync_history)

                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise
        except SQLAlchemyError as exc:
            raise PersistenceError(self.backend_name, str(exc)) from exc
