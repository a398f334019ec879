"""Sync Coordinator — routes inbound sync messages and applies the propagation policy.

Propagation hierarchy:
    admin_panel → website (live), dev_admin notified for information
    website     → admin_panel (live)
    dev_admin   → staged until the next daily cutover, unless sent as
                  ``immediate``, in which case admin_panel and website get it now

Every inbound frame is handled to completion inside its own error boundary,
so one bad message never affects another client's session.
"""

import asyncio
import json
import logging
from collections.abc import Callable
from datetime import datetime, time, timezone
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from app.application.interfaces import ClientConnection
from app.application.schemas.sync_message import SyncMessage, server_message
from app.application.services.client_registry import ClientRegistry
from app.application.services.sync_state_store import SyncStateStore
from app.domain.entities import (
    TARGET_ALL,
    ClientRole,
    MessagePriority,
    MessageType,
    PendingChange,
    SyncClient,
    SyncHistoryEntry,
    SyncRequestType,
)
from app.domain.exceptions import MalformedMessageError
from app.domain.schedule import BACKUP_AT, CUTOVER_AT, next_cutover, schedule_info
from app.infrastructure.logging.colored_logger import SyncEventLogger, SyncStage

if TYPE_CHECKING:
    from app.application.services.backup_manager import BackupManager

logger = logging.getLogger(__name__)
_log = SyncEventLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SyncCoordinator:
    """Message router and state machine of the live sync channel.

    Owns the propagation policy; the state itself lives in the injected
    SyncStateStore and connections in the injected ClientRegistry.
    """

    def __init__(
        self,
        store: SyncStateStore,
        registry: ClientRegistry,
        *,
        clock: Callable[[], datetime] = _utc_now,
        release_at: time = CUTOVER_AT,
        backup_at: time = BACKUP_AT,
        backup_manager: "BackupManager | None" = None,
    ) -> None:
        self._store = store
        self._registry = registry
        self._clock = clock
        self._release_at = release_at
        self._backup_at = backup_at
        self._backup_manager = backup_manager
        self._release_lock = asyncio.Lock()

    @property
    def store(self) -> SyncStateStore:
        return self._store

    @property
    def registry(self) -> ClientRegistry:
        return self._registry

    # ── Connection lifecycle ────────────────────────────────────────

    async def connect(self, connection: ClientConnection, role: ClientRole) -> str:
        """Register a new connection and greet it with the current state."""
        return await self._registry.register(connection, role, snapshot=self.welcome_snapshot())

    async def disconnect(self, client_id: str) -> None:
        await self._registry.unregister(client_id)

    def schedule(self) -> dict[str, str]:
        return schedule_info(self._clock(), self._backup_at, self._release_at)

    def welcome_snapshot(self) -> dict[str, Any]:
        return {
            "syncState": self._store.state.to_summary(),
            "schedule": self.schedule(),
        }

    def status_snapshot(self, history_size: int = 10) -> dict[str, Any]:
        """Summary for diagnostics: timestamps, schedule, clients, recent history."""
        state = self._store.state
        recent = state.sync_history[-history_size:] if history_size > 0 else []
        return {
            **state.to_summary(),
            "schedule": self.schedule(),
            "connectedClients": self._registry.list_connected(),
            "recentHistory": [e.to_dict() for e in reversed(recent)],
        }

    # ── Inbound frames ──────────────────────────────────────────────

    async def handle_raw(self, client_id: str, raw: str | bytes) -> None:
        """Entry point for every frame received from ``client_id``."""
        client = self._registry.heartbeat(client_id)
        if client is None:
            logger.debug("Ignoring frame from unknown client %s", client_id)
            return

        try:
            message = self._parse(client_id, raw)
        except MalformedMessageError as exc:
            logger.warning("%s — dropped", exc)
            return

        try:
            await self.dispatch(client, message)
        except Exception:
            logger.exception("Error handling %s from %s", message.type.value, client_id)

    def _parse(self, client_id: str, raw: str | bytes) -> SyncMessage:
        try:
            document = json.loads(raw)
        except (TypeError, ValueError, RecursionError) as exc:
            raise MalformedMessageError(client_id, f"invalid JSON ({exc})") from exc
        if not isinstance(document, dict):
            raise MalformedMessageError(client_id, "frame is not a JSON object")
        try:
            return SyncMessage.model_validate(document)
        except ValidationError as exc:
            raise MalformedMessageError(client_id, f"{exc.error_count()} schema error(s)") from exc

    async def dispatch(self, client: SyncClient, message: SyncMessage) -> None:
        match message.type:
            case MessageType.PING:
                await self._registry.send_to(client.id, server_message(MessageType.PONG))
            case MessageType.UPDATE:
                await self.handle_update(client, message)
            case MessageType.SYNC_REQUEST:
                await self.handle_sync_request(client, message)
            case _:
                logger.debug("Ignoring %s from %s", message.type.value, client.id)

    # ── Updates ─────────────────────────────────────────────────────

    async def handle_update(self, client: SyncClient, message: SyncMessage) -> None:
        match client.role:
            case ClientRole.DEV_ADMIN:
                if message.priority is MessagePriority.IMMEDIATE:
                    await self._propagate(client, message, self._push_developer_update)
                else:
                    await self._stage(client, message)
            case ClientRole.ADMIN_PANEL:
                await self._propagate(client, message, self._push_admin_update)
            case ClientRole.WEBSITE:
                await self._propagate(client, message, self._push_website_update)

    async def _stage(self, client: SyncClient, message: SyncMessage) -> PendingChange:
        """Hold a developer change back until the next cutover."""
        now = self._clock()
        change = PendingChange(
            kind=message.kind,
            payload=message.data,
            created_at=now,
            scheduled_for=next_cutover(now, self._release_at),
            source=client.role,
        )
        state = self._store.state
        state.add_pending(change)
        await self._store.persist()
        _log.event(SyncStage.STAGE, f"Change '{change.kind}' staged", change_id=change.id, release=change.scheduled_for.isoformat())

        await self._registry.send_to(
            client.id,
            server_message(
                MessageType.SCHEDULE_INFO,
                {
                    "message": f"Change scheduled for {change.scheduled_for:%d.%m.%Y %H:%M}",
                    "changeId": change.id,
                    "scheduledFor": change.scheduled_for.isoformat(),
                },
                timestamp=now,
            ),
        )
        await self._registry.broadcast_to_role(
            ClientRole.ADMIN_PANEL,
            server_message(
                MessageType.SYNC_RESPONSE,
                {"event": "pending_change_added", "pendingCount": state.pending_count},
                priority=MessagePriority.LOW,
                timestamp=now,
            ),
        )
        return change

    async def _propagate(
        self,
        client: SyncClient,
        message: SyncMessage,
        push: Callable[[SyncMessage], Any],
    ) -> None:
        """Deliver an update now, then record it in the history."""
        target = await push(message)
        now = self._clock()
        state = self._store.state
        state.record_history(
            SyncHistoryEntry(kind=message.kind, source=client.role.value, target=target, timestamp=now)
        )
        state.last_sync = now
        await self._store.persist()
        _log.event(SyncStage.PROPAGATE, f"{client.role.value} → {target}", type=message.kind)

    def _live_update(self, source: ClientRole, data: Any) -> SyncMessage:
        return server_message(MessageType.UPDATE, data, source=source, timestamp=self._clock())

    async def _push_admin_update(self, message: SyncMessage) -> str:
        await self._registry.broadcast_to_role(
            ClientRole.WEBSITE, self._live_update(ClientRole.ADMIN_PANEL, message.data)
        )
        await self._registry.broadcast_to_role(
            ClientRole.DEV_ADMIN,
            server_message(
                MessageType.SYNC_RESPONSE,
                {"event": "update_applied", "updateData": message.data},
                source=ClientRole.ADMIN_PANEL,
                priority=MessagePriority.LOW,
                timestamp=self._clock(),
            ),
        )
        return ClientRole.WEBSITE.value

    async def _push_website_update(self, message: SyncMessage) -> str:
        await self._registry.broadcast_to_role(
            ClientRole.ADMIN_PANEL, self._live_update(ClientRole.WEBSITE, message.data)
        )
        return ClientRole.ADMIN_PANEL.value

    async def _push_developer_update(self, message: SyncMessage) -> str:
        await self._broadcast_release(message.data)
        return TARGET_ALL

    async def _broadcast_release(self, data: Any) -> None:
        update = self._live_update(ClientRole.DEV_ADMIN, data)
        await self._registry.broadcast_to_role(ClientRole.ADMIN_PANEL, update)
        await self._registry.broadcast_to_role(ClientRole.WEBSITE, update)

    # ── Sync requests ───────────────────────────────────────────────

    async def handle_sync_request(self, client: SyncClient, message: SyncMessage) -> None:
        try:
            request_type = SyncRequestType(message.request_type)
        except ValueError:
            logger.warning("Unknown sync request %r from %s — dropped", message.request_type, client.id)
            return

        match request_type:
            case SyncRequestType.FULL_STATE:
                await self._registry.send_to(
                    client.id,
                    server_message(
                        MessageType.FULL_SYNC,
                        {
                            "syncState": self._store.state.to_dict(),
                            "schedule": self.schedule(),
                            "connectedClients": self._registry.list_connected(),
                        },
                    ),
                )
            case SyncRequestType.PENDING_CHANGES:
                await self._registry.send_to(
                    client.id,
                    server_message(
                        MessageType.SYNC_RESPONSE,
                        {"pendingChanges": [c.to_dict() for c in self._store.state.unapplied_changes()]},
                    ),
                )
            case SyncRequestType.FORCE_SYNC:
                if client.role is not ClientRole.DEV_ADMIN:
                    logger.debug("force_sync from %s ignored (role %s)", client.id, client.role.value)
                    return
                released = await self.release_pending_changes()
                await self._registry.send_to(
                    client.id,
                    server_message(
                        MessageType.FORCE_SYNC_COMPLETE,
                        {"released": released, "pendingChangesCount": self._store.state.pending_count},
                    ),
                )
            case SyncRequestType.CREATE_BACKUP:
                if client.role is not ClientRole.DEV_ADMIN or self._backup_manager is None:
                    logger.debug("create_backup from %s ignored", client.id)
                    return
                await self._backup_manager.create_backup()

    # ── Release ─────────────────────────────────────────────────────

    async def release_pending_changes(self) -> int:
        """Broadcast and mark applied every staged change; returns how many.

        Sweeps all unapplied changes regardless of their ``scheduled_for``:
        the caller (the daily scheduler or a forced sync) decides when.
        """
        async with self._release_lock:
            state = self._store.state
            pending = state.unapplied_changes()
            if not pending:
                _log.event(SyncStage.RELEASE, "No pending changes to release")
                return 0

            with _log.timed(SyncStage.RELEASE, f"Releasing {len(pending)} pending change(s)"):
                for change in pending:
                    await self._broadcast_release(change.payload)
                    change.mark_applied()
                    state.record_history(
                        SyncHistoryEntry(
                            kind=change.kind,
                            source=ClientRole.DEV_ADMIN.value,
                            target=TARGET_ALL,
                            timestamp=self._clock(),
                        )
                    )
                    _log.detail(f"Released {change.id}", type=change.kind)

                state.last_sync = state.last_release = self._clock()
                await self._store.persist()
            return len(pending)
