"""Client Registry — who is connected to the live sync channel right now."""

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from app.application.interfaces import ClientConnection
from app.application.schemas.sync_message import SyncMessage, server_message
from app.domain.entities import (
    ClientRole,
    MessagePriority,
    MessageType,
    SyncClient,
    new_client_id,
)
from app.infrastructure.logging.colored_logger import SyncEventLogger, SyncStage

_log = SyncEventLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ClientRegistry:
    """Tracks connected clients and delivers messages to them.

    Clients are kept in registration order, which is also the delivery order
    of every broadcast. A failed send to one client is logged and never
    prevents delivery to the others.
    """

    def __init__(self, clock: Callable[[], datetime] = _utc_now) -> None:
        self._clients: dict[str, SyncClient] = {}
        self._clock = clock

    # ── Lifecycle ───────────────────────────────────────────────────

    async def register(
        self,
        connection: ClientConnection,
        role: ClientRole,
        snapshot: dict[str, Any] | None = None,
    ) -> str:
        """Add a client, greet it with ``snapshot`` and announce it to the others."""
        now = self._clock()
        client_id = new_client_id(role, now)
        self._clients[client_id] = SyncClient(
            id=client_id,
            role=role,
            connection=connection,
            last_ping=now,
        )
        _log.event(SyncStage.CLIENT, f"{role.value} connected", client_id=client_id, total=len(self._clients))

        welcome = dict(snapshot or {})
        welcome["clientId"] = client_id
        welcome["connectedClients"] = self.list_connected()
        await self.send_to(
            client_id,
            server_message(MessageType.SYNC_RESPONSE, welcome, timestamp=now),
        )

        await self.broadcast(
            server_message(
                MessageType.CLIENT_CONNECTED,
                {"clientType": role.value, "connectedClients": self.list_connected()},
                priority=MessagePriority.LOW,
                source=role,
                timestamp=now,
            ),
            exclude=client_id,
        )
        return client_id

    async def unregister(self, client_id: str) -> None:
        """Drop a client and tell the remaining ones. Unknown ids are ignored."""
        client = self._clients.pop(client_id, None)
        if client is None:
            return
        client.connected = False
        _log.event(SyncStage.CLIENT, f"{client.role.value} disconnected", client_id=client_id, total=len(self._clients))

        await self.broadcast(
            server_message(
                MessageType.CLIENT_DISCONNECTED,
                {"clientType": client.role.value, "connectedClients": self.list_connected()},
                priority=MessagePriority.LOW,
                source=client.role,
                timestamp=self._clock(),
            )
        )

    def heartbeat(self, client_id: str) -> SyncClient | None:
        """Refresh ``last_ping``; returns the client, or None if unknown."""
        client = self._clients.get(client_id)
        if client is not None:
            client.touch(self._clock())
        return client

    # ── Queries ─────────────────────────────────────────────────────

    def get(self, client_id: str) -> SyncClient | None:
        return self._clients.get(client_id)

    def list_connected(self) -> list[dict[str, Any]]:
        return [client.to_info() for client in self._clients.values()]

    def clients_with_role(self, role: ClientRole) -> list[SyncClient]:
        return [c for c in self._clients.values() if c.role is role and c.connected]

    @property
    def client_count(self) -> int:
        return len(self._clients)

    # ── Delivery ────────────────────────────────────────────────────

    async def send_to(self, client_id: str, message: SyncMessage) -> bool:
        """Send one message to one client. Returns False if it was not delivered."""
        client = self._clients.get(client_id)
        if client is None or not client.connected:
            return False
        try:
            await client.connection.send_text(message.to_wire())
        except Exception as exc:
            _log.failure(SyncStage.ERROR, f"Send to {client_id} failed", exc)
            return False
        return True

    async def broadcast(self, message: SyncMessage, exclude: str | None = None) -> int:
        """Send to every connected client except ``exclude``; returns deliveries."""
        delivered = 0
        for client_id in list(self._clients):
            if client_id == exclude:
                continue
            if await self.send_to(client_id, message):
                delivered += 1
        return delivered

    async def broadcast_to_role(self, role: ClientRole, message: SyncMessage) -> int:
        delivered = 0
        for client in self.clients_with_role(role):
            if await self.send_to(client.id, message):
                delivered += 1
        return delivered

    async def close_all(self) -> None:
        """Forget every client (used on shutdown)."""
        for client in self._clients.values():
            client.connected = False
        self._clients.clear()
