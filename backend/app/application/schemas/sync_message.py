"""Pydantic envelope for frames on the live sync WebSocket."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from app.domain.entities import ClientRole, MessagePriority, MessageType


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SyncMessage(BaseModel):
    """Shared shape of inbound and outbound sync messages.

    Clients may omit ``source``, ``timestamp`` and ``priority``; the server
    always knows the sender's role from the registry, so ``source`` on an
    inbound frame is informational only.
    """

    type: MessageType
    source: ClientRole | None = None
    target: str | None = None
    data: Any = None
    timestamp: str = Field(default_factory=_utc_now_iso)
    priority: MessagePriority | None = None

    def to_wire(self) -> str:
        """Serialize for the socket, leaving out unset optional fields."""
        return self.model_dump_json(exclude_none=True)

    @property
    def request_type(self) -> str | None:
        if isinstance(self.data, dict):
            value = self.data.get("requestType")
            return value if isinstance(value, str) else None
        return None

    @property
    def kind(self) -> str:
        """Application-defined change tag carried in ``data.type``."""
        if isinstance(self.data, dict):
            value = self.data.get("type")
            if isinstance(value, str) and value:
                return value
        return "unknown"


def server_message(
    message_type: MessageType,
    data: Any = None,
    *,
    priority: MessagePriority = MessagePriority.IMMEDIATE,
    source: ClientRole = ClientRole.DEV_ADMIN,
    target: str | None = None,
    timestamp: datetime | None = None,
) -> SyncMessage:
    """Build an outbound message; the server speaks as ``dev_admin`` by default."""
    return SyncMessage(
        type=message_type,
        source=source,
        target=target,
        data=data,
        timestamp=(timestamp or datetime.now(timezone.utc)).isoformat(),
        priority=priority,
    )
