"""Domain entity for a live sync connection."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ClientRole(str, Enum):
    """Logical role a client declares when it opens its sync connection."""

    DEV_ADMIN = "dev_admin"       # developer editor, changes are staged
    ADMIN_PANEL = "admin_panel"   # site owner, changes go live immediately
    WEBSITE = "website"           # public site


def new_client_id(role: ClientRole, now: datetime | None = None) -> str:
    """Build a connection id of the form ``{role}_{epoch_ms}_{random}``."""
    now = now or datetime.now(timezone.utc)
    return f"{role.value}_{int(now.timestamp() * 1000)}_{uuid.uuid4().hex[:9]}"


@dataclass
class SyncClient:
    """One active connection in the client registry. Never persisted."""

    id: str
    role: ClientRole
    connection: Any
    last_ping: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    connected: bool = True

    def touch(self, now: datetime | None = None) -> None:
        """Record activity on the connection."""
        self.last_ping = now or datetime.now(timezone.utc)

    def to_info(self) -> dict[str, Any]:
        return {
            "type": self.role.value,
            "connected": self.connected,
            "lastPing": self.last_ping.isoformat(),
        }
