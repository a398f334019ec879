"""Message vocabulary of the live sync protocol."""

from enum import Enum


class MessageType(str, Enum):
    """Envelope ``type`` values, inbound and outbound."""

    UPDATE = "update"
    SYNC_REQUEST = "sync_request"
    SYNC_RESPONSE = "sync_response"
    PING = "ping"
    PONG = "pong"
    BACKUP_STATUS = "backup_status"
    SCHEDULE_INFO = "schedule_info"
    CLIENT_CONNECTED = "client_connected"
    CLIENT_DISCONNECTED = "client_disconnected"
    FORCE_SYNC_COMPLETE = "force_sync_complete"
    FULL_SYNC = "full_sync"
    DATABASE_RESTORED = "database_restored"


class MessagePriority(str, Enum):
    IMMEDIATE = "immediate"
    SCHEDULED = "scheduled"
    LOW = "low"


class SyncRequestType(str, Enum):
    """``data.requestType`` values accepted on a ``sync_request``."""

    FULL_STATE = "full_state"
    PENDING_CHANGES = "pending_changes"
    FORCE_SYNC = "force_sync"
    CREATE_BACKUP = "create_backup"


TARGET_ALL = "all"
