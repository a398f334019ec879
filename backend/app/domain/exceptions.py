"""Domain-specific exceptions — framework-independent."""


class PersistenceError(Exception):
    """Raised when the sync state cannot be read from or written to durable storage.

    Backend-agnostic — raised by the JSON file store and the SQL store alike.
    """

    def __init__(self, backend: str, message: str):
        self.backend = backend
        self.message = message
        super().__init__(f"[{backend}] {message}")


class MalformedMessageError(Exception):
    """Raised when an inbound sync frame is not a valid message envelope."""

    def __init__(self, client_id: str, reason: str):
        self.client_id = client_id
        self.reason = reason
        super().__init__(f"Malformed message from '{client_id}': {reason}")


class BackupNotFoundError(Exception):
    """Raised when a backup id does not name an existing backup folder."""

    def __init__(self, backup_id: str):
        self.backup_id = backup_id
        super().__init__(f"Backup '{backup_id}' not found")


class BackupError(Exception):
    """Raised when a restore cannot complete."""

    def __init__(self, backup_id: str, message: str):
        self.backup_id = backup_id
        self.message = message
        super().__init__(f"Backup '{backup_id}': {message}")
