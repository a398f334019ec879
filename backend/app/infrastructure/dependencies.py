"""FastAPI dependency injection — hands the lifespan-built sync services to routes."""

from fastapi import HTTPException, Request, WebSocket, status

from app.application.services import BackupManager, SyncCoordinator


def _require(state: object, name: str):
    service = getattr(state, name, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Sync service is not running",
        )
    return service


def get_sync_coordinator(request: Request) -> SyncCoordinator:
    """Provides the process-wide SyncCoordinator built in the lifespan."""
    return _require(request.app.state, "sync_coordinator")


def get_backup_manager(request: Request) -> BackupManager:
    """Provides the BackupManager sharing the coordinator's state."""
    return _require(request.app.state, "backup_manager")


def get_socket_coordinator(websocket: WebSocket) -> SyncCoordinator | None:
    """WebSocket flavour of get_sync_coordinator; None when not running."""
    return getattr(websocket.app.state, "sync_coordinator", None)
