"""Sync status and release endpoints — REST view of the live sync coordinator."""

from fastapi import APIRouter, Depends, Header, HTTPException, status

from app.application.schemas import (
    PendingChangeResponse,
    ReleaseResponse,
    SyncStatusResponse,
)
from app.application.services import SyncCoordinator
from app.domain.entities import ClientRole
from app.infrastructure.dependencies import get_sync_coordinator

router = APIRouter(prefix="/sync", tags=["Sync"])


@router.get("/status", response_model=SyncStatusResponse)
async def get_status(
    coordinator: SyncCoordinator = Depends(get_sync_coordinator),
) -> SyncStatusResponse:
    """Timestamps, schedule, connected clients and the latest history entries."""
    snapshot = coordinator.status_snapshot()
    return SyncStatusResponse(
        last_backup=snapshot["lastBackup"],
        last_sync=snapshot["lastSync"],
        pending_changes_count=snapshot["pendingChangesCount"],
        schedule={
            "next_backup": snapshot["schedule"]["nextBackup"],
            "next_sync": snapshot["schedule"]["nextSync"],
        },
        connected_clients=[
            {"type": c["type"], "connected": c["connected"], "last_ping": c["lastPing"]}
            for c in snapshot["connectedClients"]
        ],
        recent_history=snapshot["recentHistory"],
    )


@router.get("/pending", response_model=list[PendingChangeResponse])
async def list_pending_changes(
    coordinator: SyncCoordinator = Depends(get_sync_coordinator),
) -> list[PendingChangeResponse]:
    """Staged developer changes waiting for the next release."""
    return [
        PendingChangeResponse(
            id=change.id,
            source=change.source.value,
            type=change.kind,
            data=change.payload,
            timestamp=change.created_at.isoformat(),
            scheduled_for=change.scheduled_for.isoformat(),
            applied=change.applied,
        )
        for change in coordinator.store.state.unapplied_changes()
    ]


@router.post("/release", response_model=ReleaseResponse)
async def release_pending_changes(
    x_source: str | None = Header(None),
    coordinator: SyncCoordinator = Depends(get_sync_coordinator),
) -> ReleaseResponse:
    """Release staged changes ahead of schedule (developer only)."""
    if x_source != ClientRole.DEV_ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the developer can release pending changes",
        )
    released = await coordinator.release_pending_changes()
    return ReleaseResponse(
        released=released,
        pending_changes_count=coordinator.store.state.pending_count,
    )
