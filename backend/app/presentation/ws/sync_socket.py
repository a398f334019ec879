"""Live sync WebSocket endpoint — one connection per client role."""

import logging

from fastapi import APIRouter, Depends, Query, WebSocket, status

from app.application.services import SyncCoordinator
from app.domain.entities import ClientRole
from app.infrastructure.dependencies import get_socket_coordinator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Live Sync"])


@router.websocket("/ws/sync")
async def sync_socket(
    websocket: WebSocket,
    client_type: str = Query(ClientRole.WEBSITE.value, alias="type"),
    coordinator: SyncCoordinator | None = Depends(get_socket_coordinator),
) -> None:
    """Accept a client, then feed each received frame to the coordinator."""
    if coordinator is None:
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
        return
    try:
        role = ClientRole(client_type)
    except ValueError:
        logger.warning("Rejected sync connection with unknown type %r", client_type)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    client_id = await coordinator.connect(websocket, role)
    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break
            raw = frame.get("text")
            if raw is None:
                raw = frame.get("bytes") or b""
            await coordinator.handle_raw(client_id, raw)
    finally:
        await coordinator.disconnect(client_id)
