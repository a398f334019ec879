"""Health check endpoint — no dependencies, always available."""

from fastapi import APIRouter, Request

from app.config import get_settings

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Returns the current application health status."""
    settings = getattr(request.app.state, "settings", None) or get_settings()
    coordinator = getattr(request.app.state, "sync_coordinator", None)
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.app_env,
        "sync": {
            "running": coordinator is not None,
            "connectedClients": coordinator.registry.client_count if coordinator else 0,
        },
    }
