"""Tests for the health check endpoint."""

import pytest
from httpx import ASGITransport, AsyncClient

from app.main import app


@pytest.mark.asyncio
async def test_health_check_returns_200():
    """Health endpoint should return 200 with status, version, and environment."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert "environment" in data
    # ASGITransport does not run the lifespan, so the sync service is down
    assert data["sync"] == {"running": False, "connectedClients": 0}


@pytest.mark.asyncio
async def test_sync_endpoints_unavailable_without_lifespan():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/api/v1/sync/status")

    assert response.status_code == 503


def test_health_reports_running_service(client):
    with client.websocket_connect("/ws/sync?type=website") as ws:
        ws.receive_json()
        data = client.get("/api/v1/health").json()

    assert data["environment"] == "test"
    assert data["sync"] == {"running": True, "connectedClients": 1}
