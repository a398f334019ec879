"""End-to-end tests for the live sync WebSocket."""

import pytest
from starlette.websockets import WebSocketDisconnect


def _connect(client, role: str):
    ws = client.websocket_connect(f"/ws/sync?type={role}")
    return ws


def test_welcome_message_carries_state_and_schedule(client):
    with _connect(client, "admin_panel") as ws:
        welcome = ws.receive_json()

    assert welcome["type"] == "sync_response"
    assert welcome["data"]["clientId"].startswith("admin_panel_")
    assert welcome["data"]["syncState"]["pendingChangesCount"] == 0
    assert welcome["data"]["schedule"]["nextSync"].endswith("T03:00:00+00:00")
    assert welcome["data"]["schedule"]["nextBackup"].endswith("T23:59:00+00:00")
    assert welcome["data"]["connectedClients"] == [
        {"type": "admin_panel", "connected": True, "lastPing": welcome["data"]["connectedClients"][0]["lastPing"]}
    ]


def test_unknown_client_type_is_rejected(client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with _connect(client, "toaster") as ws:
            ws.receive_json()

    assert exc_info.value.code == 1008


def test_missing_type_defaults_to_website(client):
    with client.websocket_connect("/ws/sync") as ws:
        welcome = ws.receive_json()

    assert welcome["data"]["clientId"].startswith("website_")


def test_malformed_frame_keeps_session_alive(client):
    with _connect(client, "website") as ws:
        ws.receive_json()
        ws.send_text("{definitely not json")
        ws.send_json({"type": "ping"})
        pong = ws.receive_json()

    assert pong["type"] == "pong"


def test_admin_update_is_pushed_to_website(client):
    with _connect(client, "admin_panel") as admin:
        admin.receive_json()
        with _connect(client, "website") as site:
            site.receive_json()
            joined = admin.receive_json()
            assert joined["type"] == "client_connected"
            assert joined["data"]["clientType"] == "website"

            admin.send_json({"type": "update", "data": {"type": "opening_hours", "mon": "9-17"}})
            update = site.receive_json()

    assert update["type"] == "update"
    assert update["source"] == "admin_panel"
    assert update["data"] == {"type": "opening_hours", "mon": "9-17"}


def test_developer_change_is_staged_and_counted_for_new_clients(client):
    with _connect(client, "dev_admin") as dev:
        dev.receive_json()
        dev.send_json({"type": "update", "priority": "scheduled", "data": {"type": "layout"}})
        info = dev.receive_json()
        assert info["type"] == "schedule_info"
        assert info["data"]["scheduledFor"].endswith("T03:00:00+00:00")

        with _connect(client, "website") as site:
            welcome = site.receive_json()

    assert welcome["data"]["syncState"]["pendingChangesCount"] == 1


def test_force_sync_releases_to_connected_website_and_admin_panel(client):
    with _connect(client, "dev_admin") as dev:
        dev.receive_json()
        dev.send_json({"type": "update", "data": {"type": "banner"}})
        dev.receive_json()

        with _connect(client, "website") as site, _connect(client, "admin_panel") as admin:
            site.receive_json()
            site.receive_json()  # client_connected (admin_panel)
            admin.receive_json()
            dev.receive_json()  # client_connected (website)
            dev.receive_json()  # client_connected (admin_panel)
            dev.send_json({"type": "sync_request", "data": {"requestType": "force_sync"}})
            update = site.receive_json()
            admin_update = admin.receive_json()
            ack = dev.receive_json()

        status = client.get("/api/v1/sync/status").json()

    assert update["type"] == admin_update["type"] == "update"
    assert update["data"] == admin_update["data"] == {"type": "banner"}
    assert ack["type"] == "force_sync_complete"
    assert ack["data"] == {"released": 1, "pendingChangesCount": 0}
    assert [(h["type"], h["target"]) for h in status["recentHistory"]] == [("banner", "all")]

