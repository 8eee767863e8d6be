"""Tests for the HTTP endpoints."""
import pytest
from fastapi.testclient import TestClient

from relay.core.config import Settings
from relay.main import create_app


@pytest.fixture
def client():
    with TestClient(create_app()) as client:
        yield client


def test_root_placeholder(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["message"] == "WebSocket server is running"


def test_health_counts_connections(client):
    assert client.get("/health").json() == {
        "status": "healthy",
        "connections": 0,
        "rooms": 1,
        "active_rooms_with_members": 0,
    }

    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "SET_USER", "userId": "u1"})
        ws.receive_json()
        ws.send_json({"type": "JOIN_ROOM", "roomId": "default-room"})
        for _ in range(3):
            ws.receive_json()

        health = client.get("/health").json()
        assert health["connections"] == 1
        assert health["active_rooms_with_members"] == 1

    assert client.get("/health").json()["connections"] == 0


def test_default_room_listed(client):
    rooms = client.get("/rooms").json()
    assert len(rooms) == 1
    room = rooms[0]
    assert room["id"] == "default-room"
    assert room["name"] == "Main Chat Room"
    assert room["isDefault"] is True
    assert room["memberCount"] == 0
    assert room["messageCount"] == 0
    assert room["createdAt"]


def test_create_room(client):
    response = client.post("/rooms", json={"name": "Product Team"})
    assert response.status_code == 201
    room = response.json()
    assert room["name"] == "Product Team"
    assert room["isDefault"] is False

    assert client.get(f"/rooms/{room['id']}").json()["name"] == "Product Team"
    assert len(client.get("/rooms").json()) == 2


def test_create_room_rejects_blank_name(client):
    response = client.post("/rooms", json={"name": "  "})
    assert response.status_code == 400


def test_create_room_rejects_duplicate_id(client):
    response = client.post("/rooms", json={"name": "Copy", "id": "default-room"})
    assert response.status_code == 409


def test_unknown_room_is_404(client):
    assert client.get("/rooms/ghost").status_code == 404


def test_create_room_stops_at_room_limit():
    class TwoRoomSettings(Settings):
        MAX_ROOMS = 2

    with TestClient(create_app(TwoRoomSettings())) as client:
        assert client.post("/rooms", json={"name": "Lobby"}).status_code == 201

        response = client.post("/rooms", json={"name": "Annex"})
        assert response.status_code == 503
        assert len(client.get("/rooms").json()) == 2
