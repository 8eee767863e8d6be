# relay/api/dependencies.py

from __future__ import annotations

from fastapi import Request

from relay.services.connection_manager import ConnectionManager
from relay.services.room_manager import RoomRegistry


def get_registry(request: Request) -> RoomRegistry:
    return request.app.state.registry


def get_connection_manager(request: Request) -> ConnectionManager:
    return request.app.state.connection_manager
