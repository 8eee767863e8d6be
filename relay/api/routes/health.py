# relay/api/routes/health.py

from fastapi import APIRouter, Depends

from relay.api.dependencies import get_connection_manager, get_registry
from relay.services.connection_manager import ConnectionManager
from relay.services.room_manager import RoomRegistry

router = APIRouter()

@router.get("/health")
async def health(
    registry: RoomRegistry = Depends(get_registry),
    connections: ConnectionManager = Depends(get_connection_manager),
):
    """
    Health check endpoint.

    Returns:
        dict: Status, open connection count, room count, rooms with members
    """
    return {
        "status": "healthy",
        "connections": connections.connection_count,
        "rooms": len(registry),
        "active_rooms_with_members": sum(1 for room in registry.list_rooms() if not room.is_empty),
    }
