# relay/api/routes/rooms.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from relay.api.dependencies import get_registry
from relay.core.errors import ConflictError, RoomLimitError, ValidationError
from relay.models.models import CreateRoomRequest, RoomInfo
from relay.services.room_manager import RoomRegistry

router = APIRouter()

# ============================================================================
# ROOM ENDPOINTS
# ============================================================================

@router.get("/rooms", response_model=List[RoomInfo], response_model_by_alias=True)
async def list_rooms(registry: RoomRegistry = Depends(get_registry)):
    """
    List all rooms with their live member and message counts.

    Returns:
        List[RoomInfo]: Every room, the default room included
    """
    return [registry.info(room) for room in registry.list_rooms()]


@router.post("/rooms", response_model=RoomInfo, response_model_by_alias=True, status_code=201)
async def create_room(request: CreateRoomRequest, registry: RoomRegistry = Depends(get_registry)):
    """
    Create a new chatroom.

    The room starts empty and stays until its first member has come and
    gone; after that it is deleted like any other emptied room.

    Args:
        request: CreateRoomRequest with name and optional id

    Returns:
        RoomInfo: The newly created room

    Raises:
        HTTPException: 400 if name is empty, 409 if the id is taken,
            503 if the room limit is reached
    """
    try:
        room = registry.create_room(name=request.name, room_id=request.id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=e.message)
    except RoomLimitError as e:
        raise HTTPException(status_code=503, detail=e.message)
    return registry.info(room)


@router.get("/rooms/{room_id}", response_model=RoomInfo, response_model_by_alias=True)
async def get_room(room_id: str, registry: RoomRegistry = Depends(get_registry)):
    """
    Get details of a specific room.

    Raises:
        HTTPException: 404 if room not found
    """
    room = registry.get(room_id)
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")
    return registry.info(room)
