# relay/services/room_manager.py

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

from relay.core.errors import ConflictError, RoomLimitError, ValidationError
from relay.models.models import RoomInfo, RoomUser, utc_now_iso
from relay.services.message_store import MessageStore

if TYPE_CHECKING:
    from relay.services.connection_manager import Connection

logger = logging.getLogger(__name__)


@dataclass
class Member:
    """Identity a connection had when it joined a room."""

    user_id: str
    user_name: str


@dataclass(eq=False)
class Room:
    """A named set of member connections plus its recent message history."""

    id: str
    name: str
    history: MessageStore
    members: Dict["Connection", Member] = field(default_factory=dict)
    created_at: str = field(default_factory=utc_now_iso)

    @property
    def member_count(self) -> int:
        return len(self.members)

    @property
    def is_empty(self) -> bool:
        return not self.members

    def users(self) -> List[RoomUser]:
        return [RoomUser(id=m.user_id, name=m.user_name) for m in self.members.values()]


# ============================================================================
# ROOM REGISTRY
# ============================================================================
class RoomRegistry:
    """
    In-memory registry of rooms.

    Owns every Room and its message history. One room, the default room,
    always exists: it absorbs joins to unknown room ids and is never deleted.
    Every other room is removed as soon as its last member leaves.

    Attributes:
        rooms: Dictionary mapping room_id -> Room object

    Usage:
        registry = RoomRegistry("default-room", "Main Chat Room")   # default room already there
        room_id = registry.resolve("unknown")   # -> "default-room"
    """

    def __init__(
        self,
        default_room_id: str,
        default_room_name: str,
        max_history: int = 100,
        max_rooms: Optional[int] = None,
    ) -> None:
        self.default_room_id = default_room_id
        self.default_room_name = default_room_name
        self.max_history = max_history
        self.max_rooms = max_rooms
        self.rooms: Dict[str, Room] = {}
        self.ensure_default_room()

    def _new_room(self, room_id: str, name: str) -> Room:
        return Room(id=room_id, name=name, history=MessageStore(self.max_history))

    def ensure_default_room(self) -> Room:
        """
        Make sure the default room exists.

        Idempotent: an existing default room is returned untouched.
        Called on construction and again on application startup.
        """
        room = self.rooms.get(self.default_room_id)
        if room is None:
            room = self._new_room(self.default_room_id, self.default_room_name)
            self.rooms[room.id] = room
            logger.info("✓ Default room ready: %s (%s)", room.id, room.name)
        return room

    def create_room(self, name: str, room_id: Optional[str] = None) -> Room:
        """
        Create a new, empty room.

        Args:
            name: Display name, fixed for the room's lifetime
            room_id: Requested id; a UUID is generated when omitted

        Raises:
            ValidationError: name is blank
            ConflictError: a room with this id already exists
            RoomLimitError: the registry already holds ``max_rooms`` rooms
        """
        if not name or not name.strip():
            raise ValidationError("Room name is required")

        room_id = room_id or str(uuid.uuid4())
        if room_id in self.rooms:
            raise ConflictError(f"Room {room_id} already exists")
        if self.max_rooms is not None and len(self.rooms) >= self.max_rooms:
            raise RoomLimitError(f"Room limit reached ({self.max_rooms})")

        room = self._new_room(room_id, name.strip())
        self.rooms[room.id] = room
        logger.info("✓ Created room: %s (%s)", room.id, room.name)
        return room

    def get(self, room_id: str) -> Optional[Room]:
        return self.rooms.get(room_id)

    def resolve(self, requested_room_id: str) -> str:
        """Return the requested id if that room exists, else the default room id."""
        if requested_room_id in self.rooms:
            return requested_room_id
        logger.debug("Room %s not found, falling back to %s", requested_room_id, self.default_room_id)
        return self.default_room_id

    def delete_if_empty_and_not_default(self, room_id: str) -> bool:
        """
        Remove a room that has no members left.

        The default room is never removed. Returns True if a room was deleted.
        """
        if room_id == self.default_room_id:
            return False
        room = self.rooms.get(room_id)
        if room is None or not room.is_empty:
            return False
        del self.rooms[room_id]
        logger.info("✓ Room %s deleted (empty)", room_id)
        return True

    def list_rooms(self) -> List[Room]:
        return list(self.rooms.values())

    def info(self, room: Room) -> RoomInfo:
        return RoomInfo(
            id=room.id,
            name=room.name,
            member_count=room.member_count,
            message_count=len(room.history),
            created_at=room.created_at,
            is_default=room.id == self.default_room_id,
        )

    def __contains__(self, room_id: object) -> bool:
        return room_id in self.rooms

    def __len__(self) -> int:
        return len(self.rooms)
