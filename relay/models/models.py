# relay/models/models.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class WireModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# DOMAIN
# ============================================================================

class Message(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    content: str
    sender_id: str
    sender_name: str
    timestamp: str
    room_id: str


class RoomUser(WireModel):
    id: str
    name: str


# ============================================================================
# CLIENT -> SERVER
# ============================================================================
# Required fields default to None: the handlers check presence so each
# missing field gets its own error message.

class SetUserEvent(WireModel):
    type: Literal["SET_USER"]
    user_id: Optional[str] = None
    user_name: Optional[str] = None


class JoinRoomEvent(WireModel):
    type: Literal["JOIN_ROOM"]
    room_id: Optional[str] = None


class ChatMessageEvent(WireModel):
    type: Literal["CHAT_MESSAGE"]
    content: Optional[str] = None
    id: Optional[str] = None
    sender_name: Optional[str] = None
    timestamp: Optional[str] = None


class LeaveRoomEvent(WireModel):
    type: Literal["LEAVE_ROOM"]


InboundEvent = Union[SetUserEvent, JoinRoomEvent, ChatMessageEvent, LeaveRoomEvent]


# ============================================================================
# SERVER -> CLIENT
# ============================================================================

class UserSet(WireModel):
    type: Literal["USER_SET"] = "USER_SET"
    user_id: str
    user_name: str


class RoomJoined(WireModel):
    type: Literal["ROOM_JOINED"] = "ROOM_JOINED"
    room_id: str
    name: str


class RoomUsers(WireModel):
    type: Literal["ROOM_USERS"] = "ROOM_USERS"
    users: List[RoomUser]


class MessageHistory(WireModel):
    type: Literal["MESSAGE_HISTORY"] = "MESSAGE_HISTORY"
    messages: List[Message]


class UserJoined(WireModel):
    type: Literal["USER_JOINED"] = "USER_JOINED"
    user_id: str
    user_name: str
    timestamp: str


class ChatMessageBroadcast(WireModel):
    """Outbound chat line. The room id stays server-side."""

    type: Literal["CHAT_MESSAGE"] = "CHAT_MESSAGE"
    id: str
    content: str
    sender_id: str
    sender_name: str
    timestamp: str

    @classmethod
    def from_message(cls, message: Message) -> "ChatMessageBroadcast":
        return cls(
            id=message.id,
            content=message.content,
            sender_id=message.sender_id,
            sender_name=message.sender_name,
            timestamp=message.timestamp,
        )


class UserLeft(WireModel):
    type: Literal["USER_LEFT"] = "USER_LEFT"
    user_id: str
    user_name: str
    timestamp: str


class RoomLeft(WireModel):
    type: Literal["ROOM_LEFT"] = "ROOM_LEFT"


class ErrorEvent(WireModel):
    type: Literal["ERROR"] = "ERROR"
    message: str
    code: str


OutboundEvent = Union[
    UserSet,
    RoomJoined,
    RoomUsers,
    MessageHistory,
    UserJoined,
    ChatMessageBroadcast,
    UserLeft,
    RoomLeft,
    ErrorEvent,
]


# ============================================================================
# HTTP
# ============================================================================

class RoomInfo(WireModel):
    id: str
    name: str
    member_count: int = 0
    message_count: int = 0
    created_at: str
    is_default: bool = False


class CreateRoomRequest(WireModel):
    name: str
    id: Optional[str] = None
