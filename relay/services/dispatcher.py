# relay/services/dispatcher.py

from __future__ import annotations

import json
import logging
import uuid
from typing import Callable, Dict, Optional, Type, Union

from pydantic import ValidationError as PydanticValidationError

from relay.core.errors import (
    NotFoundError,
    PreconditionError,
    ProtocolError,
    RelayError,
    UnknownEventError,
    ValidationError,
)
from relay.models.models import (
    ChatMessageBroadcast,
    ChatMessageEvent,
    ErrorEvent,
    InboundEvent,
    JoinRoomEvent,
    LeaveRoomEvent,
    Message,
    MessageHistory,
    RoomJoined,
    RoomLeft,
    RoomUsers,
    SetUserEvent,
    UserJoined,
    UserLeft,
    UserSet,
    utc_now_iso,
)
from relay.services.connection_manager import Connection, ConnectionManager
from relay.services.room_manager import Member, RoomRegistry
from relay.services.session import Session, default_user_name

logger = logging.getLogger(__name__)

INBOUND_EVENTS: Dict[str, Type[InboundEvent]] = {
    "SET_USER": SetUserEvent,
    "JOIN_ROOM": JoinRoomEvent,
    "CHAT_MESSAGE": ChatMessageEvent,
    "LEAVE_ROOM": LeaveRoomEvent,
}


def decode_event(raw: Union[str, bytes]) -> InboundEvent:
    """
    Turn one raw payload into a typed inbound event.

    Raises:
        ProtocolError: not JSON (or nested too deeply), not an object, or no ``type`` tag
        UnknownEventError: ``type`` names no known event
        ValidationError: a known field has the wrong JSON type
    """
    try:
        payload = json.loads(raw)
    except (ValueError, RecursionError):
        raise ProtocolError("Invalid JSON")

    if not isinstance(payload, dict):
        raise ProtocolError("Message must be a JSON object")

    event_type = payload.get("type")
    if not event_type:
        raise ProtocolError("Message type is required")

    event_cls = INBOUND_EVENTS.get(event_type) if isinstance(event_type, str) else None
    if event_cls is None:
        raise UnknownEventError(f"Unknown message type: {event_type}")

    try:
        return event_cls.model_validate(payload)
    except PydanticValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or "payload"
        raise ValidationError(f"Invalid {event_type} field '{field}': {error['msg']}") from exc


# ============================================================================
# DISPATCHER
# ============================================================================

class Dispatcher:
    """
    Room/session state machine.

    Every handler is synchronous: one inbound event is applied completely
    before the event loop runs anything else, so room membership and
    history never see interleaved mutations. Outgoing payloads are queued
    on the connections, never awaited here.

    Session states:
        UNIDENTIFIED --SET_USER--> IDENTIFIED --JOIN_ROOM--> IN_ROOM
        IN_ROOM --LEAVE_ROOM--> IDENTIFIED
        any --close--> gone
    """

    def __init__(self, registry: RoomRegistry, connections: ConnectionManager) -> None:
        self.registry = registry
        self.connections = connections
        self._handlers: Dict[Type[InboundEvent], Callable[[Session, InboundEvent], None]] = {
            SetUserEvent: self.handle_set_user,
            JoinRoomEvent: self.handle_join_room,
            ChatMessageEvent: self.handle_chat_message,
            LeaveRoomEvent: self.handle_leave_room,
        }

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def open_session(self, connection: Connection) -> Session:
        return self.connections.connect(connection)

    def close_session(self, session: Session) -> None:
        """Leave the current room and discard the session. Safe to call twice."""
        if session.closed:
            return
        self.leave_current_room(session)
        self.connections.disconnect(session)

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def handle_raw(self, session: Session, raw: Union[str, bytes]) -> None:
        """Decode and dispatch one payload; any RelayError becomes an ERROR reply."""
        if session.closed:
            return
        try:
            event = decode_event(raw)
            self.dispatch(session, event)
        except RelayError as e:
            logger.info("Rejected event from %s: %s (%s)", session, e.message, e.code)
            self.connections.send(session, ErrorEvent(message=e.message, code=e.code))

    def dispatch(self, session: Session, event: InboundEvent) -> None:
        handler = self._handlers.get(type(event))
        if handler is None:
            raise UnknownEventError(f"Unknown message type: {event.type}")
        logger.debug("Websocket input from %s: %s", session, event.type)
        handler(session, event)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def handle_set_user(self, session: Session, event: SetUserEvent) -> None:
        if not event.user_id:
            raise ValidationError("User ID is required")

        session.user_id = event.user_id
        session.user_name = event.user_name or default_user_name(event.user_id)

        self.connections.send(session, UserSet(user_id=session.user_id, user_name=session.user_name))

    def handle_join_room(self, session: Session, event: JoinRoomEvent) -> None:
        if not event.room_id:
            raise ValidationError("Room ID is required")
        if not session.is_identified:
            raise PreconditionError("Set user ID before joining a room")

        room_id = self.registry.resolve(event.room_id)

        # Rejoining the room you are in must not delete it on the way out
        self.leave_current_room(session, keep_room=room_id)

        room = self.registry.get(room_id)

        member = Member(user_id=session.user_id, user_name=session.display_name)
        room.members[session.connection] = member
        session.current_room = room.id
        logger.info("→ %s joined '%s' (%s members)", session, room.name, room.member_count)

        self.connections.broadcast_to_room(
            room,
            UserJoined(user_id=member.user_id, user_name=member.user_name, timestamp=utc_now_iso()),
        )
        self.connections.send(session, RoomJoined(room_id=room.id, name=room.name))
        self.connections.send(session, RoomUsers(users=room.users()))
        if len(room.history):
            self.connections.send(session, MessageHistory(messages=room.history.snapshot()))

    def handle_chat_message(self, session: Session, event: ChatMessageEvent) -> None:
        if not event.content:
            raise ValidationError("Message content is required")
        if not session.is_identified:
            raise PreconditionError("Set user ID before sending messages")
        if not session.current_room:
            raise PreconditionError("Join a room before sending messages")

        room = self.registry.get(session.current_room)
        if room is None:
            session.current_room = None
            raise NotFoundError("Room not found, please join a room again")

        message = Message(
            id=event.id or str(uuid.uuid4()),
            content=event.content,
            sender_id=session.user_id,
            sender_name=event.sender_name or session.display_name,
            timestamp=event.timestamp or utc_now_iso(),
            room_id=room.id,
        )
        room.history.append(message)

        self.connections.broadcast_to_room(room, ChatMessageBroadcast.from_message(message))

    def handle_leave_room(self, session: Session, event: LeaveRoomEvent) -> None:
        if not session.current_room:
            raise PreconditionError("Not in a room")

        self.leave_current_room(session)
        self.connections.send(session, RoomLeft())

    # ------------------------------------------------------------------
    # Leave procedure
    # ------------------------------------------------------------------

    def leave_current_room(self, session: Session, keep_room: Optional[str] = None) -> None:
        """
        Take the session out of its current room.

        Remaining members get USER_LEFT; the leaver does not, it is removed
        from the member map first. An emptied non-default room is deleted
        unless it is ``keep_room``. No-op when not in a room.
        """
        room_id = session.current_room
        if not room_id:
            return

        room = self.registry.get(room_id)
        if room is not None:
            member = room.members.pop(session.connection, None)
            logger.info("← %s left '%s' (%s members)", session, room.name, room.member_count)

            if session.user_id and member is not None:
                self.connections.broadcast_to_room(
                    room,
                    UserLeft(user_id=member.user_id, user_name=member.user_name, timestamp=utc_now_iso()),
                )

            if room_id != keep_room:
                self.registry.delete_if_empty_and_not_default(room_id)

        session.current_room = None
