# relay/services/connection_manager.py

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Optional, Protocol, Set

from fastapi import WebSocket
from fastapi.websockets import WebSocketState

from relay.models.models import OutboundEvent
from relay.services.room_manager import Room
from relay.services.session import Session

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """What the relay needs from a transport: a liveness check and a fire-and-forget send."""

    @property
    def is_open(self) -> bool: ...

    def send(self, payload: str) -> None: ...


# ============================================================================
# WEBSOCKET TRANSPORT
# ============================================================================

class WebSocketConnection:
    """
    Connection backed by a FastAPI WebSocket.

    ``send`` never awaits: payloads go into a bounded outbound queue that a
    dedicated writer task drains. A slow peer only fills its own queue; once
    full, further payloads for it are dropped.
    """

    def __init__(self, websocket: WebSocket, max_pending: int = 256) -> None:
        self.websocket = websocket
        self._outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=max_pending)
        self._writer: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def is_open(self) -> bool:
        return (
            not self._closed
            and self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    def start(self) -> None:
        if self._writer is None:
            self._writer = asyncio.create_task(self._drain())

    def send(self, payload: str) -> None:
        if not self.is_open:
            return
        try:
            self._outbox.put_nowait(payload)
        except asyncio.QueueFull:
            logger.warning("Outbound queue full (%d), dropping payload", self._outbox.maxsize)

    async def _drain(self) -> None:
        while True:
            payload = await self._outbox.get()
            try:
                await self.websocket.send_text(payload)
            except Exception as e:
                logger.error(f"Send error: {e}")
                # The receive loop sees the disconnect and runs the cleanup
                self._closed = True
                return

    async def close(self) -> None:
        """Stop the writer. Pending payloads are discarded."""
        self._closed = True
        if self._writer is not None:
            self._writer.cancel()
            with suppress(asyncio.CancelledError):
                await self._writer
            self._writer = None


# ============================================================================
# CONNECTION MANAGER
# ============================================================================

class ConnectionManager:
    """
    Tracks open sessions and fans events out to room members.

    Data Structures:
        sessions: every Session whose connection is currently open

    Broadcasts serialize the event once and hand the same text to every open
    member connection. Members whose connection is no longer open are
    skipped silently; their own close event removes them from the room.
    """

    def __init__(self) -> None:
        self.sessions: Set[Session] = set()

    def connect(self, connection: Connection) -> Session:
        session = Session(connection=connection)
        self.sessions.add(session)
        logger.info("✓ Connection %s opened. Total: %d", session, len(self.sessions))
        return session

    def disconnect(self, session: Session) -> bool:
        """
        Discard a session. Returns False if it was already discarded,
        so callers can run their cleanup exactly once.
        """
        if session.closed:
            return False
        session.closed = True
        self.sessions.discard(session)
        logger.info("✗ Connection %s closed. Total: %d", session, len(self.sessions))
        return True

    def send(self, session: Session, event: OutboundEvent) -> None:
        """Direct reply to one connection."""
        if session.connection.is_open:
            session.connection.send(event.model_dump_json(by_alias=True))

    def broadcast_to_room(self, room: Room, event: OutboundEvent) -> int:
        """
        Send one event to every open connection in the room.

        Returns:
            Number of connections the payload was handed to
        """
        if not room.members:
            logger.debug("[routing] Skipped broadcast: room=%s has 0 members", room.id)
            return 0

        data = event.model_dump_json(by_alias=True)
        delivered = 0
        for connection in list(room.members):
            if not connection.is_open:
                continue
            connection.send(data)
            delivered += 1

        logger.debug("📨 Broadcast %s to room %s: %d clients", event.type, room.id, delivered)
        return delivered

    @property
    def connection_count(self) -> int:
        return len(self.sessions)
