# relay/api/websocket.py

from __future__ import annotations

import logging
from contextlib import suppress

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from relay.services.connection_manager import WebSocketConnection

logger = logging.getLogger(__name__)

router = APIRouter()

# ============================================================================
# WEBSOCKET ENDPOINT
# ============================================================================

@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for the chat relay.

    Protocol:
    =========

    Client -> Server Events:
    ------------------------
    Set Identity:
        {"type": "SET_USER", "userId": "u1", "userName": "Alice"}
        Response: {"type": "USER_SET", "userId": "u1", "userName": "Alice"}

    Join Room (unknown ids fall back to the default room):
        {"type": "JOIN_ROOM", "roomId": "default-room"}
        Broadcast: {"type": "USER_JOINED", "userId": ..., "userName": ..., "timestamp": ...}
        Response: {"type": "ROOM_JOINED", "roomId": ..., "name": ...}
                  {"type": "ROOM_USERS", "users": [{"id": ..., "name": ...}]}
                  {"type": "MESSAGE_HISTORY", "messages": [...]}   (only if any)

    Chat:
        {"type": "CHAT_MESSAGE", "content": "hi"}
        Broadcast: {"type": "CHAT_MESSAGE", "id": ..., "content": "hi",
                    "senderId": ..., "senderName": ..., "timestamp": ...}

    Leave Room:
        {"type": "LEAVE_ROOM"}
        Response: {"type": "ROOM_LEFT"}
        Broadcast to the others: {"type": "USER_LEFT", ...}

    Error:
        {"type": "ERROR", "message": "...", "code": "VALIDATION_ERROR"}

    Lifecycle:
    ==========
    1. Connection accepted, a Session is opened for it
    2. Each text or binary frame is one event, handled to completion
    3. On disconnect the session leaves its room and is discarded

    Error Handling:
        - Bad payloads and failed preconditions: ERROR reply, connection stays open
        - Unexpected errors: logged, socket closed with 1011, session cleaned up
    """
    dispatcher = websocket.app.state.dispatcher
    settings = websocket.app.state.settings

    await websocket.accept()
    connection = WebSocketConnection(websocket, max_pending=settings.OUTBOUND_QUEUE_SIZE)
    connection.start()
    session = dispatcher.open_session(connection)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))

            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            dispatcher.handle_raw(session, raw)

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error("WebSocket error: %s", e)
        await connection.close()
        # RuntimeError when the socket is already closed
        with suppress(RuntimeError):
            await websocket.close(code=1011)
    finally:
        dispatcher.close_session(session)
        await connection.close()
