# relay/api/routes/root.py

from fastapi import APIRouter

router = APIRouter()


@router.get("/")
async def root():
    """
    Root endpoint - placeholder for plain HTTP clients.

    The relay itself speaks WebSocket on /ws.
    """
    return {
        "message": "WebSocket server is running",
        "endpoints": {
            "websocket": "/ws",
            "rooms": "/rooms",
            "health": "/health",
        },
    }
