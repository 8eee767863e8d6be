# relay/main.py

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from relay.api import websocket as websocket_module
from relay.api.routes import health, rooms, root
from relay.core.config import Settings, settings as default_settings
from relay.core.logging import get_logger, setup_logging
from relay.services.connection_manager import ConnectionManager
from relay.services.dispatcher import Dispatcher
from relay.services.room_manager import RoomRegistry

# Configure logging first
setup_logging()
logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the relay application.

    The room registry, connection manager and dispatcher live on
    ``app.state`` and share the application's lifetime.
    """
    settings = settings or default_settings

    registry = RoomRegistry(
        default_room_id=settings.DEFAULT_ROOM_ID,
        default_room_name=settings.DEFAULT_ROOM_NAME,
        max_history=settings.MAX_HISTORY,
        max_rooms=settings.MAX_ROOMS,
    )
    connection_manager = ConnectionManager()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        registry.ensure_default_room()
        logger.info("🚀 Chat relay starting - default room '%s'", settings.DEFAULT_ROOM_ID)
        yield
        logger.info("Chat relay shutting down (%d open connections)", connection_manager.connection_count)

    app = FastAPI(title="Room Relay", lifespan=lifespan)
    app.state.settings = settings
    app.state.registry = registry
    app.state.connection_manager = connection_manager
    app.state.dispatcher = Dispatcher(registry, connection_manager)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # REST routes
    app.include_router(root.router)
    app.include_router(health.router)
    app.include_router(rooms.router)

    # WebSocket routes
    app.include_router(websocket_module.router)

    return app


app = create_app()


def run() -> None:
    import uvicorn
    uvicorn.run("relay.main:app", host=default_settings.HOST, port=default_settings.PORT)


if __name__ == "__main__":
    run()
