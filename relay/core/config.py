# relay/core/config.py
import os
from typing import List
from dotenv import load_dotenv

class Settings:
    """
    Setup environment variables.
        - DEFAULT_ROOM_ID / DEFAULT_ROOM_NAME the permanent room every unknown join falls back to
        - MAX_HISTORY how many recent messages each room keeps
        - MAX_ROOMS upper bound on rooms held in memory, the default room included
        - OUTBOUND_QUEUE_SIZE pending payloads per connection before new ones are dropped
        - HOST / PORT where uvicorn listens
    """

    # Load environment variables from the .env file
    load_dotenv()

    DEFAULT_ROOM_ID: str = os.getenv("DEFAULT_ROOM_ID", "default-room")
    DEFAULT_ROOM_NAME: str = os.getenv("DEFAULT_ROOM_NAME", "Main Chat Room")
    MAX_HISTORY: int = int(os.getenv("MAX_HISTORY", "100"))
    MAX_ROOMS: int = int(os.getenv("MAX_ROOMS", "1000"))
    OUTBOUND_QUEUE_SIZE: int = int(os.getenv("OUTBOUND_QUEUE_SIZE", "256"))

    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8080"))

    CORS_ORIGINS: List[str] = [
        origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()
    ]

settings = Settings()
