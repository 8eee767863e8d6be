# relay/services/session.py

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from relay.services.connection_manager import Connection


def default_user_name(user_id: str) -> str:
    return f"User-{user_id[:5]}"


@dataclass(eq=False)
class Session:
    """
    Identity and room membership of one open connection.

    Created when the connection opens, discarded when it closes. Only the
    dispatcher mutates it, and only in response to events from its own
    connection.
    """

    connection: "Connection"
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    current_room: Optional[str] = None
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    closed: bool = False

    @property
    def is_identified(self) -> bool:
        return bool(self.user_id)

    @property
    def display_name(self) -> str:
        if self.user_name:
            return self.user_name
        return default_user_name(self.user_id or "")

    def __str__(self) -> str:
        return f"{self.user_id or 'anonymous'}#{self.session_id}"
