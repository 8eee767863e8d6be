# relay/services/message_store.py

from __future__ import annotations

from collections import deque
from typing import Deque, List

from relay.models.models import Message


class MessageStore:
    """
    Bounded, ordered log of a room's recent messages.

    Appending past ``max_history`` evicts the oldest entry first.
    """

    def __init__(self, max_history: int = 100) -> None:
        if max_history < 1:
            raise ValueError("max_history must be at least 1")
        self.max_history = max_history
        self._messages: Deque[Message] = deque(maxlen=max_history)

    def append(self, message: Message) -> None:
        self._messages.append(message)

    def snapshot(self) -> List[Message]:
        """Oldest-first copy of the current history."""
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

