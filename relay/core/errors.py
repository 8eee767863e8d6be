# relay/core/errors.py

from __future__ import annotations


class RelayError(Exception):
    """
    Base class for every recoverable failure while handling a client event.

    Each subclass carries a ``code`` tag. The dispatcher turns any RelayError
    into a direct ``ERROR`` reply to the connection that caused it; nothing is
    broadcast and the connection stays open.
    """

    code = "RELAY_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(RelayError):
    """A required field is missing, empty or of the wrong type."""

    code = "VALIDATION_ERROR"


class PreconditionError(RelayError):
    """Identity or room membership prerequisite not met."""

    code = "PRECONDITION_ERROR"


class NotFoundError(RelayError):
    """Referenced room vanished between check and use."""

    code = "NOT_FOUND"


class ProtocolError(RelayError):
    """Payload is not JSON, not an object, or has no type tag."""

    code = "PROTOCOL_ERROR"


class UnknownEventError(RelayError):
    code = "UNKNOWN_EVENT"


class ConflictError(RelayError):
    """A room with the requested id already exists."""

    code = "CONFLICT"


class RoomLimitError(RelayError):
    """The registry already holds the maximum number of rooms."""

    code = "ROOM_LIMIT"
