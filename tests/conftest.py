"""Test configuration and fixtures."""
import json

import pytest

from relay.services.connection_manager import ConnectionManager
from relay.services.dispatcher import Dispatcher
from relay.services.room_manager import RoomRegistry

DEFAULT_ROOM_ID = "default-room"
DEFAULT_ROOM_NAME = "Main Chat Room"


class FakeConnection:
    """In-memory connection that records every payload it is sent."""

    def __init__(self):
        self.sent = []
        self.open = True

    @property
    def is_open(self):
        return self.open

    def send(self, payload):
        self.sent.append(json.loads(payload))

    def types(self):
        return [event["type"] for event in self.sent]

    def of_type(self, event_type):
        return [event for event in self.sent if event["type"] == event_type]

    def clear(self):
        self.sent.clear()


@pytest.fixture
def registry():
    registry = RoomRegistry(DEFAULT_ROOM_ID, DEFAULT_ROOM_NAME, max_history=100)
    registry.ensure_default_room()
    return registry


@pytest.fixture
def connections():
    return ConnectionManager()


@pytest.fixture
def dispatcher(registry, connections):
    return Dispatcher(registry, connections)


@pytest.fixture
def client_factory(dispatcher):
    """Open sessions backed by fake connections."""

    def open_client():
        connection = FakeConnection()
        session = dispatcher.open_session(connection)
        return connection, session

    return open_client


def send(dispatcher, session, **event):
    dispatcher.handle_raw(session, json.dumps(event))
