"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from lobbychess.db.schema import Base
from lobbychess.relay.events import Event, parse_relay_event

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        Base.metadata.drop_all(bind=engine)
        db.close()


class FakePeer:
    """Stands in for a client connection: records everything the relay sends it."""

    def __init__(self, peer_id: str) -> None:
        self.peer_id = peer_id
        self.connected = True
        self.received: list[Event] = []

    async def send(self, event: Event) -> None:
        # go through the wire format, like a real client would
        self.received.append(parse_relay_event(event.to_wire()))

    @property
    def events(self) -> list[str]:
        return [event.event for event in self.received]

    def last(self, name: str) -> Event:
        return next(event for event in reversed(self.received) if event.event == name)


@pytest.fixture
def peers() -> list[FakePeer]:
    return [FakePeer(f"peer-{i}") for i in range(3)]


@pytest.fixture
def make_peer():
    """Factory for additional peers"""
    return FakePeer
