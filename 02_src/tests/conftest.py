"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


class FakeConnection:
    """Live connection that records what it was sent."""

    def __init__(self, connection_id: str, fail: bool = False):
        self.id = connection_id
        self.fail = fail
        self.sent: list[tuple[str, object]] = []

    async def send(self, event, data) -> None:
        if self.fail:
            raise ConnectionError("socket closed")
        self.sent.append((event, data))

    def received(self, event: str) -> list:
        """Payloads received for one event name, oldest first."""
        return [data for name, data in self.sent if name == event]


@pytest.fixture
def make_connection():
    """Factory for fake live connections."""

    def _make(connection_id: str, fail: bool = False) -> FakeConnection:
        return FakeConnection(connection_id, fail=fail)

    return _make


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from messenger.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest_asyncio.fixture
async def users(storage):
    """Seed public profiles for alice, bob and carol."""
    from messenger.models import UserProfile

    profiles = [
        UserProfile(id="alice", username="Alice", email="alice@example.com"),
        UserProfile(id="bob", username="Bob", email="bob@example.com"),
        UserProfile(id="carol", username="Carol", email="carol@example.com"),
    ]
    for profile in profiles:
        await storage.save_user(profile)
    return {p.id: p for p in profiles}


@pytest.fixture
def registry():
    """Create a fresh presence registry."""
    from messenger.presence import PresenceRegistry

    return PresenceRegistry()


@pytest.fixture
def dispatcher(registry):
    """Create LiveDispatcher over the registry."""
    from messenger.dispatch import LiveDispatcher

    return LiveDispatcher(registry)


@pytest.fixture
def conversation_service(storage):
    """Create ConversationService over in-memory storage."""
    from messenger.conversations import ConversationService

    return ConversationService(storage)


@pytest.fixture
def application():
    """Create an Application on an in-memory database (not started)."""
    from messenger.app import Application

    return Application(db_path=":memory:")


@pytest.fixture
def client(application):
    """TestClient running the full FastAPI app, lifespan included."""
    from messenger.api import create_fastapi_app

    with TestClient(create_fastapi_app(application)) as test_client:
        yield test_client
