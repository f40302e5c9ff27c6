"""Tests for data models."""

from datetime import datetime, timedelta, timezone

from messenger.models import (
    ConnectionState,
    Conversation,
    LiveEvent,
    Message,
    PresenceBinding,
    UserProfile,
)


class FakeHandle:
    id = "conn-1"

    async def send(self, event, data):
        pass


class TestConversation:
    """Tests for Conversation model."""

    def test_counterpart(self):
        """Test that counterpart returns the other member."""
        conv = Conversation(id="c1", members=["alice", "bob"], created_at=datetime.now(timezone.utc))

        assert conv.counterpart("alice") == "bob"
        assert conv.counterpart("bob") == "alice"

    def test_counterpart_of_outsider(self):
        """Test counterpart for an identity outside the pair."""
        conv = Conversation(id="c1", members=["alice", "bob"], created_at=datetime.now(timezone.utc))

        assert conv.counterpart("carol") == "alice"


class TestMessage:
    """Tests for Message model."""

    def test_receiver_defaults_to_none(self):
        """Test creating a message without receiver."""
        ts = datetime.now(timezone.utc)
        msg = Message(id="m1", conversation_id="c1", sender_id="alice", body="Hi", created_at=ts)

        assert msg.receiver_id is None
        assert msg.created_at == ts


class TestPresenceBinding:
    """Tests for PresenceBinding model."""

    def test_wire_shape(self):
        """Test the getUser entry of a binding."""
        binding = PresenceBinding(identity="alice", connection=FakeHandle())

        assert binding.connection_id == "conn-1"
        assert binding.to_wire() == {"userId": "alice", "connectionId": "conn-1"}
        assert binding.bound_at.tzinfo is not None

    def test_held_seconds(self):
        """Test the binding age measured from bound_at."""
        binding = PresenceBinding(identity="alice", connection=FakeHandle())

        assert binding.held_seconds(binding.bound_at + timedelta(seconds=90)) == 90.0


class TestEnums:
    """Tests for live channel enums."""

    def test_live_event_wire_names(self):
        """Test that event names match the wire contract."""
        assert LiveEvent.ADD_USER == "addUser"
        assert LiveEvent.GET_USER == "getUser"
        assert LiveEvent.SEND_MESSAGE == "sendMessage"
        assert LiveEvent.GET_MESSAGE == "getMessage"
        assert LiveEvent.USER_ONLINE == "user_online"
        assert LiveEvent.UPDATE_ONLINE_USERS == "update_online_users"

    def test_connection_states(self):
        """Test the connection lifecycle states."""
        assert [s.value for s in ConnectionState] == ["anonymous", "identified", "closed"]


class TestUserProfile:
    """Tests for UserProfile model."""

    def test_create_profile(self):
        """Test creating a public profile."""
        user = UserProfile(id="alice", username="Alice", email="alice@example.com")

        assert user.id == "alice"
        assert user.username == "Alice"
        assert user.email == "alice@example.com"
