"""Tests for Storage."""

import asyncio
from datetime import datetime, timezone

import pytest

from messenger.models import Conversation, Message, UserProfile
from messenger.storage import Storage


def _conversation(conv_id: str, a: str, b: str) -> Conversation:
    return Conversation(id=conv_id, members=[a, b], created_at=datetime.now(timezone.utc))


def _message(msg_id: str | None, conversation_id: str, sender_id: str, body: str) -> Message:
    return Message(
        id=msg_id,  # type: ignore[arg-type]
        conversation_id=conversation_id,
        sender_id=sender_id,
        body=body,
        created_at=datetime.now(timezone.utc),
    )


class TestStorageInit:
    """Tests for Storage initialization."""

    async def test_init_creates_tables(self, storage):
        """Test that init creates all tables."""
        async with storage._conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ) as cursor:
            tables = [row[0] for row in await cursor.fetchall()]
            assert "users" in tables
            assert "conversations" in tables
            assert "messages" in tables

    async def test_uninitialized_storage_raises(self):
        """Test that using storage before init fails loudly."""
        st = Storage(":memory:")

        with pytest.raises(RuntimeError, match="not initialized"):
            await st.get_user("alice")

    async def test_close_is_idempotent(self):
        """Test that closing twice is harmless."""
        st = Storage(":memory:")
        await st.init()
        await st.close()
        await st.close()

        assert st._conn is None


class TestStorageUsers:
    """Tests for public profile storage."""

    async def test_get_user(self, storage, users):
        """Test retrieving a profile."""
        retrieved = await storage.get_user("alice")

        assert retrieved == UserProfile(id="alice", username="Alice", email="alice@example.com")

    async def test_get_nonexistent_user(self, storage):
        """Test retrieving a nonexistent profile returns None."""
        assert await storage.get_user("nonexistent") is None

    async def test_save_user_updates_existing(self, storage, users):
        """Test that saving the same ID refreshes the profile."""
        await storage.save_user(UserProfile(id="alice", username="Al", email="al@example.com"))

        retrieved = await storage.get_user("alice")
        assert retrieved.username == "Al"
        assert retrieved.email == "al@example.com"

    async def test_list_users(self, storage, users):
        """Test listing profiles in insertion order."""
        listed = await storage.list_users()

        assert [u.id for u in listed] == ["alice", "bob", "carol"]


class TestStorageConversations:
    """Tests for conversation storage."""

    async def test_insert_and_find(self, storage):
        """Test that an inserted conversation is found by its pair."""
        stored = await storage.insert_conversation(_conversation("c1", "alice", "bob"))

        found = await storage.find_conversation("alice", "bob")
        assert found is not None
        assert found.id == "c1"
        assert found.members == ["alice", "bob"]
        assert found.created_at == stored.created_at
        assert found.created_at.tzinfo is not None

    async def test_find_is_order_insensitive(self, storage):
        """Test that {a, b} and {b, a} are the same pair."""
        await storage.insert_conversation(_conversation("c1", "alice", "bob"))

        found = await storage.find_conversation("bob", "alice")
        assert found is not None
        assert found.id == "c1"

    async def test_find_missing_pair(self, storage):
        """Test that an unknown pair is not found."""
        assert await storage.find_conversation("alice", "bob") is None

    async def test_insert_duplicate_pair_returns_existing(self, storage):
        """Test that the pair constraint keeps the first conversation."""
        await storage.insert_conversation(_conversation("c1", "alice", "bob"))

        stored = await storage.insert_conversation(_conversation("c2", "bob", "alice"))

        assert stored.id == "c1"
        async with storage._conn.execute("SELECT COUNT(*) FROM conversations") as cursor:
            assert (await cursor.fetchone())[0] == 1

    async def test_insert_rejects_wrong_member_count(self, storage):
        """Test that a conversation must have exactly two members."""
        conversation = Conversation(
            id="c1", members=["alice"], created_at=datetime.now(timezone.utc)
        )

        with pytest.raises(ValueError, match="two members"):
            await storage.insert_conversation(conversation)

    async def test_concurrent_inserts_converge(self, storage):
        """Test that racing inserts for one pair yield one conversation."""
        results = await asyncio.gather(
            *[
                storage.insert_conversation(_conversation(f"c{i}", "alice", "bob"))
                for i in range(10)
            ]
        )

        assert len({c.id for c in results}) == 1

    async def test_get_conversations_for_member(self, storage):
        """Test listing a member's conversations in creation order."""
        await storage.insert_conversation(_conversation("c1", "alice", "bob"))
        await storage.insert_conversation(_conversation("c2", "carol", "alice"))
        await storage.insert_conversation(_conversation("c3", "bob", "carol"))

        conversations = await storage.get_conversations_for_member("alice")

        assert [c.id for c in conversations] == ["c1", "c2"]


class TestStorageMessages:
    """Tests for message storage."""

    async def test_save_and_get_messages(self, storage):
        """Test that messages come back in insertion order."""
        await storage.save_message(_message("m1", "c1", "alice", "Hello"))
        await storage.save_message(_message("m2", "c1", "bob", "Hi"))
        await storage.save_message(_message("m3", "c2", "bob", "Elsewhere"))

        messages = await storage.get_messages("c1")

        assert [m.id for m in messages] == ["m1", "m2"]
        assert [m.body for m in messages] == ["Hello", "Hi"]
        assert messages[0].created_at.tzinfo is not None

    async def test_save_message_generates_id(self, storage):
        """Test that saving a message without ID generates one."""
        msg = _message(None, "c1", "alice", "Hello")
        await storage.save_message(msg)

        assert msg.id
        assert (await storage.get_messages("c1"))[0].id == msg.id

    async def test_save_message_keeps_receiver(self, storage):
        """Test that the receiver is persisted."""
        msg = _message("m1", "c1", "alice", "Hello")
        msg.receiver_id = "bob"
        await storage.save_message(msg)

        assert (await storage.get_messages("c1"))[0].receiver_id == "bob"

    async def test_get_messages_unknown_conversation(self, storage):
        """Test that an unknown conversation has no messages."""
        assert await storage.get_messages("nope") == []


class TestStorageClear:
    """Tests for Storage.clear()."""

    async def test_clear_removes_everything(self, storage, users):
        """Test that clear empties every table."""
        await storage.insert_conversation(_conversation("c1", "alice", "bob"))
        await storage.save_message(_message("m1", "c1", "alice", "Hello"))

        await storage.clear()

        assert await storage.list_users() == []
        assert await storage.find_conversation("alice", "bob") is None
        assert await storage.get_messages("c1") == []
