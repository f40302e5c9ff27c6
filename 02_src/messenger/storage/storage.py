"""SQLite storage implementation."""

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import aiosqlite

from ..config import resolve_db_path
from ..models import Conversation, Message, UserProfile


def _pair_key(a: str, b: str) -> tuple[str, str]:
    """Canonical (min, max) key of an unordered member pair."""
    return (a, b) if a <= b else (b, a)


def _parse_ts(value: str) -> datetime:
    ts = datetime.fromisoformat(value)
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


class IStorage(Protocol):
    """Persistent storage for conversations, messages and public profiles (SQLite)."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Users
    async def save_user(self, user: UserProfile) -> None:
        """Insert or refresh a public profile."""
        ...

    async def get_user(self, user_id: str) -> UserProfile | None:
        """Get a public profile by ID."""
        ...

    async def list_users(self) -> list[UserProfile]:
        """Get all public profiles."""
        ...

    # Conversations
    async def find_conversation(self, a: str, b: str) -> Conversation | None:
        """Find the conversation whose members are {a, b}, in any order."""
        ...

    async def insert_conversation(self, conversation: Conversation) -> Conversation:
        """Insert a conversation unless its member pair exists; return the stored one."""
        ...

    async def get_conversations_for_member(self, user_id: str) -> list[Conversation]:
        """Get all conversations user_id is a member of, in creation order."""
        ...

    # Messages
    async def save_message(self, message: Message) -> None:
        """Append a message."""
        ...

    async def get_messages(self, conversation_id: str) -> list[Message]:
        """Get messages of a conversation in insertion order."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    # Users
    async def save_user(self, user: UserProfile) -> None:
        """Insert or refresh a public profile."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT INTO users (id, username, email, updated_at)
            VALUES (?, ?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(id) DO UPDATE SET
                username = excluded.username,
                email = excluded.email,
                updated_at = CURRENT_TIMESTAMP
            """,
            (user.id, user.username, user.email),
        )
        await conn.commit()

    async def get_user(self, user_id: str) -> UserProfile | None:
        """Get a public profile by ID."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT id, username, email
            FROM users
            WHERE id = ?
            """,
            (user_id,),
        )
        row = await cursor.fetchone()

        if not row:
            return None

        return UserProfile(id=row[0], username=row[1], email=row[2])

    async def list_users(self) -> list[UserProfile]:
        """Get all public profiles."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT id, username, email
            FROM users
            ORDER BY rowid ASC
            """
        )
        rows = await cursor.fetchall()

        return [UserProfile(id=row[0], username=row[1], email=row[2]) for row in rows]

    # Conversations
    @staticmethod
    def _row_to_conversation(row) -> Conversation:
        return Conversation(
            id=row[0],
            members=[row[1], row[2]],
            created_at=_parse_ts(row[3]),
        )

    async def find_conversation(self, a: str, b: str) -> Conversation | None:
        """Find the conversation whose members are {a, b}, in any order."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT id, member_a, member_b, created_at
            FROM conversations
            WHERE pair_low = ? AND pair_high = ?
            """,
            _pair_key(a, b),
        )
        row = await cursor.fetchone()

        return self._row_to_conversation(row) if row else None

    async def insert_conversation(self, conversation: Conversation) -> Conversation:
        """Insert a conversation unless its member pair exists; return the stored one."""
        conn = self._require_conn()

        if len(conversation.members) != 2:
            raise ValueError("A conversation has exactly two members")

        member_a, member_b = conversation.members
        pair_low, pair_high = _pair_key(member_a, member_b)

        # The pair uniqueness constraint turns a concurrent duplicate into a no-op
        await conn.execute(
            """
            INSERT OR IGNORE INTO conversations
            (id, member_a, member_b, pair_low, pair_high, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                conversation.id or str(uuid.uuid4()),
                member_a,
                member_b,
                pair_low,
                pair_high,
                conversation.created_at.isoformat(),
            ),
        )
        await conn.commit()

        stored = await self.find_conversation(member_a, member_b)
        if stored is None:
            raise RuntimeError("Conversation insert was not persisted")
        return stored

    async def get_conversations_for_member(self, user_id: str) -> list[Conversation]:
        """Get all conversations user_id is a member of, in creation order."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT id, member_a, member_b, created_at
            FROM conversations
            WHERE member_a = ? OR member_b = ?
            ORDER BY seq ASC
            """,
            (user_id, user_id),
        )
        rows = await cursor.fetchall()

        return [self._row_to_conversation(row) for row in rows]

    # Messages
    async def save_message(self, message: Message) -> None:
        """Append a message."""
        conn = self._require_conn()

        # Generate ID if not provided
        if not message.id:
            message.id = str(uuid.uuid4())

        await conn.execute(
            """
            INSERT INTO messages
            (id, conversation_id, sender_id, receiver_id, body, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                message.id,
                message.conversation_id,
                message.sender_id,
                message.receiver_id,
                message.body,
                message.created_at.isoformat(),
            ),
        )
        await conn.commit()

    async def get_messages(self, conversation_id: str) -> list[Message]:
        """Get messages of a conversation in insertion order."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT id, conversation_id, sender_id, receiver_id, body, created_at
            FROM messages
            WHERE conversation_id = ?
            ORDER BY seq ASC
            """,
            (conversation_id,),
        )
        rows = await cursor.fetchall()

        return [
            Message(
                id=row[0],
                conversation_id=row[1],
                sender_id=row[2],
                receiver_id=row[3],
                body=row[4],
                created_at=_parse_ts(row[5]),
            )
            for row in rows
        ]

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        conn = self._require_conn()

        tables = [
            "messages",
            "conversations",
            "users",
        ]

        for table in tables:
            await conn.execute(f"DELETE FROM {table}")

        await conn.commit()
