"""ConversationService implementation."""

import uuid
from datetime import datetime, timezone
from typing import Protocol

from ..logging_config import get_logger
from ..models import Conversation, ConversationSummary, Message, MessageView
from ..storage import IStorage

logger = get_logger(__name__)


class IConversationService(Protocol):
    """Conversations and messages between two identities."""

    async def find_or_create_conversation(self, a: str, b: str) -> tuple[Conversation, bool]:
        """Return the conversation of {a, b}, creating it if needed. Second item: created."""
        ...

    async def list_conversations(self, user_id: str) -> list[ConversationSummary]:
        """List user's conversations with the other member's public profile."""
        ...

    async def append_message(
        self,
        conversation_id: str,
        sender_id: str,
        body: str,
        receiver_id: str | None = None,
    ) -> Message:
        """Persist a message with a server-assigned id and timestamp."""
        ...

    async def list_messages(self, conversation_id: str) -> list[MessageView]:
        """List messages of a conversation with the sender's public profile."""
        ...


def _require(value: str | None, name: str) -> str:
    if not value or not str(value).strip():
        raise ValueError(f"{name} is required")
    return str(value)


class ConversationService:
    """Orchestrates conversation and message storage."""

    def __init__(self, storage: IStorage):
        self._storage = storage

    async def find_or_create_conversation(self, a: str, b: str) -> tuple[Conversation, bool]:
        """Return the conversation of {a, b}, creating it if needed. Second item: created."""
        a = _require(a, "senderId")
        b = _require(b, "receiverId")
        if a == b:
            raise ValueError("A conversation needs two different members")

        existing = await self._storage.find_conversation(a, b)
        if existing:
            return existing, False

        candidate = Conversation(
            id=str(uuid.uuid4()),
            members=[a, b],
            created_at=datetime.now(timezone.utc),
        )
        stored = await self._storage.insert_conversation(candidate)

        # Another request may have created the pair in between
        created = stored.id == candidate.id
        if created:
            logger.info("Conversation %s created for %s and %s", stored.id, a, b)
        return stored, created

    async def list_conversations(self, user_id: str) -> list[ConversationSummary]:
        """List user's conversations with the other member's public profile."""
        user_id = _require(user_id, "userId")

        summaries = []
        for conversation in await self._storage.get_conversations_for_member(user_id):
            other_id = conversation.counterpart(user_id)
            if other_id is None:
                continue

            other = await self._storage.get_user(other_id)
            if other is None:
                logger.debug(
                    "Skipping conversation %s: unknown member %s",
                    conversation.id,
                    other_id,
                )
                continue

            summaries.append(ConversationSummary(user=other, conversation_id=conversation.id))

        return summaries

    async def append_message(
        self,
        conversation_id: str,
        sender_id: str,
        body: str,
        receiver_id: str | None = None,
    ) -> Message:
        """Persist a message with a server-assigned id and timestamp."""
        if not isinstance(body, str):
            raise ValueError("message must be a string")

        message = Message(
            id=str(uuid.uuid4()),
            conversation_id=_require(conversation_id, "conversationId"),
            sender_id=_require(sender_id, "senderId"),
            receiver_id=receiver_id or None,
            body=body,
            created_at=datetime.now(timezone.utc),
        )

        await self._storage.save_message(message)
        return message

    async def list_messages(self, conversation_id: str) -> list[MessageView]:
        """List messages of a conversation with the sender's public profile."""
        conversation_id = _require(conversation_id, "conversationId")

        # Senders repeat; resolve each profile once
        profiles = {}
        views = []
        for message in await self._storage.get_messages(conversation_id):
            if message.sender_id not in profiles:
                profiles[message.sender_id] = await self._storage.get_user(message.sender_id)

            sender = profiles[message.sender_id]
            if sender is None:
                logger.debug(
                    "Skipping message %s: unknown sender %s",
                    message.id,
                    message.sender_id,
                )
                continue

            views.append(
                MessageView(
                    user=sender,
                    body=message.body,
                    conversation_id=conversation_id,
                    created_at=message.created_at,
                )
            )

        return views
