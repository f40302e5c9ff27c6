"""Conversation and message data models."""

from dataclasses import dataclass
from datetime import datetime

from .users import UserProfile


@dataclass
class Conversation:
    """A persisted two-party channel."""

    id: str
    members: list[str]  # exactly two identities, creation order
    created_at: datetime

    def counterpart(self, user_id: str) -> str | None:
        """Return the member that is not user_id."""
        for member in self.members:
            if member != user_id:
                return member
        return None


@dataclass
class Message:
    """A single immutable message in a conversation."""

    id: str
    conversation_id: str
    sender_id: str
    body: str
    created_at: datetime
    receiver_id: str | None = None


@dataclass
class ConversationSummary:
    """A conversation as seen by one member."""

    user: UserProfile  # the other member
    conversation_id: str


@dataclass
class MessageView:
    """A message enriched with its sender's public profile."""

    user: UserProfile
    body: str
    conversation_id: str
    created_at: datetime
