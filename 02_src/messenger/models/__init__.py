"""Core data models for the messenger service."""

from .conversations import Conversation, ConversationSummary, Message, MessageView
from .presence import ConnectionState, ILiveConnection, LiveEvent, PresenceBinding
from .users import UserProfile

__all__ = [
    # Users
    "UserProfile",
    # Conversations
    "Conversation",
    "ConversationSummary",
    "Message",
    "MessageView",
    # Presence
    "ConnectionState",
    "ILiveConnection",
    "LiveEvent",
    "PresenceBinding",
]
