"""Messenger core module."""

from .app import Application, IApplication
from .conversations import ConversationService, IConversationService
from .dispatch import ConnectionSession, ILiveDispatcher, LiveDispatcher
from .models import (
    ConnectionState,
    Conversation,
    ConversationSummary,
    ILiveConnection,
    LiveEvent,
    Message,
    MessageView,
    PresenceBinding,
    UserProfile,
)
from .presence import IPresenceRegistry, PresenceRegistry
from .storage import IStorage, Storage

__all__ = [
    # Application
    "Application",
    "IApplication",
    # Models
    "UserProfile",
    "Conversation",
    "ConversationSummary",
    "Message",
    "MessageView",
    "PresenceBinding",
    "ConnectionState",
    "ILiveConnection",
    "LiveEvent",
    # Components
    "IStorage",
    "Storage",
    "IPresenceRegistry",
    "PresenceRegistry",
    "ILiveDispatcher",
    "LiveDispatcher",
    "ConnectionSession",
    "IConversationService",
    "ConversationService",
]
