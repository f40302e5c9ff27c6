"""Conversations module."""

from .service import ConversationService, IConversationService

__all__ = ["ConversationService", "IConversationService"]
