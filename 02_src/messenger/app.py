"""Application bootstrap and lifecycle management."""

import os
from typing import Protocol

from .config import resolve_db_path
from .conversations import ConversationService, IConversationService
from .dispatch import LiveDispatcher
from .logging_config import get_logger
from .presence import IPresenceRegistry, PresenceRegistry
from .storage import IStorage, Storage

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Reset data between test runs."""
        ...

    @property
    def storage(self) -> IStorage: ...

    @property
    def registry(self) -> IPresenceRegistry: ...

    @property
    def dispatcher(self) -> LiveDispatcher: ...

    @property
    def conversations(self) -> IConversationService: ...


class Application:
    """Main application bootstrap."""

    def __init__(self, db_path: str | None = None):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._registry: IPresenceRegistry | None = None
        self._dispatcher: LiveDispatcher | None = None
        self._conversations: IConversationService | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. PresenceRegistry (no dependencies, in-memory)
        self._registry = PresenceRegistry()

        # 3. LiveDispatcher (depends on PresenceRegistry only)
        self._dispatcher = LiveDispatcher(self._registry)
        logger.info("LiveDispatcher initialized")

        # 4. ConversationService (depends on Storage only)
        self._conversations = ConversationService(self._storage)
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        self._conversations = None
        self._dispatcher = None
        if self._registry:
            self._registry.clear()
            self._registry = None
        if self._storage:
            await self._storage.close()
            self._storage = None
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Reset data between test runs."""
        if self._registry:
            self._registry.clear()
            logger.info("Presence cleared")

        if self._storage:
            await self._storage.clear()
            logger.info("Storage cleared")

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def registry(self) -> IPresenceRegistry:
        """Get presence registry instance."""
        if not self._registry:
            raise RuntimeError("Application not started")
        return self._registry

    @property
    def dispatcher(self) -> LiveDispatcher:
        """Get live dispatcher instance."""
        if not self._dispatcher:
            raise RuntimeError("Application not started")
        return self._dispatcher

    @property
    def conversations(self) -> IConversationService:
        """Get conversation service instance."""
        if not self._conversations:
            raise RuntimeError("Application not started")
        return self._conversations
