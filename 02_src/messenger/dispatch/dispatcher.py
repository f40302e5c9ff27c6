"""LiveDispatcher implementation."""

import asyncio
import threading
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Protocol

from ..logging_config import get_logger, live_context
from ..models import ConnectionState, ILiveConnection, LiveEvent
from ..presence import IPresenceRegistry

logger = get_logger(__name__)

# Fields relayed from sendMessage to getMessage
MESSAGE_FIELDS = ("senderId", "receiverId", "message", "conversationId")


class ConnectionSession:
    """Per-connection state: anonymous -> identified -> closed."""

    def __init__(self, connection: ILiveConnection):
        self.connection = connection
        self.state = ConnectionState.ANONYMOUS
        self.identity: str | None = None
        self.opened_at = datetime.now(timezone.utc)

    @property
    def closed(self) -> bool:
        return self.state is ConnectionState.CLOSED

    def open_seconds(self, now: datetime | None = None) -> float:
        """How long the connection has been open."""
        now = now or datetime.now(timezone.utc)
        return round((now - self.opened_at).total_seconds(), 3)

    def log_context(self, **fields: Any) -> dict:
        """Log ``extra`` naming this connection and its identity."""
        return live_context(
            connection_id=self.connection.id,
            identity=self.identity,
            **fields,
        )


EventHandler = Callable[[ConnectionSession, Any], Awaitable[None]]


class ILiveDispatcher(Protocol):
    """Routes live channel events using the presence registry."""

    async def connect(self, connection: ILiveConnection) -> ConnectionSession:
        """Track a newly opened connection."""
        ...

    async def handle(self, session: ConnectionSession, event: str, data: Any) -> None:
        """Process one inbound event from a connection."""
        ...

    async def disconnect(self, session: ConnectionSession) -> None:
        """Clean up after a closed connection (idempotent)."""
        ...

    async def broadcast(self, event: str, data: Any) -> int:
        """Emit an event to every open connection."""
        ...

    async def deliver(self, identity: str, event: str, data: Any) -> bool:
        """Emit an event to the connection bound to identity, if any."""
        ...


def coerce_identity(value: Any) -> str | None:
    """Normalize an identity from the wire, or None if unusable."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value
    return None


class LiveDispatcher:
    """Dispatches live events to zero, one or all connections."""

    def __init__(self, registry: IPresenceRegistry):
        self._registry = registry
        self._lock = threading.Lock()
        self._connections: dict[str, ILiveConnection] = {}
        self._handlers: dict[LiveEvent, EventHandler] = {
            LiveEvent.ADD_USER: self._on_add_user,
            LiveEvent.SEND_MESSAGE: self._on_send_message,
            LiveEvent.USER_ONLINE: self._on_user_online,
        }

    @property
    def connection_count(self) -> int:
        with self._lock:
            return len(self._connections)

    async def connect(self, connection: ILiveConnection) -> ConnectionSession:
        """Track a newly opened connection."""
        with self._lock:
            self._connections[connection.id] = connection
        session = ConnectionSession(connection)
        logger.info("Connection opened", extra=session.log_context())
        return session

    async def handle(self, session: ConnectionSession, event: str, data: Any) -> None:
        """Process one inbound event from a connection."""
        if session.closed:
            logger.debug("Ignoring %s on closed connection", event, extra=session.log_context())
            return

        try:
            live_event = LiveEvent(event)
        except ValueError:
            logger.warning("Unknown event %r", event, extra=session.log_context())
            return

        handler = self._handlers.get(live_event)
        if handler is None:
            logger.warning(
                "Event %s is not accepted from clients",
                event,
                extra=session.log_context(),
            )
            return

        await handler(session, data)

    async def disconnect(self, session: ConnectionSession) -> None:
        """Clean up after a closed connection (idempotent)."""
        if session.closed:
            return
        session.state = ConnectionState.CLOSED

        connection = session.connection
        with self._lock:
            self._connections.pop(connection.id, None)
        removed = self._registry.unregister(connection)
        logger.info(
            "Connection closed",
            extra=session.log_context(
                open_seconds=session.open_seconds(),
                unbound=[binding.identity for binding in removed],
            ),
        )

        await self._broadcast_presence()

    async def broadcast(self, event: str, data: Any) -> int:
        """Emit an event to every open connection."""
        with self._lock:
            targets = list(self._connections.values())

        if not targets:
            return 0

        results = await asyncio.gather(
            *[target.send(event, data) for target in targets],
            return_exceptions=True,
        )

        sent = 0
        for target, result in zip(targets, results):
            if isinstance(result, Exception):
                # The transport reports the disconnect on its own
                logger.warning(
                    "Broadcast of %s failed: %s",
                    event,
                    result,
                    extra=live_context(connection_id=target.id),
                )
            else:
                sent += 1
        return sent

    async def deliver(self, identity: str, event: str, data: Any) -> bool:
        """Emit an event to the connection bound to identity, if any."""
        connection = self._registry.lookup(identity)
        if connection is None:
            logger.debug(
                "Dropped %s for offline identity",
                event,
                extra=live_context(identity=identity),
            )
            return False

        try:
            await connection.send(event, data)
        except Exception as e:
            logger.warning(
                "Delivery of %s failed: %s",
                event,
                e,
                extra=live_context(connection_id=connection.id, identity=identity),
            )
            return False
        return True

    # Event handlers
    async def _on_add_user(self, session: ConnectionSession, data: Any) -> None:
        if await self._identify(session, LiveEvent.ADD_USER, data):
            await self._broadcast_presence()

    async def _on_user_online(self, session: ConnectionSession, data: Any) -> None:
        if await self._identify(session, LiveEvent.USER_ONLINE, data):
            await self._broadcast_presence()

    async def _on_send_message(self, session: ConnectionSession, data: Any) -> None:
        if not isinstance(data, dict):
            await self._reply_error(session, LiveEvent.SEND_MESSAGE, "payload must be an object")
            return

        receiver_id = coerce_identity(data.get("receiverId"))
        if receiver_id is None:
            await self._reply_error(session, LiveEvent.SEND_MESSAGE, "receiverId is required")
            return

        payload = {key: data.get(key) for key in MESSAGE_FIELDS}
        await self.deliver(receiver_id, LiveEvent.GET_MESSAGE.value, payload)

    # Helpers
    async def _identify(self, session: ConnectionSession, event: LiveEvent, data: Any) -> bool:
        identity = coerce_identity(data)
        if identity is None:
            await self._reply_error(session, event, "userId is required")
            return False

        self._registry.register(identity, session.connection)
        session.identity = identity
        session.state = ConnectionState.IDENTIFIED
        return True

    async def _broadcast_presence(self) -> None:
        # Both views of the one registry, bindings first
        bindings = [binding.to_wire() for binding in self._registry.snapshot()]
        await self.broadcast(LiveEvent.GET_USER.value, bindings)
        await self.broadcast(
            LiveEvent.UPDATE_ONLINE_USERS.value,
            self._registry.online_identities(),
        )

    async def _reply_error(self, session: ConnectionSession, event: LiveEvent, detail: str) -> None:
        logger.warning(
            "Rejected %s: %s",
            event.value,
            detail,
            extra=session.log_context(),
        )
        try:
            await session.connection.send(
                LiveEvent.ERROR.value,
                {"event": event.value, "detail": detail},
            )
        except Exception as e:
            logger.warning("Error reply failed: %s", e, extra=session.log_context())
