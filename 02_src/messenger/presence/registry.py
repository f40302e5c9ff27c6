"""PresenceRegistry implementation.

One registry per Application answers "who is online and through which
connection". Both presence events of the live channel (``addUser`` and
``user_online``) land here, so ``getUser`` and ``update_online_users`` are
two views of the same bindings:

- ``snapshot()``          -> list of bindings ({userId, connectionId} on the wire)
- ``online_identities()`` -> list of identities

Invariants:
- at most one binding per identity; re-registering replaces the connection
  (last-write-wins) and keeps the identity's original position
- at most one binding per connection; a connection that announces a second
  identity gives up the first one
- iteration order is insertion order of the identities

All operations are synchronous and guarded by one mutex. None of them
performs I/O, so callers must never await while holding a result they
expect to stay current.
"""

import threading
from typing import Protocol

from ..logging_config import get_logger, live_context
from ..models import ILiveConnection, PresenceBinding

logger = get_logger(__name__)


class IPresenceRegistry(Protocol):
    """Identity -> live connection bindings."""

    def register(self, identity: str, connection: ILiveConnection) -> PresenceBinding | None:
        """Bind identity to connection. Return the evicted binding, if any."""
        ...

    def unregister(self, connection: ILiveConnection) -> list[PresenceBinding]:
        """Remove the binding(s) holding this exact connection."""
        ...

    def lookup(self, identity: str) -> ILiveConnection | None:
        """Get the live connection of an identity."""
        ...

    def snapshot(self) -> list[PresenceBinding]:
        """Get current bindings in insertion order."""
        ...

    def online_identities(self) -> list[str]:
        """Get online identities in insertion order."""
        ...

    def clear(self) -> None:
        """Drop all bindings."""
        ...


class PresenceRegistry:
    """In-memory presence registry guarded by a single mutex."""

    def __init__(self):
        self._lock = threading.Lock()
        self._bindings: dict[str, PresenceBinding] = {}

    def register(self, identity: str, connection: ILiveConnection) -> PresenceBinding | None:
        """Bind identity to connection. Return the evicted binding, if any."""
        if not identity:
            raise ValueError("identity is required")

        with self._lock:
            # A connection speaks for one identity at a time
            dropped = [
                binding
                for other, binding in self._bindings.items()
                if other != identity and binding.connection is connection
            ]
            for binding in dropped:
                del self._bindings[binding.identity]

            previous = self._bindings.get(identity)
            if previous is not None and previous.connection is connection:
                return None

            self._bindings[identity] = PresenceBinding(identity=identity, connection=connection)

        for binding in dropped:
            logger.info(
                "Connection re-identified from %s to %s",
                binding.identity,
                identity,
                extra=live_context(
                    connection_id=connection.id,
                    identity=identity,
                    previous_identity=binding.identity,
                    held_seconds=binding.held_seconds(),
                ),
            )

        if previous is not None:
            logger.info(
                "Identity %s moved to a new connection",
                identity,
                extra=live_context(
                    connection_id=connection.id,
                    identity=identity,
                    evicted_connection_id=previous.connection_id,
                    held_seconds=previous.held_seconds(),
                ),
            )
        else:
            logger.info(
                "Identity %s registered",
                identity,
                extra=live_context(connection_id=connection.id, identity=identity),
            )
        return previous

    def unregister(self, connection: ILiveConnection) -> list[PresenceBinding]:
        """Remove the binding(s) holding this exact connection."""
        with self._lock:
            removed = [
                binding
                for binding in self._bindings.values()
                if binding.connection is connection
            ]
            for binding in removed:
                del self._bindings[binding.identity]

        for binding in removed:
            logger.info(
                "Identity %s unregistered",
                binding.identity,
                extra=live_context(
                    connection_id=connection.id,
                    identity=binding.identity,
                    held_seconds=binding.held_seconds(),
                ),
            )
        return removed

    def lookup(self, identity: str) -> ILiveConnection | None:
        """Get the live connection of an identity."""
        with self._lock:
            binding = self._bindings.get(identity)
        return binding.connection if binding else None

    def snapshot(self) -> list[PresenceBinding]:
        """Get current bindings in insertion order."""
        with self._lock:
            return list(self._bindings.values())

    def online_identities(self) -> list[str]:
        """Get online identities in insertion order."""
        with self._lock:
            return list(self._bindings.keys())

    def clear(self) -> None:
        """Drop all bindings."""
        with self._lock:
            self._bindings.clear()
