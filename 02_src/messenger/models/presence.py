"""Presence and live channel data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol


class LiveEvent(str, Enum):
    """Event names on the live channel (wire contract)."""

    ADD_USER = "addUser"
    GET_USER = "getUser"
    SEND_MESSAGE = "sendMessage"
    GET_MESSAGE = "getMessage"
    USER_ONLINE = "user_online"
    UPDATE_ONLINE_USERS = "update_online_users"
    ERROR = "error"


class ConnectionState(str, Enum):
    """Lifecycle of a single live connection."""

    ANONYMOUS = "anonymous"
    IDENTIFIED = "identified"
    CLOSED = "closed"


class ILiveConnection(Protocol):
    """A live connection handle, as seen by the dispatcher."""

    @property
    def id(self) -> str:
        """Server-assigned connection identifier."""
        ...

    async def send(self, event: str, data: Any) -> None:
        """Emit a named event with a payload to this connection."""
        ...


@dataclass
class PresenceBinding:
    """Current association between an identity and its live connection."""

    identity: str
    connection: ILiveConnection
    bound_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def connection_id(self) -> str:
        return self.connection.id

    def held_seconds(self, now: datetime | None = None) -> float:
        """How long this binding has been in place."""
        now = now or datetime.now(timezone.utc)
        return round((now - self.bound_at).total_seconds(), 3)

    def to_wire(self) -> dict:
        """Shape broadcast in getUser."""
        return {"userId": self.identity, "connectionId": self.connection.id}
