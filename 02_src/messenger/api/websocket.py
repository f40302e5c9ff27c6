"""WebSocket transport for the live channel."""

import asyncio
import json
import uuid
from typing import Any

from fastapi import WebSocket


class FrameError(ValueError):
    """Inbound frame is not {"event": <name>, "data": <payload>}."""


class WebSocketConnection:
    """Live connection handle backed by a FastAPI WebSocket."""

    def __init__(self, websocket: WebSocket, connection_id: str | None = None):
        self._websocket = websocket
        self._id = connection_id or uuid.uuid4().hex
        # Concurrent broadcasts must not interleave frames
        self._send_lock = asyncio.Lock()

    @property
    def id(self) -> str:
        return self._id

    async def send(self, event: str, data: Any) -> None:
        """Emit a named event as a JSON text frame."""
        async with self._send_lock:
            await self._websocket.send_json({"event": event, "data": data})


def parse_frame(text: str) -> tuple[str, Any]:
    """Split an inbound text frame into (event, data)."""
    try:
        frame = json.loads(text)
    except ValueError as e:
        raise FrameError(f"invalid JSON: {e}") from e

    if not isinstance(frame, dict):
        raise FrameError("frame must be an object")

    event = frame.get("event")
    if not isinstance(event, str) or not event:
        raise FrameError("frame.event is required")

    return event, frame.get("data")


def frame_text(message: dict) -> str:
    """Text payload of an ASGI ``websocket.receive`` message."""
    text = message.get("text")
    if text is None:
        raise FrameError("binary frames are not supported")
    return text
