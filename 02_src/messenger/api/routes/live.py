"""Live channel (WebSocket) and presence routes."""

from pydantic import BaseModel
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ...app import IApplication
from ...logging_config import get_logger
from ...models import LiveEvent
from ..websocket import FrameError, WebSocketConnection, frame_text, parse_frame

logger = get_logger(__name__)


class PresenceResponse(BaseModel):
    """Response model for presence."""

    online: list[str]


def create_live_router(app: IApplication) -> APIRouter:
    """Create live channel router."""
    router = APIRouter(tags=["live"])

    @router.websocket("/ws")
    async def live_channel(websocket: WebSocket) -> None:
        """Persistent connection: one event at a time, in arrival order."""
        await websocket.accept()

        dispatcher = app.dispatcher
        session = await dispatcher.connect(WebSocketConnection(websocket))
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))

                try:
                    event, data = parse_frame(frame_text(message))
                except FrameError as e:
                    logger.warning("Bad frame: %s", e, extra=session.log_context())
                    await session.connection.send(
                        LiveEvent.ERROR.value, {"event": None, "detail": str(e)}
                    )
                    continue

                await dispatcher.handle(session, event, data)
        except WebSocketDisconnect:
            pass
        finally:
            await dispatcher.disconnect(session)

    @router.get("/api/presence", response_model=PresenceResponse)
    async def get_presence() -> dict:
        """Get identities currently online."""
        return {"online": app.registry.online_identities()}

    return router
