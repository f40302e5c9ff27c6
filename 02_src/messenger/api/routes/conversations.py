"""Conversation and message API routes."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from fastapi import APIRouter, HTTPException, Response, status

from ...app import IApplication
from ...logging_config import get_logger

logger = get_logger(__name__)


class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)


class ConversationRequest(WireModel):
    """Request model for create-or-get conversation."""

    sender_id: str = Field(alias="senderId")
    receiver_id: str = Field(alias="receiverId")


class ConversationOut(WireModel):
    id: str
    members: list[str]
    created_at: datetime = Field(alias="createdAt")


class ConversationResponse(WireModel):
    """Response model for create-or-get conversation."""

    message: str
    conversation: ConversationOut


class PublicUser(WireModel):
    id: str
    email: str
    username: str


class ConversationSummaryResponse(WireModel):
    """Response model for a user's conversation list entry."""

    user: PublicUser
    conversation_id: str = Field(alias="conversationId")


class MessageRequest(WireModel):
    """Request model for appending a message."""

    conversation_id: str = Field(alias="conversationId")
    sender_id: str = Field(alias="senderId")
    receiver_id: str | None = Field(default=None, alias="receiverId")
    message: str


class MessageResponse(WireModel):
    """Response model for a stored message."""

    id: str
    conversation_id: str = Field(alias="conversationId")
    sender_id: str = Field(alias="senderId")
    message: str
    created_at: datetime = Field(alias="createdAt")


class MessageViewResponse(WireModel):
    """Response model for a message enriched with its sender."""

    user: PublicUser
    message: str
    conversation_id: str = Field(alias="conversationId")
    created_at: datetime = Field(alias="createdAt")


def _public_user(user) -> dict:
    return {"id": user.id, "email": user.email, "username": user.username}


def create_conversations_router(app: IApplication) -> APIRouter:
    """Create conversations router."""
    router = APIRouter(prefix="/api", tags=["conversations"])

    @router.post("/conversation", response_model=ConversationResponse)
    async def create_conversation(request: ConversationRequest, response: Response) -> dict:
        """Find or create the conversation between sender and receiver."""
        try:
            conversation, created = await app.conversations.find_or_create_conversation(
                request.sender_id, request.receiver_id
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except Exception:
            logger.exception("Error creating conversation")
            raise HTTPException(status_code=500, detail="Failed to create conversation")

        if created:
            response.status_code = status.HTTP_201_CREATED
            message = "Conversation created successfully"
        else:
            message = "Conversation already exists"

        return {
            "message": message,
            "conversation": {
                "id": conversation.id,
                "members": conversation.members,
                "createdAt": conversation.created_at,
            },
        }

    @router.get("/conversation/{user_id}", response_model=list[ConversationSummaryResponse])
    async def list_conversations(user_id: str) -> list[dict]:
        """List a user's conversations with the other member's profile."""
        try:
            summaries = await app.conversations.list_conversations(user_id)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except Exception:
            logger.exception("Error fetching conversations for %s", user_id)
            raise HTTPException(status_code=500, detail="Failed to fetch conversations")

        return [
            {"user": _public_user(s.user), "conversationId": s.conversation_id}
            for s in summaries
        ]

    @router.post("/message", response_model=MessageResponse)
    async def append_message(request: MessageRequest) -> dict:
        """Persist a message."""
        try:
            message = await app.conversations.append_message(
                conversation_id=request.conversation_id,
                sender_id=request.sender_id,
                receiver_id=request.receiver_id,
                body=request.message,
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except Exception:
            logger.exception("Error handling message request")
            raise HTTPException(status_code=500, detail="Failed to send message")

        return {
            "id": message.id,
            "conversationId": message.conversation_id,
            "senderId": message.sender_id,
            "message": message.body,
            "createdAt": message.created_at,
        }

    @router.get("/message/{conversation_id}", response_model=list[MessageViewResponse])
    async def list_messages(conversation_id: str) -> list[dict]:
        """List messages of a conversation in insertion order."""
        try:
            views = await app.conversations.list_messages(conversation_id)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except Exception:
            logger.exception("Error fetching messages for %s", conversation_id)
            raise HTTPException(status_code=500, detail="Failed to fetch messages")

        return [
            {
                "user": _public_user(v.user),
                "message": v.body,
                "conversationId": v.conversation_id,
                "createdAt": v.created_at,
            }
            for v in views
        ]

    return router
