"""User directory API routes."""

from pydantic import BaseModel, Field
from fastapi import APIRouter, HTTPException

from ...app import IApplication
from ...logging_config import get_logger
from ...models import UserProfile

logger = get_logger(__name__)


class UserProfileRequest(BaseModel):
    """Request model for publishing a public profile."""

    username: str = Field(min_length=1)
    email: str = Field(min_length=1)


class UserProfileResponse(BaseModel):
    """Response model for a public profile."""

    id: str
    username: str
    email: str


def create_users_router(app: IApplication) -> APIRouter:
    """Create users router."""
    router = APIRouter(prefix="/api/users", tags=["users"])

    @router.get("", response_model=list[UserProfileResponse])
    async def list_users() -> list[dict]:
        """List every known public profile."""
        try:
            users = await app.storage.list_users()
        except Exception:
            logger.exception("Error retrieving users")
            raise HTTPException(
                status_code=500, detail="An error occurred while retrieving users"
            )

        return [{"id": u.id, "username": u.username, "email": u.email} for u in users]

    @router.put("/{user_id}", response_model=UserProfileResponse)
    async def put_user(user_id: str, request: UserProfileRequest) -> dict:
        """Publish or refresh a public profile (identity service hook)."""
        user = UserProfile(id=user_id, username=request.username, email=request.email)
        try:
            await app.storage.save_user(user)
        except Exception:
            logger.exception("Error saving user %s", user_id)
            raise HTTPException(status_code=500, detail="Failed to save user")

        return {"id": user.id, "username": user.username, "email": user.email}

    return router
