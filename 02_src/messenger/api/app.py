"""FastAPI application setup."""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from ..app import Application
from ..config import cors_origins
from .routes import control, conversations, live, users


# Global application instance
_app: Application | None = None


def get_app() -> Application:
    """Get the global application instance."""
    global _app
    if not _app:
        _app = Application()
    return _app


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan."""
    # Startup
    application: Application = app.state.application
    await application.start()
    yield
    # Shutdown
    await application.stop()


def create_fastapi_app(application: Application | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    if application is None:
        application = get_app()

    fastapi_app = FastAPI(
        title="Messenger API",
        description="Direct messaging with live presence and delivery",
        version="0.1.0",
        lifespan=lifespan,
    )
    fastapi_app.state.application = application

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins(os.getenv("CORS_ORIGINS")),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @fastapi_app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return "Welcome"

    # Include routers
    fastapi_app.include_router(users.create_users_router(application))
    fastapi_app.include_router(conversations.create_conversations_router(application))
    fastapi_app.include_router(live.create_live_router(application))
    fastapi_app.include_router(control.create_control_router(application))

    return fastapi_app
