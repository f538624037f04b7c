"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..app import Application
from .routes import buffer, conversations, observability, webhook


# Global application instance
_app: Application | None = None


def get_app() -> Application:
    """Get the global application instance."""
    global _app
    if not _app:
        _app = Application()
    return _app


def create_fastapi_app(application: Application | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    application = application or get_app()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifespan."""
        await application.start()
        yield
        await application.stop()

    fastapi_app = FastAPI(
        title="Lead Qualifier API",
        description="Inbound lead qualification over WhatsApp",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Include routers
    fastapi_app.include_router(webhook.create_webhook_router(application))
    fastapi_app.include_router(buffer.create_buffer_router(application))
    fastapi_app.include_router(conversations.create_conversations_router(application))
    fastapi_app.include_router(observability.create_observability_router(application))

    return fastapi_app
