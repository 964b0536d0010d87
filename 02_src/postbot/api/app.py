"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..app import Application
from .routes import create_observability_router, create_webhook_router


def create_fastapi_app(application: Application | None = None) -> FastAPI:
    """Create and configure FastAPI application.

    The lifespan starts and stops ``application``. Transports that skip
    lifespan events (such as httpx's ASGITransport) need it started by hand.
    """
    application = application or Application()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifespan."""
        await application.start()
        yield
        await application.stop()

    fastapi_app = FastAPI(
        title="Telegram Post Bot",
        description="Telegram webhook that drafts WordPress posts",
        version="0.1.0",
        lifespan=lifespan,
    )
    fastapi_app.state.application = application

    fastapi_app.include_router(create_webhook_router(application))
    fastapi_app.include_router(create_observability_router(application))

    return fastapi_app
