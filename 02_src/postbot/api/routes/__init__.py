"""API routes."""

from .observability import create_observability_router
from .webhook import create_webhook_router

__all__ = ["create_observability_router", "create_webhook_router"]
