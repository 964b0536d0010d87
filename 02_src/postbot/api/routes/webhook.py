"""Telegram webhook route."""

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ...app import Application
from ...errors import PostBotError
from ...logging_config import get_logger

logger = get_logger(__name__)


class WebhookResponse(BaseModel):
    """Acknowledgement body returned to Telegram."""

    message: str


def create_webhook_router(app: Application) -> APIRouter:
    """Create webhook router."""
    router = APIRouter(prefix="/telegram/v1", tags=["webhook"])

    @router.post("/webhook", response_model=WebhookResponse)
    async def receive_update(request: Request) -> JSONResponse:
        """Handle one Telegram update.

        Business failures (such as a rejected post) are reported to the user
        in the chat and still acknowledged with 200.
        """
        try:
            payload = await request.json()
        except ValueError:
            payload = None

        try:
            result = await app.dispatcher.handle_payload(payload)
        except PostBotError as e:
            return JSONResponse(
                status_code=e.status_code, content={"message": e.public_message}
            )
        except Exception as e:
            logger.error("Unhandled error in webhook: %s", e, exc_info=True)
            raise HTTPException(status_code=500, detail=str(e))

        return JSONResponse(
            status_code=result.status_code, content={"message": result.message}
        )

    return router
