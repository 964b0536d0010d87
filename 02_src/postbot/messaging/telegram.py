"""Message sender backed by the Telegram Bot API."""

from typing import Any, Protocol

import httpx

from ..config import Settings
from ..errors import SendError
from ..logging_config import get_logger
from ..models import SendResult

logger = get_logger(__name__)


class IMessageSender(Protocol):
    """Delivers one text message to a chat."""

    async def send(
        self, chat_id: int, text: str, extra: dict[str, Any] | None = None
    ) -> SendResult:
        """Send ``text`` to ``chat_id``; ``extra`` is merged into the request as is."""
        ...


class TelegramSender:
    """Calls ``sendMessage`` over httpx. Failures come back as SendResult."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        self._token = settings.bot_token
        self._api_url = settings.telegram_api_url
        self._timeout = settings.http_timeout
        self._client = client
        self._owns_client = client is None

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)

    async def stop(self) -> None:
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def send(
        self, chat_id: int, text: str, extra: dict[str, Any] | None = None
    ) -> SendResult:
        if not self._token:
            return SendResult.failure("token missing")

        try:
            await self._send_message(chat_id, text, extra or {})
        except SendError as e:
            logger.error(
                "Failed to send message to chat %s: %s",
                chat_id,
                e.detail,
                extra={"chat_id": chat_id},
            )
            return SendResult.failure(e.detail)

        return SendResult.success()

    async def _send_message(self, chat_id: int, text: str, extra: dict[str, Any]) -> None:
        if self._client is None:
            await self.start()

        payload = {**extra, "chat_id": chat_id, "text": text}
        try:
            response = await self._client.post(
                f"{self._api_url}/bot{self._token}/sendMessage",
                json=payload,
                timeout=self._timeout,
            )
        except httpx.HTTPError as e:
            raise SendError(f"{type(e).__name__}: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.status_code != 200 or not body.get("ok", False):
            description = body.get("description") or f"HTTP {response.status_code}"
            raise SendError(description)
