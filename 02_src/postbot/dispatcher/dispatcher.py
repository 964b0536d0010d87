"""Dispatcher: the single entry point for inbound webhook updates."""

import asyncio
from dataclasses import dataclass
from typing import Any
from weakref import WeakValueDictionary

from pydantic import ValidationError

from ..auth import IAuthorizationGate
from ..config import Settings
from ..dialogue import SessionEffect, classify, transition
from ..dialogue import prompts
from ..dialogue.machine import STATUS_PUBLISH_FAILED, STATUS_PUBLISHED
from ..errors import AuthError, ConfigError, MalformedUpdate
from ..logging_config import get_logger
from ..messaging import IMessageSender
from ..models import (
    InboundUpdate,
    OutboundMessage,
    PublishedRecord,
    PublishResult,
    Session,
    SessionKey,
    TelegramUpdate,
)
from ..publishing import IContentPublisher
from ..storage import ISessionStore
from ..tracker import ITracker

logger = get_logger(__name__)

ACTOR = "dispatcher"


@dataclass(frozen=True)
class DispatchResult:
    """Acknowledgement returned to the webhook caller."""

    status_code: int
    message: str


class Dispatcher:
    """Runs one update through the gate, classifier and state machine.

    Every handled update produces exactly one reply to the user. The
    load-transition-store sequence of a user runs under that user's lock,
    so duplicate deliveries of the same update are applied one after the
    other rather than interleaved.
    """

    def __init__(
        self,
        settings: Settings,
        store: ISessionStore,
        gate: IAuthorizationGate,
        sender: IMessageSender,
        publisher: IContentPublisher,
        tracker: ITracker,
    ):
        self._settings = settings
        self._store = store
        self._gate = gate
        self._sender = sender
        self._publisher = publisher
        self._tracker = tracker
        self._locks: WeakValueDictionary[SessionKey, asyncio.Lock] = (
            WeakValueDictionary()
        )

    async def handle_payload(self, payload: Any) -> DispatchResult:
        """Handle a raw Telegram ``Update`` body."""
        self._require_token()
        return await self.handle_update(self.parse_update(payload))

    @staticmethod
    def parse_update(payload: Any) -> InboundUpdate:
        """Extract sender, chat and text; raise MalformedUpdate without a message."""
        if not isinstance(payload, dict):
            raise MalformedUpdate()
        try:
            update = TelegramUpdate.model_validate(payload)
        except ValidationError as e:
            logger.warning("Rejecting malformed update: %s", e.error_count())
            raise MalformedUpdate() from e

        if update.message is None:
            raise MalformedUpdate()

        return InboundUpdate(
            sender_id=update.message.from_user.id,
            chat_id=update.message.chat.id,
            text=update.message.text or "",
        )

    async def handle_update(self, update: InboundUpdate) -> DispatchResult:
        """Handle one parsed update."""
        self._require_token()

        await self._tracker.track(
            event_type="update_received",
            actor=ACTOR,
            data={"user_id": update.sender_id, "chat_id": update.chat_id},
        )

        if not self._gate.is_authorized(update.sender_id):
            logger.warning(
                "Unauthorized user %s",
                update.sender_id,
                extra={"user_id": update.sender_id},
            )
            await self._tracker.track(
                event_type="update_rejected",
                actor=ACTOR,
                data={"user_id": update.sender_id, "reason": "unauthorized"},
            )
            await self._reply(update.chat_id, OutboundMessage(prompts.UNAUTHORIZED))
            raise AuthError()

        key = SessionKey.for_user(update.sender_id)
        async with self._lock_for(key):
            session = await self._store.get_session(key)
            command = classify(update.text, session, self._settings.allow_tag_skip)
            step = transition(
                session, command, update.text, self._settings.allow_tag_skip
            )
            logger.debug(
                "User %s: %s -> %s",
                update.sender_id,
                command.value,
                step.effect.value,
                extra={"user_id": update.sender_id},
            )

            if step.effect is SessionEffect.PUBLISH:
                return await self._publish(key, update, step.session)

            if step.effect is SessionEffect.SAVE:
                await self._store.put_session(
                    key, step.session, self._settings.session_ttl
                )
                await self._tracker.track(
                    event_type="session_saved",
                    actor=ACTOR,
                    data={"user_id": key.user_id, "stage": step.session.stage.value},
                )
            elif step.effect is SessionEffect.DELETE:
                await self._store.delete_session(key)
                await self._tracker.track(
                    event_type="session_deleted",
                    actor=ACTOR,
                    data={"user_id": key.user_id, "reason": command.value},
                )

        await self._reply(update.chat_id, step.reply)
        return DispatchResult(status_code=200, message=step.status)

    async def _publish(
        self, key: SessionKey, update: InboundUpdate, session: Session
    ) -> DispatchResult:
        record = PublishedRecord.from_session(session)
        try:
            result = await self._publisher.publish(record)
        except Exception as e:
            logger.error(
                "Publisher raised for user %s: %s",
                key.user_id,
                e,
                exc_info=True,
                extra={"user_id": key.user_id},
            )
            result = PublishResult.failure(prompts.PUBLISHER_UNAVAILABLE)

        if not result.ok:
            # The session stays so the user can retry with "publish"
            await self._tracker.track(
                event_type="publish_failed",
                actor=ACTOR,
                data={"user_id": key.user_id, "reason": result.error},
            )
            await self._reply(
                update.chat_id,
                OutboundMessage(prompts.PUBLISH_FAILED.format(reason=result.error)),
            )
            return DispatchResult(status_code=200, message=STATUS_PUBLISH_FAILED)

        await self._store.delete_session(key)
        await self._tracker.track(
            event_type="post_published",
            actor=ACTOR,
            data={
                "user_id": key.user_id,
                "post_id": result.post_id,
                "permalink": result.permalink,
            },
        )
        logger.info(
            "User %s published post %s",
            key.user_id,
            result.post_id,
            extra={"user_id": key.user_id},
        )
        await self._reply(
            update.chat_id,
            OutboundMessage(prompts.PUBLISHED.format(permalink=result.permalink)),
        )
        return DispatchResult(status_code=200, message=STATUS_PUBLISHED)

    async def _reply(self, chat_id: int, message: OutboundMessage) -> None:
        """Send a reply; delivery problems are logged, never raised."""
        try:
            result = await self._sender.send(chat_id, message.text, message.extra or None)
        except Exception as e:
            logger.error(
                "Sender raised for chat %s: %s", chat_id, e, exc_info=True
            )
            return

        if not result.ok:
            logger.warning(
                "Reply to chat %s not delivered: %s",
                chat_id,
                result.error,
                extra={"chat_id": chat_id},
            )
            await self._tracker.track(
                event_type="message_send_failed",
                actor=ACTOR,
                data={"chat_id": chat_id, "error": result.error},
            )

    def _lock_for(self, key: SessionKey) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def _require_token(self) -> None:
        if not self._settings.has_bot_token:
            raise ConfigError()
