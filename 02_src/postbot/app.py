"""Application bootstrap and lifecycle management."""

import os
from typing import Protocol

from .auth import AuthorizationGate
from .config import Settings, resolve_db_path
from .dispatcher import Dispatcher
from .logging_config import get_logger
from .messaging import IMessageSender, TelegramSender
from .publishing import IContentPublisher, WordPressPublisher
from .storage import IStorage, Storage
from .tracker import ITracker, Tracker

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Drop all sessions and trace events."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        settings: Settings | None = None,
        db_path: str | None = None,
        sender: IMessageSender | None = None,
        publisher: IContentPublisher | None = None,
    ):
        self._settings = settings or Settings.from_env()
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)

        # Collaborators may be injected; otherwise built in start()
        self._sender = sender
        self._publisher = publisher

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._tracker: ITracker | None = None
        self._dispatcher: Dispatcher | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        if not self._settings.has_bot_token:
            logger.warning("TELEGRAM_BOT_TOKEN is not set; webhook will answer 400")
        if not self._settings.authorized_users:
            logger.warning("TELEGRAM_AUTHORIZED_USERS is empty; every user is rejected")

        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        purged = await self._storage.purge_expired_sessions()
        logger.info("Storage initialized, %d expired sessions purged", purged)

        # 2. Tracker (depends on Storage)
        self._tracker = Tracker(self._storage)

        # 3. Outbound collaborators (no internal dependencies)
        if self._sender is None:
            self._sender = TelegramSender(self._settings)
        if self._publisher is None:
            self._publisher = WordPressPublisher(self._settings)
        for component in (self._sender, self._publisher):
            if hasattr(component, "start"):
                await component.start()

        # 4. Dispatcher (depends on everything above)
        self._dispatcher = Dispatcher(
            settings=self._settings,
            store=self._storage,
            gate=AuthorizationGate(self._settings.authorized_users),
            sender=self._sender,
            publisher=self._publisher,
            tracker=self._tracker,
        )
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        self._dispatcher = None
        for component in (self._publisher, self._sender):
            if component is not None and hasattr(component, "stop"):
                await component.stop()
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Drop all sessions and trace events."""
        if self._storage:
            await self._storage.clear()
            logger.info("Storage cleared")

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def dispatcher(self) -> Dispatcher:
        """Get dispatcher instance."""
        if not self._dispatcher:
            raise RuntimeError("Application not started")
        return self._dispatcher
