"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from postbot.config import Settings  # noqa: E402
from postbot.models import InboundUpdate, PublishResult, SendResult  # noqa: E402

AUTHORIZED_USER = 12345
UNAUTHORIZED_USER = 67890
CHAT_ID = 123


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def settings():
    """Settings with a token and one authorized user."""
    return Settings(
        bot_token="123456:test-token",
        authorized_users=frozenset({AUTHORIZED_USER}),
        session_ttl=3600,
        wordpress_url="https://blog.example.com",
        wordpress_username="editor",
        wordpress_app_password="app-pass",
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
async def storage(clock):
    """Create in-memory storage for testing."""
    from postbot.storage import Storage

    st = Storage(":memory:", clock=clock)
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def tracker(storage):
    """Create Tracker with storage."""
    from postbot.tracker import Tracker

    return Tracker(storage=storage)


@pytest.fixture
def mock_sender():
    """Create mock message sender."""
    sender = Mock(spec=["send"])
    sender.send = AsyncMock(return_value=SendResult.success())
    return sender


@pytest.fixture
def mock_publisher():
    """Create mock content publisher."""
    publisher = Mock(spec=["publish"])
    publisher.publish = AsyncMock(
        return_value=PublishResult.success(
            post_id=42, permalink="https://blog.example.com/?p=42"
        )
    )
    return publisher


@pytest.fixture
def dispatcher(settings, storage, mock_sender, mock_publisher, tracker):
    """Create Dispatcher wired to in-memory storage and mocks."""
    from postbot.auth import AuthorizationGate
    from postbot.dispatcher import Dispatcher

    return Dispatcher(
        settings=settings,
        store=storage,
        gate=AuthorizationGate(settings.authorized_users),
        sender=mock_sender,
        publisher=mock_publisher,
        tracker=tracker,
    )


@pytest.fixture
def send_text(dispatcher):
    """Feed one text message from the authorized user through the dispatcher."""

    async def _send(text: str, user_id: int = AUTHORIZED_USER, chat_id: int = CHAT_ID):
        return await dispatcher.handle_update(
            InboundUpdate(sender_id=user_id, chat_id=chat_id, text=text)
        )

    return _send


@pytest.fixture
def session_key():
    from postbot.models import SessionKey

    return SessionKey.for_user(AUTHORIZED_USER)


def telegram_payload(
    text: str = "hello",
    user_id: int = AUTHORIZED_USER,
    chat_id: int = CHAT_ID,
) -> dict:
    """Minimal Telegram Update body."""
    return {
        "update_id": 1,
        "message": {
            "message_id": 10,
            "chat": {"id": chat_id, "type": "private"},
            "from": {"id": user_id, "is_bot": False, "first_name": "Test"},
            "text": text,
        },
    }


@pytest.fixture
def make_payload():
    return telegram_payload
