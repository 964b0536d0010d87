"""Tests for Dispatcher."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from postbot.dialogue import prompts
from postbot.errors import AuthError, ConfigError, MalformedUpdate
from postbot.models import (
    InboundUpdate,
    PublishedRecord,
    PublishResult,
    SendResult,
    Session,
    Stage,
)

from conftest import AUTHORIZED_USER, CHAT_ID, UNAUTHORIZED_USER

FULL_FLOW = ["/start", "/post", "My Title", "t1, t2", "News", "Body text"]


def sent_texts(mock_sender) -> list[str]:
    return [call.args[1] for call in mock_sender.send.call_args_list]


class TestDispatcherFlow:
    """End-to-end dialogue through the dispatcher."""

    async def test_full_flow_publishes_once(
        self, send_text, mock_publisher, storage, session_key
    ):
        """Test /start -> /post -> fields -> publish creates exactly one post."""
        for text in FULL_FLOW:
            result = await send_text(text)
            assert result.status_code == 200

        result = await send_text("publish")

        assert result.status_code == 200
        assert result.message == "Post submitted and session ended"
        mock_publisher.publish.assert_awaited_once_with(
            PublishedRecord(
                title="My Title",
                tags=["t1", "t2"],
                category="News",
                content="Body text",
            )
        )
        assert await storage.get_session(session_key) is None

    async def test_one_reply_per_update(self, send_text, mock_sender):
        """Test that every update produces exactly one outbound message."""
        for text in FULL_FLOW + ["publish"]:
            await send_text(text)

        assert mock_sender.send.await_count == len(FULL_FLOW) + 1
        assert sent_texts(mock_sender) == [
            prompts.WELCOME,
            prompts.SEND_TITLE,
            prompts.SEND_TAGS,
            prompts.SEND_CATEGORY,
            prompts.SEND_CONTENT,
            prompts.CONFIRM_PUBLISH,
            prompts.PUBLISHED.format(permalink="https://blog.example.com/?p=42"),
        ]

    async def test_replies_go_to_chat(self, send_text, mock_sender):
        await send_text("/start", chat_id=555)
        assert mock_sender.send.call_args.args[0] == 555

    async def test_start_sends_menu_keyboard(self, send_text, mock_sender):
        result = await send_text("/start")

        assert result.message == "Session started"
        chat_id, text, extra = mock_sender.send.call_args.args
        assert chat_id == CHAT_ID
        assert text == prompts.WELCOME
        assert extra == {"reply_markup": prompts.MENU_KEYBOARD}

    async def test_session_progresses_in_store(self, send_text, storage, session_key):
        await send_text("/post")
        await send_text("My Title")

        stored = await storage.get_session(session_key)
        assert stored.stage is Stage.AWAITING_TAGS
        assert stored.title == "My Title"

    async def test_endsession_deletes_session(self, send_text, storage, session_key):
        await send_text("/post")
        await send_text("My Title")

        result = await send_text("/endsession")

        assert result.message == "Session ended"
        assert await storage.get_session(session_key) is None

    async def test_global_commands_are_idempotent(self, send_text, storage, session_key):
        await send_text("/post")
        await send_text("/endsession")
        await send_text("/endsession")
        assert await storage.get_session(session_key) is None

        await send_text("/start")
        first = await storage.get_session(session_key)
        await send_text("/start")
        assert await storage.get_session(session_key) == first == Session()

    async def test_plain_text_without_session_is_ignored(
        self, send_text, storage, session_key, mock_sender
    ):
        result = await send_text("hello")

        assert result.status_code == 200
        assert await storage.get_session(session_key) is None
        assert sent_texts(mock_sender) == [prompts.NO_ACTIVE_SESSION]

    async def test_invalid_confirmation_keeps_session(
        self, send_text, storage, session_key, mock_publisher, mock_sender
    ):
        for text in FULL_FLOW:
            await send_text(text)

        await send_text("maybe later")

        stored = await storage.get_session(session_key)
        assert stored.stage is Stage.AWAITING_PUBLISH_CONFIRMATION
        mock_publisher.publish.assert_not_awaited()
        assert sent_texts(mock_sender)[-1] == prompts.INVALID_CONFIRMATION

    async def test_mid_flow_post_keeps_fields(self, send_text, storage, session_key):
        await send_text("/post")
        await send_text("My Title")

        await send_text("/post")

        stored = await storage.get_session(session_key)
        assert stored.stage is Stage.AWAITING_TAGS
        assert stored.title == "My Title"

    async def test_expired_session_behaves_as_absent(
        self, send_text, clock, settings, mock_sender
    ):
        for text in FULL_FLOW:
            await send_text(text)
        clock.advance(settings.session_ttl + 1)

        await send_text("publish")

        assert sent_texts(mock_sender)[-1] == prompts.NO_ACTIVE_SESSION


class TestDispatcherPublishFailure:
    """Tests for a failing content publisher."""

    async def test_failure_keeps_session(
        self, send_text, mock_publisher, mock_sender, storage, session_key
    ):
        """Test that the collected post survives a failed publish."""
        mock_publisher.publish.return_value = PublishResult.failure("db down")
        for text in FULL_FLOW:
            await send_text(text)

        result = await send_text("publish")

        assert result.status_code == 200
        assert result.message == "Post submission failed"
        stored = await storage.get_session(session_key)
        assert stored == Session(
            stage=Stage.AWAITING_PUBLISH_CONFIRMATION,
            title="My Title",
            tags=("t1", "t2"),
            category="News",
            content="Body text",
        )
        failures = [
            t for t in sent_texts(mock_sender) if t.startswith("Error creating post")
        ]
        assert failures == [prompts.PUBLISH_FAILED.format(reason="db down")]

    async def test_retry_after_failure(self, send_text, mock_publisher, storage, session_key):
        mock_publisher.publish.return_value = PublishResult.failure("db down")
        for text in FULL_FLOW:
            await send_text(text)
        await send_text("publish")

        mock_publisher.publish.return_value = PublishResult.success(1, "https://x/?p=1")
        result = await send_text("publish")

        assert result.message == "Post submitted and session ended"
        assert mock_publisher.publish.await_count == 2
        assert await storage.get_session(session_key) is None

    async def test_publisher_exception_is_contained(
        self, send_text, mock_publisher, storage, session_key
    ):
        mock_publisher.publish.side_effect = RuntimeError("boom")
        for text in FULL_FLOW:
            await send_text(text)

        result = await send_text("publish")

        assert result.status_code == 200
        assert result.message == "Post submission failed"
        assert await storage.get_session(session_key) is not None

    async def test_publisher_exception_text_stays_out_of_chat(
        self, send_text, mock_publisher, mock_sender
    ):
        mock_publisher.publish.side_effect = KeyError("id")
        for text in FULL_FLOW:
            await send_text(text)

        await send_text("publish")

        assert sent_texts(mock_sender)[-1] == prompts.PUBLISH_FAILED.format(
            reason=prompts.PUBLISHER_UNAVAILABLE
        )
        assert "'id'" not in sent_texts(mock_sender)[-1]

    async def test_failure_is_traced(self, send_text, mock_publisher, storage):
        mock_publisher.publish.return_value = PublishResult.failure("db down")
        for text in FULL_FLOW + ["publish"]:
            await send_text(text)

        events = await storage.get_trace_events(event_types=["publish_failed"])
        assert len(events) == 1
        assert events[0].data["reason"] == "db down"


class TestDispatcherReplay:
    """Tests for duplicate deliveries."""

    async def test_duplicate_publish_publishes_once(
        self, send_text, mock_publisher, mock_sender
    ):
        for text in FULL_FLOW:
            await send_text(text)

        await send_text("publish")
        await send_text("publish")

        mock_publisher.publish.assert_awaited_once()
        assert sent_texts(mock_sender)[-1] == prompts.NO_ACTIVE_SESSION

    async def test_concurrent_duplicate_publish_publishes_once(
        self, send_text, mock_publisher
    ):
        """Test that the per-user lock serialises simultaneous deliveries."""
        for text in FULL_FLOW:
            await send_text(text)

        async def slow_publish(record):
            await asyncio.sleep(0.01)
            return PublishResult.success(post_id=42, permalink="https://x/?p=42")

        mock_publisher.publish.side_effect = slow_publish

        results = await asyncio.gather(send_text("publish"), send_text("publish"))

        mock_publisher.publish.assert_awaited_once()
        assert {r.status_code for r in results} == {200}

    async def test_concurrent_field_inputs_apply_in_turn(
        self, send_text, storage, session_key
    ):
        await send_text("/post")

        await asyncio.gather(send_text("My Title"), send_text("a, b"))

        # Both inputs applied, one after the other; neither was lost
        stored = await storage.get_session(session_key)
        assert stored.stage is Stage.AWAITING_CATEGORY
        assert stored.title in {"My Title", "a, b"}
        assert stored.tags in {("My Title",), ("a", "b")}


class TestDispatcherAuthorization:
    """Tests for unauthorized senders."""

    @pytest.mark.parametrize("text", ["/start", "/post", "/endsession", "publish", "hi"])
    async def test_unauthorized_never_touches_sessions(
        self, dispatcher, storage, mock_sender, text
    ):
        store_spy = AsyncMock(wraps=storage.get_session)
        storage.get_session = store_spy

        with pytest.raises(AuthError):
            await dispatcher.handle_update(
                InboundUpdate(sender_id=UNAUTHORIZED_USER, chat_id=CHAT_ID, text=text)
            )

        store_spy.assert_not_awaited()
        mock_sender.send.assert_awaited_once_with(CHAT_ID, prompts.UNAUTHORIZED, None)

    async def test_unauthorized_does_not_disturb_other_sessions(
        self, dispatcher, send_text, storage, session_key
    ):
        await send_text("/post")

        with pytest.raises(AuthError):
            await dispatcher.handle_update(
                InboundUpdate(sender_id=UNAUTHORIZED_USER, chat_id=CHAT_ID, text="/endsession")
            )

        assert (await storage.get_session(session_key)).stage is Stage.AWAITING_TITLE

    async def test_rejection_is_traced(self, dispatcher, storage):
        with pytest.raises(AuthError):
            await dispatcher.handle_update(
                InboundUpdate(sender_id=UNAUTHORIZED_USER, chat_id=CHAT_ID, text="/start")
            )

        events = await storage.get_trace_events(event_types=["update_rejected"])
        assert events[0].data["user_id"] == UNAUTHORIZED_USER


class TestDispatcherErrors:
    """Tests for configuration and payload errors."""

    async def test_missing_token(self, dispatcher, settings, mock_sender, make_payload):
        dispatcher._settings = type(settings)(
            bot_token="", authorized_users=settings.authorized_users
        )

        with pytest.raises(ConfigError):
            await dispatcher.handle_payload(make_payload("/start"))

        mock_sender.send.assert_not_awaited()

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            [],
            {},
            {"update_id": 1},
            {"update_id": 1, "edited_message": {"text": "x"}},
            {"message": {"chat": {"id": 1}, "text": "no sender"}},
        ],
    )
    async def test_malformed_payload(self, dispatcher, mock_sender, storage, payload):
        with pytest.raises(MalformedUpdate):
            await dispatcher.handle_payload(payload)

        mock_sender.send.assert_not_awaited()

    async def test_handle_payload_parses_message(self, dispatcher, make_payload, mock_sender):
        result = await dispatcher.handle_payload(make_payload("/start"))

        assert result.status_code == 200
        assert mock_sender.send.call_args.args[0] == CHAT_ID

    def test_parse_update_without_text(self, dispatcher, make_payload):
        payload = make_payload()
        del payload["message"]["text"]

        update = dispatcher.parse_update(payload)

        assert update == InboundUpdate(sender_id=AUTHORIZED_USER, chat_id=CHAT_ID, text="")


class TestDispatcherSendFailure:
    """Tests for a failing message sender."""

    async def test_send_failure_is_swallowed(self, send_text, mock_sender, storage, session_key):
        mock_sender.send.return_value = SendResult.failure("Forbidden: bot was blocked")

        result = await send_text("/post")

        assert result.status_code == 200
        assert (await storage.get_session(session_key)).stage is Stage.AWAITING_TITLE
        events = await storage.get_trace_events(event_types=["message_send_failed"])
        assert len(events) == 1

    async def test_sender_exception_is_swallowed(self, send_text, mock_sender):
        mock_sender.send.side_effect = RuntimeError("network")

        result = await send_text("/start")

        assert result.status_code == 200
