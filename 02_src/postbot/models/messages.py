"""Inbound update and collaborator result models."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class InboundUpdate:
    """One parsed Telegram message. Never persisted."""

    sender_id: int
    chat_id: int
    text: str = ""


@dataclass(frozen=True)
class SendResult:
    """Outcome of a Message Sender call."""

    ok: bool
    error: str | None = None

    @classmethod
    def success(cls) -> "SendResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, error: str) -> "SendResult":
        return cls(ok=False, error=error)


@dataclass(frozen=True)
class PublishResult:
    """Outcome of a Content Publisher call."""

    ok: bool
    post_id: int | None = None
    permalink: str | None = None
    error: str | None = None

    @classmethod
    def success(cls, post_id: int, permalink: str) -> "PublishResult":
        return cls(ok=True, post_id=post_id, permalink=permalink)

    @classmethod
    def failure(cls, error: str) -> "PublishResult":
        return cls(ok=False, error=error)


@dataclass(frozen=True)
class OutboundMessage:
    """Text to send back plus optional Bot API fields (e.g. reply_markup)."""

    text: str
    extra: dict[str, Any] = field(default_factory=dict)
