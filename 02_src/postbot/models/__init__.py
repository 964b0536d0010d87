"""Data models for the post bot."""

from .messages import InboundUpdate, OutboundMessage, PublishResult, SendResult
from .session import (
    SESSION_NAMESPACE,
    STAGE_FIELDS,
    PublishedRecord,
    Session,
    SessionKey,
    Stage,
    next_stage,
)
from .telegram import TelegramChat, TelegramMessage, TelegramUpdate, TelegramUser
from .tracing import TraceEvent

__all__ = [
    # Session
    "SESSION_NAMESPACE",
    "STAGE_FIELDS",
    "Stage",
    "Session",
    "SessionKey",
    "PublishedRecord",
    "next_stage",
    # Messages
    "InboundUpdate",
    "OutboundMessage",
    "SendResult",
    "PublishResult",
    # Telegram
    "TelegramUpdate",
    "TelegramMessage",
    "TelegramChat",
    "TelegramUser",
    # Tracing
    "TraceEvent",
]
