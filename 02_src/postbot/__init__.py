"""Telegram post bot."""

from .app import Application, IApplication
from .auth import AuthorizationGate, IAuthorizationGate
from .config import Settings
from .dialogue import Command, SessionEffect, Transition, classify, transition
from .dispatcher import DispatchResult, Dispatcher
from .errors import (
    AuthError,
    ConfigError,
    MalformedUpdate,
    PostBotError,
    PublishError,
    SendError,
)
from .messaging import IMessageSender, TelegramSender
from .models import (
    InboundUpdate,
    OutboundMessage,
    PublishedRecord,
    PublishResult,
    SendResult,
    Session,
    SessionKey,
    Stage,
    TraceEvent,
)
from .publishing import IContentPublisher, WordPressPublisher
from .storage import ISessionStore, IStorage, Storage
from .tracker import ITracker, Tracker

__all__ = [
    # Application
    "Application",
    "IApplication",
    "Settings",
    # Models
    "Stage",
    "Session",
    "SessionKey",
    "InboundUpdate",
    "OutboundMessage",
    "PublishedRecord",
    "PublishResult",
    "SendResult",
    "TraceEvent",
    # Errors
    "PostBotError",
    "ConfigError",
    "MalformedUpdate",
    "AuthError",
    "PublishError",
    "SendError",
    # Components
    "ISessionStore",
    "IStorage",
    "Storage",
    "IAuthorizationGate",
    "AuthorizationGate",
    "Command",
    "classify",
    "SessionEffect",
    "Transition",
    "transition",
    "Dispatcher",
    "DispatchResult",
    "IMessageSender",
    "TelegramSender",
    "IContentPublisher",
    "WordPressPublisher",
    "ITracker",
    "Tracker",
]
