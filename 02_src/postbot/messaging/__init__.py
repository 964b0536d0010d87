"""Messaging module."""

from .telegram import IMessageSender, TelegramSender

__all__ = ["IMessageSender", "TelegramSender"]
