"""Dispatcher module."""

from .dispatcher import DispatchResult, Dispatcher

__all__ = ["DispatchResult", "Dispatcher"]
