"""Dialogue module: command classification and the state machine."""

from .classifier import Command, classify, command_name
from .machine import SessionEffect, Transition, parse_tags, transition

__all__ = [
    "Command",
    "classify",
    "command_name",
    "SessionEffect",
    "Transition",
    "parse_tags",
    "transition",
]
