"""Tracing and observability data models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class TraceEvent:
    """A single audit event recorded while handling an update."""

    id: str
    event_type: str  # e.g. "update_received", "post_published"
    actor: str  # component that recorded it
    data: dict
    timestamp: datetime
