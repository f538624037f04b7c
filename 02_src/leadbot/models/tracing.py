"""Tracing data models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class TraceEvent:
    """A pipeline milestone recorded for later inspection."""

    id: str
    event_type: str  # e.g. "message_buffered", "reply_sent"
    actor: str  # component that recorded it
    data: dict
    timestamp: datetime
