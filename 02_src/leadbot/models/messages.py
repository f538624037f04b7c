"""Message-related data models."""

from dataclasses import dataclass
from typing import Literal


@dataclass
class InboundMessage:
    """A single inbound chat message extracted from a webhook payload."""

    conversation_id: str
    sender_address: str
    text: str
    timestamp_ms: int


@dataclass
class PendingMessage:
    """An inbound text waiting in the buffer for the next drain."""

    text: str
    timestamp_ms: int


@dataclass
class HistoryItem:
    """A single turn in a conversation history."""

    role: Literal["assistant", "user"]
    text: str
    timestamp_ms: int

    def to_dict(self) -> dict:
        return {"role": self.role, "text": self.text, "timestamp": self.timestamp_ms}

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryItem":
        return cls(
            role=data["role"],
            text=data.get("text", ""),
            timestamp_ms=int(data.get("timestamp", 0)),
        )
