"""Inbound webhook payload normalization."""

import math
import time
from typing import Any

from ..logging_config import get_logger
from ..models import InboundMessage

logger = get_logger(__name__)

# Numeric timestamps below this are seconds, at or above it milliseconds
MILLIS_THRESHOLD = 10**12


def now_millis() -> int:
    return int(time.time() * 1000)


def ensure_timestamp_millis(value: Any) -> int:
    """
    Convert a webhook timestamp to epoch milliseconds.

    Values below MILLIS_THRESHOLD are treated as seconds. Anything that does
    not parse to a finite number falls back to the current time.
    """
    if isinstance(value, bool) or value is None:
        return now_millis()

    try:
        if isinstance(value, (int, float)):
            number = float(value)
        else:
            number = float(str(value).strip())
    except (ValueError, OverflowError):
        return now_millis()

    if not math.isfinite(number):
        return now_millis()

    if number < MILLIS_THRESHOLD:
        return int(number * 1000)
    return int(number)


def _first_string(raw: dict, *keys: str) -> str:
    for key in keys:
        value = raw.get(key)
        if isinstance(value, str):
            return value
    return ""


def _extract_text(raw: dict) -> str:
    text = raw.get("text")
    if isinstance(text, str):
        return text
    if isinstance(text, dict) and isinstance(text.get("body"), str):
        return text["body"]
    body = raw.get("body")
    return body if isinstance(body, str) else ""


def _raw_entries(body: Any) -> list:
    if not isinstance(body, dict):
        return []
    messages = body.get("messages")
    if isinstance(messages, list):
        return messages
    single = body.get("message")
    if isinstance(single, dict):
        return [single]
    if isinstance(single, list):
        return single
    return []


def extract_inbound_messages(body: Any) -> list[InboundMessage]:
    """Parse a webhook body into inbound messages. Malformed entries are dropped."""
    result: list[InboundMessage] = []

    for raw in _raw_entries(body):
        if not isinstance(raw, dict):
            continue
        if raw.get("from_me") is True:
            continue

        conversation_id = _first_string(raw, "chat_id", "chatId")
        text = _extract_text(raw)
        if not conversation_id or not text:
            logger.debug("Dropping inbound entry without chat id or text")
            continue

        result.append(
            InboundMessage(
                conversation_id=conversation_id,
                sender_address=_first_string(raw, "from", "sender"),
                text=text,
                timestamp_ms=ensure_timestamp_millis(raw.get("timestamp")),
            )
        )

    return result


def group_by_conversation(
    messages: list[InboundMessage],
) -> dict[str, list[InboundMessage]]:
    """Group messages by conversation id, keeping arrival order within each group."""
    groups: dict[str, list[InboundMessage]] = {}
    for message in messages:
        groups.setdefault(message.conversation_id, []).append(message)
    return groups
