"""Completion markers in generated replies.

This is the only place that knows the literal marker strings; everything
downstream works with the typed AssistantReply.
"""

from dataclasses import dataclass

from ..models import Outcome

QUALIFIED_MARKER = "[LEAD_CUALIFICADO]"
NOT_INTERESTED_MARKER = "[LEAD_NO_INTERESADO]"

_MARKERS = (
    (QUALIFIED_MARKER, Outcome.QUALIFIED),
    (NOT_INTERESTED_MARKER, Outcome.REJECTED),
)


@dataclass
class AssistantReply:
    """Generated reply with markers removed and the outcome they signalled."""

    text: str
    outcome: Outcome = Outcome.ACTIVE


def parse_assistant_reply(raw: str) -> AssistantReply:
    """Strip the completion marker from a generated reply and type its outcome."""
    trimmed = raw.strip()
    for marker, outcome in _MARKERS:
        if marker in trimmed:
            return AssistantReply(text=trimmed.replace(marker, "").strip(), outcome=outcome)
    return AssistantReply(text=trimmed)
