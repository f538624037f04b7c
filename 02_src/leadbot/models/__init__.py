"""Core data models for the lead qualifier."""

from .conversation import ConversationState, DialogueContext, OperationKind, Outcome
from .leads import (
    BotConfig,
    BotStyle,
    Lead,
    LeadStatus,
    LeadSummary,
    Listing,
    QualifiedLead,
)
from .messages import HistoryItem, InboundMessage, PendingMessage
from .tracing import TraceEvent

__all__ = [
    # Messages
    "InboundMessage",
    "PendingMessage",
    "HistoryItem",
    # Conversation
    "ConversationState",
    "DialogueContext",
    "OperationKind",
    "Outcome",
    # Leads
    "Lead",
    "LeadStatus",
    "LeadSummary",
    "Listing",
    "QualifiedLead",
    "BotConfig",
    "BotStyle",
    # Tracing
    "TraceEvent",
]
