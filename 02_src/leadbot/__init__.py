"""Lead qualifier core."""

from .app import Application, IApplication
from .dispatch import SideEffectDispatcher
from .ingress import ChatIdentityResolver, extract_inbound_messages
from .llm import ILLMProvider, LLMProvider, TextGenerator
from .messaging import IMessageSender, SendError, WhapiSender
from .models import (
    ConversationState,
    HistoryItem,
    InboundMessage,
    Lead,
    Listing,
    Outcome,
    PendingMessage,
    TraceEvent,
)
from .pipeline import ConversationPipeline
from .scheduling import AsyncioTaskQueue, DebounceScheduler, ITaskQueue
from .storage import ConversationCache, IStorage, Storage
from .tracker import ITracker, Tracker

__all__ = [
    # Application
    "Application",
    "IApplication",
    "ConversationPipeline",
    # Models
    "ConversationState",
    "HistoryItem",
    "InboundMessage",
    "Lead",
    "Listing",
    "Outcome",
    "PendingMessage",
    "TraceEvent",
    # Components
    "ChatIdentityResolver",
    "extract_inbound_messages",
    "IStorage",
    "Storage",
    "ConversationCache",
    "ITaskQueue",
    "AsyncioTaskQueue",
    "DebounceScheduler",
    "ITracker",
    "Tracker",
    "ILLMProvider",
    "LLMProvider",
    "TextGenerator",
    "IMessageSender",
    "SendError",
    "WhapiSender",
    "SideEffectDispatcher",
]
