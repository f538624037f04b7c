"""Storage module."""

from .cache import ConversationCache
from .storage import IStorage, Storage

__all__ = ["ConversationCache", "IStorage", "Storage"]
