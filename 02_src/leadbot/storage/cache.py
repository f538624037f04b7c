"""Process-local conversation cache.

Bounded LRU with a time-to-live per entry. Entries are hints only: callers
fall back to the durable store whenever an entry is missing or stale.
"""

import time
from collections import OrderedDict
from typing import Callable

from ..models import ConversationState


class ConversationCache:
    """LRU + TTL cache of conversation states keyed by chat identifier."""

    def __init__(
        self,
        ttl_seconds: float = 900.0,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, ConversationState]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, keys: list[str]) -> tuple[str, ConversationState] | None:
        """Return the first live entry among keys as (key, state)."""
        now = self._clock()
        for key in keys:
            entry = self._entries.get(key)
            if entry is None:
                continue
            expires_at, state = entry
            if expires_at <= now:
                del self._entries[key]
                continue
            self._entries.move_to_end(key)
            return key, state
        return None

    def put(self, state: ConversationState, keys: list[str]) -> None:
        """Store state under every given key."""
        expires_at = self._clock() + self._ttl
        for key in keys:
            self._entries[key] = (expires_at, state)
            self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def invalidate(self, keys: list[str]) -> None:
        for key in keys:
            self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
