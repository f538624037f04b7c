"""Chat identity resolution for WhatsApp chat identifiers."""

import time
from collections import OrderedDict
from typing import Callable

# The gateway reports one personal chat under either suffix
CANONICAL_SUFFIX = "@s.whatsapp.net"
LEGACY_SUFFIX = "@c.us"
_SUFFIXES = (CANONICAL_SUFFIX, LEGACY_SUFFIX)


class ChatIdentityResolver:
    """Knows every identifier form of a chat and which form was last found.

    Resolved forms are remembered in a bounded LRU with a time-to-live, the
    same bounds as the conversation cache.
    """

    def __init__(
        self,
        ttl_seconds: float = 900.0,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._resolved: OrderedDict[str, tuple[float, str]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._resolved)

    @staticmethod
    def _split(chat_id: str) -> tuple[str, str] | None:
        for suffix in _SUFFIXES:
            if chat_id.endswith(suffix):
                return chat_id[: -len(suffix)], suffix
        return None

    def canonical(self, chat_id: str) -> str:
        """Return the canonical form of a chat identifier."""
        chat_id = chat_id.strip()
        parts = self._split(chat_id)
        if parts is None:
            return chat_id
        return parts[0] + CANONICAL_SUFFIX

    def alternates(self, chat_id: str) -> list[str]:
        """All known forms, canonical first."""
        chat_id = chat_id.strip()
        parts = self._split(chat_id)
        if parts is None:
            return [chat_id]
        return [parts[0] + suffix for suffix in _SUFFIXES]

    def _lookup(self, chat_id: str) -> str | None:
        entry = self._resolved.get(chat_id)
        if entry is None:
            return None
        expires_at, resolved = entry
        if expires_at <= self._clock():
            del self._resolved[chat_id]
            return None
        self._resolved.move_to_end(chat_id)
        return resolved

    def candidates(self, chat_id: str) -> list[str]:
        """Lookup order: a previously resolved form first, then every alternate."""
        forms = self.alternates(chat_id)
        resolved = self._lookup(chat_id.strip())
        if resolved is None:
            return forms
        return [resolved] + [form for form in forms if form != resolved]

    def remember(self, chat_id: str, resolved: str) -> None:
        """Record the form under which a chat was found, for every alternate."""
        expires_at = self._clock() + self._ttl
        for form in self.alternates(chat_id):
            self._resolved[form] = (expires_at, resolved)
            self._resolved.move_to_end(form)
        while len(self._resolved) > self._max_entries:
            self._resolved.popitem(last=False)

    def clear(self) -> None:
        self._resolved.clear()
