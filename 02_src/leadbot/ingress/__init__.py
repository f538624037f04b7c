"""Ingress module."""

from .identity import ChatIdentityResolver
from .normalizer import (
    MILLIS_THRESHOLD,
    ensure_timestamp_millis,
    extract_inbound_messages,
    group_by_conversation,
    now_millis,
)

__all__ = [
    "ChatIdentityResolver",
    "MILLIS_THRESHOLD",
    "ensure_timestamp_millis",
    "extract_inbound_messages",
    "group_by_conversation",
    "now_millis",
]
