"""Dispatch module."""

from .dispatcher import (
    NO_DATA_LABEL,
    SideEffectDispatcher,
    build_qualified_lead_message,
    pick_summary_value,
    sanitize_summary_value,
)

__all__ = [
    "NO_DATA_LABEL",
    "SideEffectDispatcher",
    "build_qualified_lead_message",
    "pick_summary_value",
    "sanitize_summary_value",
]
