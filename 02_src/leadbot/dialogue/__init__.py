"""Dialogue module.

The resolver and engine are imported from their modules directly.
"""

from .markers import AssistantReply, parse_assistant_reply
from .styles import DEFAULT_STYLES, load_active_style, load_bot_config

__all__ = [
    "AssistantReply",
    "DEFAULT_STYLES",
    "load_active_style",
    "load_bot_config",
    "parse_assistant_reply",
]
