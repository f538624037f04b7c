"""LLM module."""

from .generator import TextGenerator, build_transcript, parse_lead_summary
from .llm_provider import ILLMProvider, LLMProvider

__all__ = [
    "ILLMProvider",
    "LLMProvider",
    "TextGenerator",
    "build_transcript",
    "parse_lead_summary",
]
