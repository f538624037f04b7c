"""Text generation calls built on top of the LLM provider."""

import json

from ..dialogue.markers import NOT_INTERESTED_MARKER, QUALIFIED_MARKER
from ..logging_config import get_logger
from ..models import BotStyle, DialogueContext, HistoryItem, LeadSummary, OperationKind
from . import prompts
from .llm_provider import ILLMProvider

logger = get_logger(__name__)

UNKNOWN_NAME = "UNKNOWN"

_ROLE_PREFIX = {"assistant": "[ASISTENTE]:", "user": "[USUARIO]:"}

_SUMMARY_FIELDS = {
    "name": "name",
    "people": "people",
    "income": "income",
    "pets": "pets",
    "paymentMethod": "payment_method",
    "dates": "dates",
    "visitAvailability": "visit_availability",
    "notes": "notes",
}


def build_transcript(history: list[HistoryItem]) -> str:
    """Render history as a role-prefixed transcript."""
    return "\n\n".join(f"{_ROLE_PREFIX[item.role]} {item.text}" for item in history)


def build_reply_instructions(
    context: DialogueContext, operation_kind: OperationKind, style: BotStyle
) -> str:
    parts = [
        prompts.REPLY_TEMPLATE.format(
            style=style.prompt_modifier,
            operation_kind=operation_kind.value,
            qualified_marker=QUALIFIED_MARKER,
            rejected_marker=NOT_INTERESTED_MARKER,
        ),
        "DATOS ESPECÍFICOS DE ESTA CONVERSACIÓN",
        f"Enlace del anuncio: {context.link}",
        f"Características comunicadas: {context.features}",
        "Informe de rentabilidad disponible: "
        + ("TRUE" if context.profitability_report_available else "FALSE"),
    ]
    if context.profitability_report_available and context.profitability_report:
        parts.extend(["Texto Informe Rentabilidad:", context.profitability_report])
    return "\n".join(parts)


def _summary_value(value) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def parse_lead_summary(output: str) -> LeadSummary:
    """Parse the outermost JSON object in output. Anything unparseable is absent."""
    trimmed = output.strip()
    start = trimmed.find("{")
    end = trimmed.rfind("}")
    candidate = trimmed[start : end + 1] if start != -1 and end > start else trimmed

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        logger.warning(f"Failed to parse lead summary JSON: {candidate[:200]}")
        return LeadSummary()

    if not isinstance(parsed, dict):
        return LeadSummary()

    return LeadSummary(
        **{attr: _summary_value(parsed.get(key)) for key, attr in _SUMMARY_FIELDS.items()}
    )


def _has_user_text(history: list[HistoryItem]) -> bool:
    return any(item.role == "user" and item.text.strip() for item in history)


class TextGenerator:
    """Reply, summary, name and translation calls."""

    def __init__(self, llm: ILLMProvider, max_tokens: int = 1024):
        self._llm = llm
        self._max_tokens = max_tokens

    async def _complete(self, system: str, text: str) -> str:
        output = await self._llm.complete(
            messages=[{"role": "user", "content": text}],
            system=system,
            max_tokens=self._max_tokens,
        )
        return output.strip()

    async def generate_reply(
        self,
        history: list[HistoryItem],
        context: DialogueContext,
        operation_kind: OperationKind,
        style: BotStyle,
    ) -> str:
        """Free-form reply. May end with a completion marker on its own line."""
        instructions = build_reply_instructions(context, operation_kind, style)
        return await self._complete(instructions, build_transcript(history))

    async def summarize_lead(
        self, history: list[HistoryItem], operation_kind: OperationKind
    ) -> LeadSummary:
        if not _has_user_text(history):
            return LeadSummary()

        focus = (
            prompts.RENTAL_FOCUS
            if operation_kind == OperationKind.RENTAL
            else prompts.SALE_FOCUS
        )
        instructions = prompts.SUMMARY_TEMPLATE.format(
            operation_kind=operation_kind.value, focus=focus
        )
        output = await self._complete(instructions, build_transcript(history))
        return parse_lead_summary(output)

    async def extract_name(self, history: list[HistoryItem]) -> str | None:
        """Name the counterparty introduced themselves with, or None."""
        if not _has_user_text(history):
            return None

        output = await self._complete(prompts.NAME_EXTRACTION, build_transcript(history))
        if not output or output.upper() == UNKNOWN_NAME:
            return None
        return output.replace('"', "").replace("'", "").strip() or None

    async def translate(self, text: str) -> str:
        """Translate listing text into British English."""
        if not text.strip():
            return text
        output = await self._complete(prompts.TRANSLATION, text)
        if not output:
            raise RuntimeError("Translation returned empty text")
        return output
