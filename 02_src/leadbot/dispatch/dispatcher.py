"""Side effects of a conversation reaching a terminal outcome."""

import re
from typing import Awaitable

from ..llm import TextGenerator
from ..logging_config import get_logger
from ..messaging import IMessageSender
from ..models import (
    ConversationState,
    LeadStatus,
    LeadSummary,
    OperationKind,
    Outcome,
    QualifiedLead,
)
from ..storage import IStorage
from ..tracker import ITracker

logger = get_logger(__name__)

NO_DATA_LABEL = "Sin datos"

# Compared after removing whitespace and upper-casing
SUMMARY_EMPTY_TOKENS = frozenset(
    {"SINDATOS", "NODATOS", "UNKNOWN", "NA", "N/A", "NOINFO", "NOHAYDATOS"}
)

_WHITESPACE = re.compile(r"\s+")


def sanitize_summary_value(value: str | None) -> str | None:
    """Trimmed value, or None when blank or an 'unknown' token."""
    if not value:
        return None
    trimmed = value.strip()
    if not trimmed:
        return None
    if _WHITESPACE.sub("", trimmed).upper() in SUMMARY_EMPTY_TOKENS:
        return None
    return trimmed


def pick_summary_value(*candidates: str | None) -> str | None:
    for candidate in candidates:
        sanitized = sanitize_summary_value(candidate)
        if sanitized:
            return sanitized
    return None


def build_qualified_lead_message(
    state: ConversationState, summary: LeadSummary | None = None
) -> str:
    """Operator notification for a qualified lead."""
    summary = summary or LeadSummary()

    def field(value: str | None) -> str:
        return pick_summary_value(value) or NO_DATA_LABEL

    lines = ["Lead cualificado ✅", f"Teléfono: {state.counterparty_address}"]
    name = pick_summary_value(summary.name, state.detected_name)
    lines.append(f"Nombre: {name or NO_DATA_LABEL}")
    if state.context.description:
        lines.append(f"Propiedad: {state.context.description}")
    lines.append(f"Operación: {state.operation_kind.value}")

    if state.operation_kind == OperationKind.RENTAL:
        lines.append(f"Personas: {field(summary.people)}")
        lines.append(f"Ingresos: {field(summary.income)}")
        lines.append(f"Mascotas: {field(summary.pets)}")
        lines.append(f"Fechas: {field(summary.dates)}")
    else:
        lines.append(f"Forma de pago: {field(summary.payment_method)}")
        lines.append(f"Ingresos: {field(summary.income)}")

    lines.append(f"Disponibilidad visita: {field(summary.visit_availability)}")
    notes = pick_summary_value(summary.notes)
    if notes:
        lines.append(f"Notas: {notes}")

    return "\n".join(lines)


class SideEffectDispatcher:
    """
    Runs the side effects of a terminal transition.

    Every action is attempted on its own: a failure is logged and tracked
    and the remaining actions still run.
    """

    def __init__(
        self,
        storage: IStorage,
        sender: IMessageSender,
        generator: TextGenerator,
        tracker: ITracker | None = None,
        notification_address: str | None = None,
    ):
        self._storage = storage
        self._sender = sender
        self._generator = generator
        self._tracker = tracker
        self._notification_address = notification_address

    async def dispatch(self, state: ConversationState, outcome: Outcome) -> None:
        if outcome == Outcome.QUALIFIED:
            await self._on_qualified(state)
        elif outcome == Outcome.REJECTED:
            await self._on_rejected(state)

    async def _on_qualified(self, state: ConversationState) -> None:
        try:
            summary = await self._generator.summarize_lead(state.history, state.operation_kind)
        except Exception as e:
            logger.error(f"Lead summary failed for {state.conversation_id}: {e}", exc_info=True)
            summary = LeadSummary()

        body = build_qualified_lead_message(state, summary)
        name = pick_summary_value(summary.name, state.detected_name)

        if self._notification_address:
            await self._attempt(
                "notify",
                state,
                self._sender.send_text(self._notification_address, body),
            )
        else:
            logger.info("No notification address configured, skipping operator notification")

        await self._attempt(
            "save_qualified_lead",
            state,
            self._storage.save_qualified_lead(
                QualifiedLead(
                    phone=state.counterparty_address,
                    conversation_id=state.conversation_id,
                    listing_code=state.listing_reference,
                    conversation_summary=body,
                    name=name or "",
                )
            ),
        )
        await self._update_status(state, LeadStatus.QUALIFIED, name)

        if self._tracker:
            await self._tracker.track(
                event_type="lead_qualified",
                actor="dispatcher",
                data={"conversation_id": state.conversation_id, "name": name},
            )

    async def _on_rejected(self, state: ConversationState) -> None:
        await self._update_status(state, LeadStatus.REJECTED)

        if self._tracker:
            await self._tracker.track(
                event_type="lead_rejected",
                actor="dispatcher",
                data={"conversation_id": state.conversation_id},
            )

    async def _lead_key(self, state: ConversationState) -> tuple[str, str]:
        """(phone, listing_code) of the lead owning the conversation.

        Falls back to the conversation's own address when no lead is linked.
        """
        try:
            lead = await self._storage.find_lead_by_conversation(state.conversation_id)
        except Exception as e:
            logger.warning(f"Lead lookup failed for {state.conversation_id}: {e}")
            lead = None
        if lead is None:
            return state.counterparty_address, state.listing_reference
        return lead.phone, lead.listing_code

    async def _update_status(
        self, state: ConversationState, status: LeadStatus, name: str | None = None
    ) -> None:
        phone, listing_code = await self._lead_key(state)
        updated = await self._attempt(
            f"update_lead_{status.value}",
            state,
            self._storage.update_lead_status(phone, listing_code, status, name),
        )
        if updated is False:
            logger.warning(f"No lead for {phone} / {listing_code}")

    async def _attempt(self, action: str, state: ConversationState, call: Awaitable):
        try:
            return await call
        except Exception as e:
            logger.error(
                f"Side effect {action} failed for {state.conversation_id}: {e}",
                exc_info=True,
            )
            if self._tracker:
                await self._tracker.track(
                    event_type="side_effect_failed",
                    actor="dispatcher",
                    data={
                        "conversation_id": state.conversation_id,
                        "action": action,
                        "error": str(e),
                    },
                )
            return None
