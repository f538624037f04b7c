"""Qualification dialogue engine."""

from dataclasses import dataclass
from typing import Callable

from ..dispatch import SideEffectDispatcher
from ..ingress import now_millis
from ..llm import TextGenerator
from ..logging_config import get_logger
from ..messaging import IMessageSender
from ..models import ConversationState, HistoryItem, Outcome, PendingMessage
from ..storage import IStorage
from ..tracker import ITracker
from .markers import parse_assistant_reply
from .styles import DEFAULT_STYLES, load_active_style

logger = get_logger(__name__)


@dataclass
class TurnResult:
    """What one engine turn did."""

    replied: bool
    outcome: Outcome = Outcome.ACTIVE
    reply_text: str | None = None
    reason: str | None = None


class QualificationEngine:
    """
    Drives one turn of the qualification dialogue.

    A turn merges the drained user messages into history, persists, generates
    and sends a reply, then persists again with the resulting outcome. Any
    capability failure aborts the turn without touching the outcome.
    """

    def __init__(
        self,
        storage: IStorage,
        generator: TextGenerator,
        sender: IMessageSender,
        dispatcher: SideEffectDispatcher,
        tracker: ITracker | None = None,
        clock: Callable[[], int] = now_millis,
    ):
        self._storage = storage
        self._generator = generator
        self._sender = sender
        self._dispatcher = dispatcher
        self._tracker = tracker
        self._clock = clock

    async def process(
        self, state: ConversationState, pending: list[PendingMessage]
    ) -> TurnResult:
        if state.is_terminal:
            logger.info(f"Conversation {state.conversation_id} already finished, ignoring")
            return TurnResult(replied=False, outcome=state.outcome, reason="terminal")

        turns = self._user_turns(state, pending)
        state.history.extend(turns)

        if not state.detected_name:
            try:
                name = await self._generator.extract_name(state.history)
                if name:
                    state.detected_name = name
            except Exception as e:
                logger.warning(f"Name extraction failed for {state.conversation_id}: {e}")

        await self._storage.save_conversation(state)

        try:
            style = await load_active_style(self._storage)
        except Exception as e:
            logger.warning(f"Could not load bot style, using default: {e}")
            style = DEFAULT_STYLES[0]

        try:
            raw = await self._generator.generate_reply(
                state.history, state.context, state.operation_kind, style
            )
        except Exception as e:
            logger.error(f"Reply generation failed for {state.conversation_id}: {e}", exc_info=True)
            return await self._abort(state, "generation_failed", str(e))

        if not raw or not raw.strip():
            return await self._abort(state, "empty_generation")

        reply = parse_assistant_reply(raw)
        if not reply.text:
            return await self._abort(state, "empty_reply")

        try:
            await self._sender.send_text(
                state.counterparty_address, reply.text, state.conversation_id
            )
        except Exception as e:
            logger.error(f"Reply send failed for {state.conversation_id}: {e}", exc_info=True)
            return await self._abort(state, "send_failed", str(e))

        state.history.append(
            HistoryItem(
                role="assistant",
                text=reply.text,
                timestamp_ms=max(self._clock(), state.last_timestamp() + 1),
            )
        )
        state.apply_outcome(reply.outcome)
        await self._storage.save_conversation(state)

        if self._tracker:
            await self._tracker.track(
                event_type="reply_sent",
                actor="engine",
                data={
                    "conversation_id": state.conversation_id,
                    "user_turns": len(turns),
                    "outcome": reply.outcome.value,
                },
            )

        if reply.outcome.is_terminal:
            await self._dispatcher.dispatch(state, reply.outcome)

        return TurnResult(replied=True, outcome=reply.outcome, reply_text=reply.text)

    @staticmethod
    def _user_turns(
        state: ConversationState, pending: list[PendingMessage]
    ) -> list[HistoryItem]:
        """Drained batch as user turns, sorted, to follow the existing history.

        Timestamps earlier than the last turn in history are raised to it.
        """
        floor = state.last_timestamp()
        turns = []
        for message in sorted(pending, key=lambda m: m.timestamp_ms):
            floor = max(floor, message.timestamp_ms)
            turns.append(HistoryItem(role="user", text=message.text, timestamp_ms=floor))
        return turns

    async def _abort(
        self, state: ConversationState, reason: str, error: str | None = None
    ) -> TurnResult:
        logger.warning(f"Turn aborted for {state.conversation_id}: {reason}")
        if self._tracker:
            await self._tracker.track(
                event_type="turn_aborted",
                actor="engine",
                data={"conversation_id": state.conversation_id, "reason": reason, "error": error},
            )
        return TurnResult(replied=False, reason=reason)
