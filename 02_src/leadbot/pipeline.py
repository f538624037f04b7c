"""Conversation pipeline: webhook ingestion, buffer drains and new conversations."""

import asyncio
from dataclasses import dataclass

from .dialogue.engine import QualificationEngine, TurnResult
from .dialogue.resolver import ConversationStateResolver
from .ingress import extract_inbound_messages, group_by_conversation, now_millis
from .ingress.identity import LEGACY_SUFFIX
from .logging_config import get_logger
from .messaging import IMessageSender
from .models import HistoryItem, InboundMessage, PendingMessage
from .scheduling import DebounceScheduler
from .storage import IStorage
from .tracker import ITracker

logger = get_logger(__name__)


@dataclass
class WebhookResult:
    received: bool
    buffered: int = 0
    count: int = 0


class ListingNotFound(LookupError):
    """The start-conversation action named an unknown listing."""


class ConversationPipeline:
    """Ties normalization, buffering, debounce and the engine together."""

    def __init__(
        self,
        storage: IStorage,
        resolver: ConversationStateResolver,
        scheduler: DebounceScheduler,
        engine: QualificationEngine,
        sender: IMessageSender,
        tracker: ITracker | None = None,
    ):
        self._storage = storage
        self._resolver = resolver
        self._scheduler = scheduler
        self._engine = engine
        self._sender = sender
        self._tracker = tracker

    async def _track(self, event_type: str, data: dict) -> None:
        if self._tracker:
            await self._tracker.track(event_type=event_type, actor="pipeline", data=data)

    async def handle_webhook(self, body) -> WebhookResult:
        """Buffer inbound messages and reset each conversation's quiet period."""
        messages = extract_inbound_messages(body)
        if not messages:
            return WebhookResult(received=False)

        groups = group_by_conversation(messages)
        results = await asyncio.gather(
            *(self._buffer_conversation(cid, group) for cid, group in groups.items()),
            return_exceptions=True,
        )

        buffered = 0
        for conversation_id, result in zip(groups, results):
            if isinstance(result, Exception):
                logger.error(
                    f"Failed to buffer messages for {conversation_id}: {result}",
                    exc_info=result,
                )
                continue
            buffered += result

        return WebhookResult(received=True, buffered=buffered, count=len(messages))

    async def _buffer_conversation(
        self, conversation_id: str, messages: list[InboundMessage]
    ) -> int:
        state = await self._resolver.ensure(conversation_id, messages[0].sender_address or None)
        if state is None:
            await self._track("conversation_not_found", {"conversation_id": conversation_id})
            return 0

        for message in messages:
            await self._storage.append_pending(
                state.conversation_id,
                PendingMessage(text=message.text, timestamp_ms=message.timestamp_ms),
            )

        task = await self._scheduler.reschedule(state.conversation_id)
        await self._storage.set_pending_task(
            state.conversation_id, task.task_id, task.fires_at_ms
        )

        logger.info(
            f"Buffered {len(messages)} message(s) for {state.conversation_id}",
            extra={"context": {"conversation_id": state.conversation_id}},
        )
        await self._track(
            "message_buffered",
            {"conversation_id": state.conversation_id, "count": len(messages)},
        )
        return len(messages)

    async def process_buffer(self, conversation_id: str) -> int:
        """Drain a conversation's buffer and run one engine turn. Returns drained count."""
        pending = await self._storage.drain_pending(conversation_id)
        if not pending:
            logger.debug(f"Nothing pending for {conversation_id}")
            return 0

        await self._track(
            "buffer_drained", {"conversation_id": conversation_id, "count": len(pending)}
        )

        state = await self._resolver.ensure(conversation_id, use_cache=False)
        if state is None:
            logger.warning(f"Drained {len(pending)} message(s) for unknown {conversation_id}")
            await self._track("conversation_not_found", {"conversation_id": conversation_id})
            return len(pending)

        result: TurnResult = await self._engine.process(state, pending)
        self._resolver.remember(state)
        logger.info(
            f"Turn for {conversation_id}: replied={result.replied} outcome={result.outcome.value}"
        )
        return len(pending)

    async def start_conversation(self, phone: str, listing_code: str) -> str:
        """
        Open a conversation about a listing. Returns the conversation id.

        Raises ListingNotFound for an unknown listing and SendError when the
        opening messages cannot be sent.
        """
        listing = await self._storage.get_listing(listing_code)
        if listing is None:
            raise ListingNotFound(f"Listing {listing_code} not found")

        features, messages = await self._resolver.prepare_opening(listing, phone)

        conversation_id = None
        history: list[HistoryItem] = []
        for i, text in enumerate(messages):
            result = await self._sender.send_text(phone, text, conversation_id)
            if result.conversation_id:
                conversation_id = result.conversation_id
            history.append(
                HistoryItem(role="assistant", text=text, timestamp_ms=now_millis() + i)
            )

        if not conversation_id:
            conversation_id = f"{phone}{LEGACY_SUFFIX}"
            logger.info(f"Gateway returned no chat id, using {conversation_id}")

        try:
            await self._storage.update_lead_chat_info(
                phone, listing_code, conversation_id, listing.operation_kind
            )
        except Exception as e:
            logger.error(f"Failed to update lead for {phone}: {e}", exc_info=True)

        await self._resolver.create_for_listing(
            conversation_id, phone, listing, features, history
        )
        await self._track(
            "conversation_started",
            {"conversation_id": conversation_id, "listing_code": listing_code},
        )
        return conversation_id
