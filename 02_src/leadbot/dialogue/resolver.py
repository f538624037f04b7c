"""Conversation state resolution: cache, durable store, then lead + listing."""

from typing import Callable

from ..ingress import ChatIdentityResolver, now_millis
from ..llm import TextGenerator
from ..logging_config import get_logger
from ..models import ConversationState, DialogueContext, HistoryItem, Listing
from ..storage import ConversationCache, IStorage
from .features import LANGUAGE_ENGLISH, compose_initial_messages, resolve_language

logger = get_logger(__name__)


class ConversationStateResolver:
    """
    Loads or synthesizes the state of a conversation.

    Lookups try every identifier form the identity resolver knows. A miss
    everywhere returns None, which callers treat as nothing to process.
    """

    def __init__(
        self,
        storage: IStorage,
        generator: TextGenerator,
        cache: ConversationCache,
        identity: ChatIdentityResolver,
        agent_name: str = "Lead Assistant",
        profile_url: str = "",
        clock: Callable[[], int] = now_millis,
    ):
        self._storage = storage
        self._generator = generator
        self._cache = cache
        self._identity = identity
        self._agent_name = agent_name
        self._profile_url = profile_url
        self._clock = clock

    async def ensure(
        self,
        conversation_id: str,
        counterparty_hint: str | None = None,
        use_cache: bool = True,
    ) -> ConversationState | None:
        candidates = self._identity.candidates(conversation_id)

        if use_cache:
            hit = self._cache.get(candidates)
            if hit is not None:
                key, state = hit
                self._identity.remember(conversation_id, key)
                return state

        for candidate in candidates:
            stored = await self._storage.get_conversation(candidate)
            if stored is None:
                continue
            if not stored.counterparty_address:
                logger.warning(f"Ignoring conversation {candidate} without counterparty address")
                continue
            self._identity.remember(conversation_id, candidate)
            self._cache.put(stored, self._identity.alternates(candidate))
            return stored

        lead = None
        for candidate in candidates:
            lead = await self._storage.find_lead_by_conversation(candidate)
            if lead is not None:
                self._identity.remember(conversation_id, candidate)
                break

        if lead is None:
            logger.info(f"No conversation or lead for {conversation_id}")
            return None

        listing = await self._storage.get_listing(lead.listing_code)
        if listing is None:
            logger.warning(f"Lead {lead.phone} references unknown listing {lead.listing_code}")
            return None

        counterparty = counterparty_hint or lead.phone
        features, messages = await self.prepare_opening(listing, counterparty)
        start = self._clock()
        history = [
            HistoryItem(role="assistant", text=text, timestamp_ms=start + i)
            for i, text in enumerate(messages)
        ]

        state = await self.create_for_listing(
            lead.conversation_id or conversation_id, counterparty, listing, features, history
        )
        logger.info(f"Synthesized conversation {state.conversation_id} from lead {lead.phone}")
        return state

    async def localize_features(self, features: str, language: str) -> str:
        """Features in the dialogue language. Translation failures keep the original."""
        if language != LANGUAGE_ENGLISH:
            return features
        try:
            return await self._generator.translate(features)
        except Exception as e:
            logger.warning(f"Failed to translate features: {e}")
            return features

    async def prepare_opening(
        self, listing: Listing, counterparty: str
    ) -> tuple[str, list[str]]:
        """Localized feature text and the two opening messages for a listing."""
        language = resolve_language(counterparty)
        features = await self.localize_features(listing.features, language)
        messages = compose_initial_messages(
            listing.operation_kind,
            listing.link,
            features,
            language=language,
            agent_name=self._agent_name,
            profile_url=self._profile_url,
        )
        return features, messages

    async def create_for_listing(
        self,
        conversation_id: str,
        counterparty: str,
        listing: Listing,
        features: str,
        history: list[HistoryItem],
    ) -> ConversationState:
        """Build a new conversation about a listing, cache it and persist it."""
        state = ConversationState(
            conversation_id=conversation_id,
            counterparty_address=counterparty,
            listing_reference=listing.listing_code,
            operation_kind=listing.operation_kind,
            context=DialogueContext(
                description=listing.description,
                link=listing.link,
                features=features,
                profitability_report=listing.profitability_report,
                profitability_report_available=listing.profitability_report_available,
            ),
            history=history,
        )
        self._cache.put(state, self._identity.alternates(conversation_id))
        await self._storage.save_conversation(state)
        return state

    def remember(self, state: ConversationState) -> None:
        """Refresh the cached copy of a state."""
        self._cache.put(state, self._identity.alternates(state.conversation_id))
