"""Application bootstrap and lifecycle management."""

import os
from typing import Any, Protocol

from .config import Settings, resolve_db_path
from .dialogue.engine import QualificationEngine
from .dialogue.resolver import ConversationStateResolver
from .dispatch import SideEffectDispatcher
from .ingress import ChatIdentityResolver
from .llm import ILLMProvider, LLMProvider, TextGenerator
from .logging_config import get_logger
from .messaging import IMessageSender, WhapiSender
from .pipeline import ConversationPipeline
from .scheduling import AsyncioTaskQueue, DebounceScheduler, HttpCallbackDelivery, ITaskQueue
from .storage import ConversationCache, IStorage, Storage
from .tracker import ITracker, Tracker

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Reset data between test runs."""
        ...


class Application:
    """Main application bootstrap.

    Capabilities (LLM, gateway sender, task queue) may be injected; anything
    not injected is built from the environment in start().
    """

    def __init__(
        self,
        db_path: str | None = None,
        settings: Settings | None = None,
        llm_provider: ILLMProvider | None = None,
        sender: IMessageSender | None = None,
        task_queue: ITaskQueue | None = None,
    ):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)
        self._settings = settings or Settings.from_env()

        self._llm = llm_provider
        self._sender = sender
        self._task_queue = task_queue

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._tracker: ITracker | None = None
        self._cache: ConversationCache | None = None
        self._identity: ChatIdentityResolver | None = None
        self._delivery: HttpCallbackDelivery | None = None
        self._owns_queue = False
        self._scheduler: DebounceScheduler | None = None
        self._pipeline: ConversationPipeline | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")
        settings = self._settings

        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. Tracker (depends on Storage)
        self._tracker = Tracker(self._storage)

        # 3. Capabilities
        if self._llm is None:
            self._llm = LLMProvider()
        generator = TextGenerator(self._llm)
        if self._sender is None:
            self._sender = WhapiSender()
        logger.info("Capabilities initialized")

        # 4. Task queue and debounce
        if self._task_queue is None:
            if settings.buffer_callback_url:
                self._delivery = HttpCallbackDelivery()
                deliver = self._delivery
            else:
                deliver = self._deliver_locally
            self._task_queue = AsyncioTaskQueue(deliver)
            self._owns_queue = True
        self._scheduler = DebounceScheduler(
            self._task_queue,
            delay_seconds=settings.buffer_delay_seconds,
            callback_url=settings.buffer_callback_url,
        )

        # 5. Dialogue
        self._cache = ConversationCache(
            ttl_seconds=settings.cache_ttl_seconds,
            max_entries=settings.cache_max_entries,
        )
        self._identity = ChatIdentityResolver(
            ttl_seconds=settings.cache_ttl_seconds,
            max_entries=settings.cache_max_entries,
        )
        resolver = ConversationStateResolver(
            self._storage,
            generator,
            self._cache,
            self._identity,
            agent_name=settings.agent_name,
            profile_url=settings.profile_url,
        )
        dispatcher = SideEffectDispatcher(
            self._storage,
            self._sender,
            generator,
            tracker=self._tracker,
            notification_address=settings.notification_address,
        )
        engine = QualificationEngine(
            self._storage, generator, self._sender, dispatcher, tracker=self._tracker
        )

        # 6. Pipeline
        self._pipeline = ConversationPipeline(
            self._storage,
            resolver,
            self._scheduler,
            engine,
            self._sender,
            tracker=self._tracker,
        )
        logger.info("All components initialized successfully")

    async def _deliver_locally(self, target_url: str, payload: dict[str, Any]) -> None:
        await self.pipeline.process_buffer(payload["conversationId"])

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._owns_queue and isinstance(self._task_queue, AsyncioTaskQueue):
            await self._task_queue.close()
        if self._delivery:
            await self._delivery.aclose()
        if isinstance(self._sender, WhapiSender):
            await self._sender.aclose()
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Reset data between test runs."""
        if self._cache is not None:
            self._cache.clear()
        if self._identity is not None:
            self._identity.clear()
        if self._storage:
            await self._storage.clear()
            logger.info("Storage cleared")

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def pipeline(self) -> ConversationPipeline:
        """Get conversation pipeline instance."""
        if not self._pipeline:
            raise RuntimeError("Application not started")
        return self._pipeline

    @property
    def scheduler(self) -> DebounceScheduler:
        if not self._scheduler:
            raise RuntimeError("Application not started")
        return self._scheduler
