"""Per-conversation debounce on top of the task queue."""

import re

from ..config import BUFFER_DELAY_SECONDS
from ..logging_config import get_logger
from .task_queue import ITaskQueue, ScheduledTask

logger = get_logger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


class DebounceScheduler:
    """
    Keeps one delayed drain per conversation.

    Every reschedule replaces the pending task, so a burst of messages fires
    once, delay_seconds after the last of them.
    """

    def __init__(
        self,
        queue: ITaskQueue,
        delay_seconds: float = BUFFER_DELAY_SECONDS,
        callback_url: str | None = None,
    ):
        self._queue = queue
        self.delay_seconds = delay_seconds
        self._callback_url = callback_url

    @staticmethod
    def task_key(conversation_id: str) -> str:
        """Deterministic task key for a conversation."""
        return "buffer-" + _UNSAFE_KEY_CHARS.sub("-", conversation_id)

    async def reschedule(
        self, conversation_id: str, callback_target: str | None = None
    ) -> ScheduledTask:
        """Reset the quiet period for a conversation."""
        task = await self._queue.schedule(
            self.task_key(conversation_id),
            callback_target or self._callback_url or "",
            {"conversationId": conversation_id},
            self.delay_seconds,
        )
        logger.debug(f"Drain for {conversation_id} scheduled at {task.fires_at_ms}")
        return task

    async def cancel(self, conversation_id: str) -> bool:
        return await self._queue.cancel(self.task_key(conversation_id))

    async def has_pending(self, conversation_id: str) -> bool:
        return await self._queue.get(self.task_key(conversation_id)) is not None
