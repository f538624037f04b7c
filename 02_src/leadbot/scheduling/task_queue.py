"""Delayed-task queue used to fire buffer drains."""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol

import httpx

from ..logging_config import get_logger

logger = get_logger(__name__)

# Delivery callable: (target_url, payload) -> None, raises on failure
Delivery = Callable[[str, dict[str, Any]], Awaitable[None]]


@dataclass
class ScheduledTask:
    """Handle of a scheduled task."""

    task_id: str
    fires_at_ms: int


class ITaskQueue(Protocol):
    """Delayed-task scheduling capability."""

    async def schedule(
        self,
        task_key: str,
        target_url: str,
        payload: dict[str, Any],
        delay_seconds: float,
    ) -> ScheduledTask:
        """Create or replace the task stored under task_key."""
        ...

    async def cancel(self, task_key: str) -> bool:
        """Cancel a task. Returns False when there was nothing to cancel."""
        ...

    async def get(self, task_key: str) -> ScheduledTask | None:
        """Get the pending task under task_key."""
        ...


class _Entry:
    def __init__(self, scheduled: ScheduledTask):
        self.scheduled = scheduled
        self.task: asyncio.Task | None = None
        self.firing = False


class AsyncioTaskQueue:
    """
    In-process task queue with one asyncio task per key.

    Scheduling under an existing key replaces the pending task. A task that
    has already started delivering is left to finish.
    """

    def __init__(
        self,
        deliver: Delivery,
        max_attempts: int = 3,
        retry_delay_seconds: float = 1.0,
    ):
        self._deliver = deliver
        self._max_attempts = max_attempts
        self._retry_delay = retry_delay_seconds
        self._entries: dict[str, _Entry] = {}

    async def schedule(
        self,
        task_key: str,
        target_url: str,
        payload: dict[str, Any],
        delay_seconds: float,
    ) -> ScheduledTask:
        """Create or replace the task stored under task_key."""
        replaced = await self.cancel(task_key)
        if not replaced:
            logger.debug(f"No pending task to replace for {task_key}")

        fires_at_ms = int((time.time() + delay_seconds) * 1000)
        entry = _Entry(ScheduledTask(task_id=task_key, fires_at_ms=fires_at_ms))
        entry.task = asyncio.create_task(
            self._run(task_key, entry, target_url, payload, delay_seconds)
        )
        self._entries[task_key] = entry
        return entry.scheduled

    async def cancel(self, task_key: str) -> bool:
        """Cancel a task. Returns False when there was nothing to cancel."""
        entry = self._entries.pop(task_key, None)
        if entry is None or entry.firing:
            return False
        entry.task.cancel()
        return True

    async def get(self, task_key: str) -> ScheduledTask | None:
        """Get the pending task under task_key."""
        entry = self._entries.get(task_key)
        return entry.scheduled if entry else None

    async def close(self) -> None:
        """Cancel pending tasks and wait for firing ones to finish."""
        tasks = []
        for entry in self._entries.values():
            if not entry.firing:
                entry.task.cancel()
            tasks.append(entry.task)
        self._entries.clear()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(
        self,
        task_key: str,
        entry: _Entry,
        target_url: str,
        payload: dict[str, Any],
        delay_seconds: float,
    ) -> None:
        try:
            await asyncio.sleep(delay_seconds)
        except asyncio.CancelledError:
            return

        entry.firing = True
        try:
            for attempt in range(1, self._max_attempts + 1):
                try:
                    await self._deliver(target_url, payload)
                    return
                except Exception as e:
                    if attempt == self._max_attempts:
                        logger.error(
                            f"Task {task_key} failed after {attempt} attempts: {e}",
                            exc_info=True,
                        )
                        return
                    logger.warning(f"Task {task_key} attempt {attempt} failed: {e}")
                    await asyncio.sleep(self._retry_delay)
        finally:
            if self._entries.get(task_key) is entry:
                del self._entries[task_key]


class HttpCallbackDelivery:
    """Delivers a fired task by POSTing its payload to the target URL."""

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 30.0):
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def __call__(self, target_url: str, payload: dict[str, Any]) -> None:
        response = await self._client.post(target_url, json=payload)
        response.raise_for_status()

    async def aclose(self) -> None:
        await self._client.aclose()
