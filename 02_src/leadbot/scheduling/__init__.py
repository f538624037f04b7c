"""Scheduling module."""

from .debounce import DebounceScheduler
from .task_queue import (
    AsyncioTaskQueue,
    Delivery,
    HttpCallbackDelivery,
    ITaskQueue,
    ScheduledTask,
)

__all__ = [
    "AsyncioTaskQueue",
    "DebounceScheduler",
    "Delivery",
    "HttpCallbackDelivery",
    "ITaskQueue",
    "ScheduledTask",
]
