import logging
import sys
from typing import Protocol

from .core.models import Task

logger = logging.getLogger(__name__)

__all__ = ["LogNotificationSink", "NotificationSink", "TerminalNotificationSink"]


class NotificationSink(Protocol):
    """Receives timer events; how they are shown is up to the implementation."""

    def timer_expired(self, task: Task) -> None: ...


class LogNotificationSink:
    def timer_expired(self, task: Task) -> None:
        logger.info("timer expired for task %s (%s)", task.id, task.title)


class TerminalNotificationSink:
    """Rings the terminal bell and prints a line per expired timer."""

    def __init__(self, stream=None) -> None:
        self._stream = stream

    def timer_expired(self, task: Task) -> None:
        stream = self._stream or sys.stdout
        stream.write(f"\a⏰ time's up: {task.title}\n")
        stream.flush()
        logger.info("timer expired for task %s", task.id)
