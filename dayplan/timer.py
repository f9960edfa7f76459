"""Countdown timer state machine.

A running timer persists only its absolute deadline (``timer_ends_at``);
remaining time is always recomputed from the clock, so a timer survives
restarts, sleep/wake and irregular polling.

    disabled ── (enable) ──> idle ── start ──> running ── observe@deadline ──> finished
                              ^  <──── stop ─────┘                               │
                              └───────────────── start <─────────────────────────┘

``paused`` is a stored state that nothing produces today; ``start`` treats it
like idle.
"""

import dataclasses
import logging
import math
from datetime import datetime, timedelta

from .core.errors import InvalidStateError
from .core.models import Task, TimerObservation, TimerState

logger = logging.getLogger(__name__)

__all__ = [
    "DISABLED",
    "observe",
    "phase",
    "remaining_seconds",
    "start",
    "stop",
]

DISABLED = "disabled"


def phase(task: Task) -> str:
    """Effective state name, folding a missing state into idle and a disabled timer into 'disabled'."""
    if not task.timer_enabled:
        return DISABLED
    return (task.timer_state or TimerState.IDLE).value


def remaining_seconds(task: Task, now: datetime) -> int:
    if task.timer_state == TimerState.RUNNING and task.timer_ends_at is not None:
        return max(0, math.ceil((task.timer_ends_at - now).total_seconds()))
    if task.timer_enabled and task.timer_state in (None, TimerState.IDLE, TimerState.PAUSED):
        return (task.timer_minutes or 0) * 60
    return 0


def start(task: Task, now: datetime) -> Task:
    if not task.timer_enabled:
        raise InvalidStateError(f"timer is not enabled for '{task.title}'")
    if task.timer_state == TimerState.RUNNING:
        raise InvalidStateError(f"timer already running for '{task.title}'")
    if not task.timer_minutes or task.timer_minutes < 1:
        raise InvalidStateError(f"timer for '{task.title}' has no duration")
    ends_at = now + timedelta(minutes=task.timer_minutes)
    logger.info("timer started task=%s ends_at=%s", task.id, ends_at.isoformat())
    return dataclasses.replace(
        task, timer_state=TimerState.RUNNING, timer_ends_at=ends_at, updated_at=now
    )


def stop(task: Task, now: datetime) -> Task:
    """Stop a running timer. Stopping anything else returns the task unchanged."""
    if task.timer_state != TimerState.RUNNING:
        return task
    logger.info("timer stopped task=%s", task.id)
    return dataclasses.replace(task, timer_state=TimerState.IDLE, timer_ends_at=None, updated_at=now)


def observe(task: Task, now: datetime) -> tuple[Task, TimerObservation]:
    """Read the timer at ``now``.

    A running timer whose deadline has passed moves to finished as part of the
    observation, and only that observation reports ``expired=True``.
    """
    remaining = remaining_seconds(task, now)
    if task.timer_state == TimerState.RUNNING and remaining == 0:
        finished = dataclasses.replace(
            task, timer_state=TimerState.FINISHED, timer_ends_at=None, updated_at=now
        )
        logger.info("timer finished task=%s", task.id)
        return finished, TimerObservation(
            task_id=task.id, remaining_seconds=0, expired=True, state=TimerState.FINISHED
        )
    return task, TimerObservation(
        task_id=task.id,
        remaining_seconds=remaining,
        expired=False,
        state=task.timer_state if task.timer_enabled else None,
    )
