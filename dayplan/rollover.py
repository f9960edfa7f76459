"""Reconcile stored tasks against today.

Runs lazily on every overview read instead of on a schedule. A pass is
idempotent: running it twice for the same day changes nothing the second time.

1. rollover: unresolved tasks dated before today move to today in one hop,
   remembering the date they left (``rolled_from_date``).
2. recurrence: each resolved recurring occurrence dated today or earlier spawns
   its successor once; the link is recorded in ``successor_id`` so reopening
   and resolving again never spawns a second one.
3. bucketing: today / rolled over / upcoming, each by position.

Each task is reconciled inside its own savepoint. A failure undoes only that
task's changes and is reported back as a ``ReconcileFailure``.
"""

import dataclasses
import logging
import uuid
from collections.abc import Callable
from datetime import date, datetime

from . import ordering
from .core.errors import DayplanError
from .core.models import ReconcileFailure, Task, TaskStatus, TimerState
from .recurrence import next_occurrence
from .store import Session

logger = logging.getLogger(__name__)

__all__ = [
    "build_successor",
    "bucket_tasks",
    "reconcile",
    "roll_over",
    "spawn_successor",
]


def roll_over(session: Session, task: Task, today: date, now: datetime) -> Task:
    rolled = dataclasses.replace(
        task,
        rolled_over=True,
        rolled_from_date=task.target_date,
        updated_at=now,
    )
    rolled = ordering.append(session, rolled, today)
    session.update(rolled)
    logger.debug("rolled task %s from %s to %s", task.id, task.target_date, today)
    return rolled


def build_successor(source: Task, occurrence: date, now: datetime) -> Task:
    """Fresh todo copy of ``source`` for ``occurrence``; position and placement are set by the caller."""
    deadline = None
    if source.deadline_at is not None:
        # deadline keeps its distance from the occurrence date
        deadline = source.deadline_at + (occurrence - source.target_date)
    return Task(
        id=str(uuid.uuid4()),
        title=source.title,
        notes=source.notes,
        tags=list(source.tags),
        deadline_at=deadline,
        target_date=occurrence,
        status=TaskStatus.TODO,
        sort_order=0,
        is_recurring=True,
        recurrence_type=source.recurrence_type,
        recurrence_interval=source.recurrence_interval,
        recurrence_weekdays=source.recurrence_weekdays,
        series_id=source.series_id,
        occurrence_date=occurrence,
        timer_enabled=source.timer_enabled,
        timer_minutes=source.timer_minutes,
        timer_state=TimerState.IDLE if source.timer_enabled else None,
        created_at=now,
        updated_at=now,
    )


def spawn_successor(session: Session, task: Task, today: date, now: datetime) -> Task | None:
    """Create the next occurrence of a resolved recurring task, once.

    An occurrence that would land before today goes straight into today as a
    rolled-over task, so the next pass has nothing left to move.
    """
    rule = task.rule
    if rule is None or task.series_id is None:
        return None
    occurrence = next_occurrence(task.target_date, rule)

    existing = session.find_series_occurrence(task.series_id, occurrence)
    if existing is not None:
        session.update(dataclasses.replace(task, successor_id=existing.id, updated_at=now))
        return None

    successor = build_successor(task, occurrence, now)
    if occurrence < today:
        successor = dataclasses.replace(successor, rolled_over=True, rolled_from_date=occurrence)
        successor = ordering.append(session, successor, today)
    else:
        successor = ordering.append(session, successor, occurrence)
    session.insert(successor)
    session.update(dataclasses.replace(task, successor_id=successor.id, updated_at=now))
    logger.info(
        "spawned occurrence %s of series %s for %s", successor.id, task.series_id, occurrence
    )
    return successor


def _isolated(
    session: Session,
    tasks: list[Task],
    stage: str,
    step: Callable[[Session, Task], object],
) -> list[ReconcileFailure]:
    failures: list[ReconcileFailure] = []
    for task in tasks:
        try:
            with session.savepoint(f"reconcile_{stage}"):
                step(session, task)
        except (DayplanError, ValueError) as e:
            logger.warning("reconcile %s failed for task %s", stage, task.id, exc_info=True)
            failures.append(ReconcileFailure(task_id=task.id, stage=stage, error=str(e)))
    return failures


def reconcile(session: Session, today: date, now: datetime) -> list[ReconcileFailure]:
    failures = _isolated(
        session,
        session.find_unresolved_before(today),
        "rollover",
        lambda s, t: roll_over(s, t, today, now),
    )
    failures += _isolated(
        session,
        session.find_resolved_recurring(today),
        "recurrence",
        lambda s, t: spawn_successor(s, t, today, now),
    )
    if failures:
        logger.error("reconcile for %s finished with %d failure(s)", today, len(failures))
    return failures


def bucket_tasks(tasks: list[Task], today: date) -> tuple[list[Task], list[Task], list[Task]]:
    """Split into (today, rolled_over, upcoming); past-dated tasks fall in none."""

    def by_position(t: Task) -> tuple[date, int]:
        return (t.target_date, t.sort_order)

    todays = sorted(
        (t for t in tasks if t.target_date == today and not t.rolled_over), key=by_position
    )
    rolled = sorted((t for t in tasks if t.target_date == today and t.rolled_over), key=by_position)
    upcoming = sorted((t for t in tasks if t.target_date > today), key=by_position)
    return todays, rolled, upcoming
