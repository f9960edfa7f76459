"""Per-day task positions.

A bucket is every task whose ``target_date`` is a given day, rolled-over tasks
included. Positions are unique within a bucket (the schema enforces it) but
may have gaps; ``compact`` renumbers on demand.
"""

import dataclasses
import logging
from collections.abc import Sequence
from datetime import date, datetime
from enum import StrEnum

from .core.errors import ValidationError
from .core.models import Task
from .lib.converters import format_datetime
from .store import Session

logger = logging.getLogger(__name__)

__all__ = [
    "Direction",
    "append",
    "compact",
    "move",
    "next_position",
    "parse_direction",
    "reorder",
]

# positions are never negative, so this slot is free in every bucket mid-swap
_PARKED = -1


class Direction(StrEnum):
    UP = "up"
    DOWN = "down"


def parse_direction(value: str | Direction) -> Direction:
    try:
        return Direction(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"invalid move direction '{value}' (use up or down)") from None


def next_position(session: Session, day: date, exclude_id: str | None = None) -> int:
    highest = session.max_sort_order(day, exclude_id=exclude_id)
    return 0 if highest is None else highest + 1


def append(session: Session, task: Task, day: date) -> Task:
    """Place ``task`` at the end of ``day``'s bucket. The caller persists the result."""
    return dataclasses.replace(
        task, target_date=day, sort_order=next_position(session, day, exclude_id=task.id)
    )


def move(
    session: Session, task_id: str, direction: str | Direction, now: datetime
) -> Task | None:
    """Swap a task with its neighbour and return that neighbour, or None at the edge."""
    direction = parse_direction(direction)
    task = session.require(task_id)
    bucket = session.find_in_bucket(task.target_date)
    index = next(i for i, t in enumerate(bucket) if t.id == task.id)
    neighbour_index = index - 1 if direction == Direction.UP else index + 1
    if neighbour_index < 0 or neighbour_index >= len(bucket):
        return None

    neighbour = bucket[neighbour_index]
    stamp = format_datetime(now) or ""
    session.set_sort_order(task.id, _PARKED, stamp)
    session.set_sort_order(neighbour.id, task.sort_order, stamp)
    session.set_sort_order(task.id, neighbour.sort_order, stamp)
    logger.debug("moved task %s %s past %s", task.id, direction.value, neighbour.id)
    return neighbour


def _renumber(session: Session, ordered_ids: Sequence[str], now: datetime) -> None:
    stamp = format_datetime(now) or ""
    # park everything below zero first so no intermediate state collides
    for index, task_id in enumerate(ordered_ids):
        session.set_sort_order(task_id, -(index + 1), stamp)
    for index, task_id in enumerate(ordered_ids):
        session.set_sort_order(task_id, index, stamp)


def reorder(session: Session, day: date, ordered_ids: Sequence[str], now: datetime) -> list[Task]:
    """Assign positions 0..n-1 following ``ordered_ids``, which must be exactly the bucket."""
    ids = list(ordered_ids)
    if len(set(ids)) != len(ids):
        raise ValidationError("reorder list contains duplicate task ids")
    members = {t.id for t in session.find_in_bucket(day)}
    if set(ids) != members:
        missing = sorted(members - set(ids))
        unknown = sorted(set(ids) - members)
        detail = []
        if missing:
            detail.append(f"missing {', '.join(missing)}")
        if unknown:
            detail.append(f"not in bucket {', '.join(unknown)}")
        raise ValidationError(f"reorder ids do not match bucket {day.isoformat()}: {'; '.join(detail)}")
    _renumber(session, ids, now)
    return session.find_in_bucket(day)


def compact(session: Session, day: date, now: datetime) -> list[Task]:
    """Close gaps left by tasks that moved out of the bucket."""
    bucket = session.find_in_bucket(day)
    if all(t.sort_order == i for i, t in enumerate(bucket)):
        return bucket
    _renumber(session, [t.id for t in bucket], now)
    return session.find_in_bucket(day)
