from datetime import date, datetime
from typing import cast

from dayplan.core.models import RecurrenceType, Task, TaskStatus, TimerState

TASK_COLUMNS = (
    "id",
    "title",
    "notes",
    "tags",
    "deadline_at",
    "target_date",
    "status",
    "sort_order",
    "is_recurring",
    "recurrence_type",
    "recurrence_interval",
    "recurrence_weekdays",
    "series_id",
    "occurrence_date",
    "successor_id",
    "rolled_over",
    "rolled_from_date",
    "timer_enabled",
    "timer_minutes",
    "timer_state",
    "timer_ends_at",
    "created_at",
    "updated_at",
)

TaskRow = tuple[object, ...]


def _parse_date(val) -> date | None:
    """Parse an ISO date column; tolerates a trailing time component."""
    if isinstance(val, str) and val:
        return date.fromisoformat(val.split("T")[0])
    return None


def _parse_datetime(val) -> datetime | None:
    if isinstance(val, str) and val:
        return datetime.fromisoformat(val)
    return None


def _split_csv(val) -> list[str]:
    if not isinstance(val, str) or not val:
        return []
    return [part for part in (p.strip() for p in val.split(",")) if part]


def format_date(val: date | None) -> str | None:
    return val.isoformat() if val else None


def format_datetime(val: datetime | None) -> str | None:
    return val.isoformat() if val else None


def join_csv(values) -> str:
    return ",".join(values)


def row_to_task(row: TaskRow) -> Task:
    """Convert a row selected with TASK_COLUMNS into a Task."""
    data = dict(zip(TASK_COLUMNS, row, strict=True))
    recurrence_type = data["recurrence_type"]
    timer_state = data["timer_state"]
    return Task(
        id=cast(str, data["id"]),
        title=cast(str, data["title"]),
        notes=cast(str, data["notes"]) if data["notes"] is not None else None,
        tags=_split_csv(data["tags"]),
        deadline_at=_parse_datetime(data["deadline_at"]),
        target_date=cast(date, _parse_date(data["target_date"])),
        status=TaskStatus(data["status"]),
        sort_order=int(cast(int, data["sort_order"])),
        is_recurring=bool(data["is_recurring"]),
        recurrence_type=RecurrenceType(recurrence_type) if recurrence_type else None,
        recurrence_interval=int(cast(int, data["recurrence_interval"] or 1)),
        recurrence_weekdays=tuple(_split_csv(data["recurrence_weekdays"])),
        series_id=cast(str, data["series_id"]) if data["series_id"] else None,
        occurrence_date=_parse_date(data["occurrence_date"]),
        successor_id=cast(str, data["successor_id"]) if data["successor_id"] else None,
        rolled_over=bool(data["rolled_over"]),
        rolled_from_date=_parse_date(data["rolled_from_date"]),
        timer_enabled=bool(data["timer_enabled"]),
        timer_minutes=int(cast(int, data["timer_minutes"]))
        if data["timer_minutes"] is not None
        else None,
        timer_state=TimerState(timer_state) if timer_state else None,
        timer_ends_at=_parse_datetime(data["timer_ends_at"]),
        created_at=cast(datetime, _parse_datetime(data["created_at"])),
        updated_at=cast(datetime, _parse_datetime(data["updated_at"])),
    )


def task_to_row(task: Task) -> TaskRow:
    """Inverse of row_to_task, in TASK_COLUMNS order."""
    return (
        task.id,
        task.title,
        task.notes,
        join_csv(task.tags),
        format_datetime(task.deadline_at),
        format_date(task.target_date),
        task.status.value,
        task.sort_order,
        int(task.is_recurring),
        task.recurrence_type.value if task.recurrence_type else None,
        task.recurrence_interval,
        join_csv(task.recurrence_weekdays) or None,
        task.series_id,
        format_date(task.occurrence_date),
        task.successor_id,
        int(task.rolled_over),
        format_date(task.rolled_from_date),
        int(task.timer_enabled),
        task.timer_minutes,
        task.timer_state.value if task.timer_state else None,
        format_datetime(task.timer_ends_at),
        format_datetime(task.created_at),
        format_datetime(task.updated_at),
    )
