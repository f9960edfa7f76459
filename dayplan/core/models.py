import dataclasses
from datetime import date, datetime
from enum import StrEnum


class TaskStatus(StrEnum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    SKIPPED = "skipped"

    @property
    def resolved(self) -> bool:
        return self in (TaskStatus.DONE, TaskStatus.SKIPPED)


RESOLVED_STATUSES = (TaskStatus.DONE, TaskStatus.SKIPPED)


class RecurrenceType(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class TimerState(StrEnum):
    """Persisted timer lifecycle. A NULL column reads as IDLE for enabled timers."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    FINISHED = "finished"


WEEKDAYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")


@dataclasses.dataclass(frozen=True)
class RecurrenceRule:
    type: RecurrenceType
    interval: int = 1
    weekdays: tuple[str, ...] = ()

    @property
    def weekday_numbers(self) -> set[int]:
        return {WEEKDAYS.index(w) for w in self.weekdays}


@dataclasses.dataclass(frozen=True)
class Task:
    id: str
    title: str
    target_date: date
    status: TaskStatus
    sort_order: int
    created_at: datetime
    updated_at: datetime
    notes: str | None = None
    tags: list[str] = dataclasses.field(default_factory=list, hash=False)
    deadline_at: datetime | None = None
    is_recurring: bool = False
    recurrence_type: RecurrenceType | None = None
    recurrence_interval: int = 1
    recurrence_weekdays: tuple[str, ...] = ()
    series_id: str | None = None
    occurrence_date: date | None = None
    successor_id: str | None = None
    rolled_over: bool = False
    rolled_from_date: date | None = None
    timer_enabled: bool = False
    timer_minutes: int | None = None
    timer_state: TimerState | None = None
    timer_ends_at: datetime | None = None

    @property
    def resolved(self) -> bool:
        return self.status.resolved

    @property
    def rule(self) -> RecurrenceRule | None:
        if not self.is_recurring or self.recurrence_type is None:
            return None
        return RecurrenceRule(
            type=self.recurrence_type,
            interval=self.recurrence_interval,
            weekdays=self.recurrence_weekdays,
        )


@dataclasses.dataclass(frozen=True)
class TimerObservation:
    task_id: str
    remaining_seconds: int
    expired: bool
    state: TimerState | None = None


@dataclasses.dataclass(frozen=True)
class ReconcileFailure:
    task_id: str
    stage: str
    error: str


@dataclasses.dataclass(frozen=True)
class Overview:
    today: list[Task]
    rolled_over: list[Task]
    upcoming: list[Task]
    failures: list[ReconcileFailure] = dataclasses.field(default_factory=list)
