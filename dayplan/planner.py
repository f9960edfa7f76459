"""Engine entry points.

``Planner`` wires the store, a clock and a notification sink to the
scheduling components. Each public method is one store transaction.
"""

import dataclasses
import logging
import uuid
from collections.abc import Iterable, Sequence
from datetime import date, datetime

from . import config, ordering, rollover, timer
from .core.errors import NotificationError, ValidationError
from .core.models import (
    Overview,
    RecurrenceRule,
    Task,
    TaskStatus,
    TimerObservation,
    TimerState,
)
from .core.types import UNSET, Unset
from .lib.clock import Clock, SystemClock
from .notify import LogNotificationSink, NotificationSink
from .recurrence import validate_rule
from .store import TaskStore

logger = logging.getLogger(__name__)

__all__ = ["Planner", "normalize_tags", "parse_status"]


def normalize_tags(tags: Iterable[str] | None) -> list[str]:
    out: set[str] = set()
    for tag in tags or []:
        for part in tag.split(","):
            clean = part.strip().lstrip("#").strip().lower()
            if clean:
                out.add(clean)
    return sorted(out)


def parse_status(value: str | TaskStatus) -> TaskStatus:
    try:
        return TaskStatus(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in TaskStatus)
        raise ValidationError(f"unknown status '{value}' (use {allowed})") from None


def _clean_title(title: str | None) -> str:
    if title is None or not title.strip():
        raise ValidationError("title is required")
    return title.strip()


def _timer_minutes(value: int | None) -> int:
    if value is None:
        return config.get_default_timer_minutes()
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(f"timer minutes must be >= 1, got {value!r}")
    return value


def _deadline(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, datetime):
        raise ValidationError(f"deadline must be a datetime, got {value!r}")
    # naive deadlines are local wall time
    return value if value.tzinfo else value.astimezone()


def _apply_rule(task: Task, rule: RecurrenceRule | None) -> Task:
    if rule is None:
        return dataclasses.replace(
            task,
            is_recurring=False,
            recurrence_type=None,
            recurrence_interval=1,
            recurrence_weekdays=(),
            series_id=None,
            occurrence_date=None,
        )
    return dataclasses.replace(
        task,
        is_recurring=True,
        recurrence_type=rule.type,
        recurrence_interval=rule.interval,
        recurrence_weekdays=rule.weekdays,
        series_id=task.series_id or str(uuid.uuid4()),
        occurrence_date=task.occurrence_date or task.target_date,
    )


def _apply_timer(task: Task, enabled: bool, minutes: int | None) -> Task:
    if not enabled:
        return dataclasses.replace(
            task, timer_enabled=False, timer_minutes=None, timer_state=None, timer_ends_at=None
        )
    return dataclasses.replace(
        task,
        timer_enabled=True,
        timer_minutes=_timer_minutes(minutes),
        timer_state=task.timer_state or TimerState.IDLE,
    )


class Planner:
    def __init__(
        self,
        store: TaskStore | None = None,
        clock: Clock | None = None,
        sink: NotificationSink | None = None,
    ) -> None:
        self.store = store or TaskStore()
        self.clock = clock or SystemClock()
        self.sink = sink or LogNotificationSink()

    # ── overview ─────────────────────────────────────────────────────────────

    def get_overview(self, today: date | None = None) -> Overview:
        """Reconcile against ``today`` and return its buckets."""
        today = today or self.clock.today()
        now = self.clock.now()
        with self.store.session() as session:
            failures = rollover.reconcile(session, today, now)
            todays, rolled, upcoming = rollover.bucket_tasks(
                session.find_by_date_range(today), today
            )
        return Overview(today=todays, rolled_over=rolled, upcoming=upcoming, failures=failures)

    # ── tasks ────────────────────────────────────────────────────────────────

    def get_task(self, task_id: str) -> Task:
        with self.store.session() as session:
            return session.require(task_id)

    def list_tags(self) -> list[str]:
        with self.store.session() as session:
            return session.list_tags()

    def add_task(
        self,
        title: str,
        target_date: date | None = None,
        *,
        notes: str | None = None,
        tags: Iterable[str] | None = None,
        deadline_at: datetime | None = None,
        status: str | TaskStatus = TaskStatus.TODO,
        recurrence: str | None = None,
        interval: int | None = 1,
        weekdays: str | Iterable[str] | None = None,
        timer_enabled: bool = False,
        timer_minutes: int | None = None,
    ) -> Task:
        clean_title = _clean_title(title)
        task_status = parse_status(status)
        deadline = _deadline(deadline_at)
        rule = validate_rule(recurrence, interval, weekdays) if recurrence else None
        if weekdays and rule is None:
            raise ValidationError("weekdays only apply to weekly recurrence")
        now = self.clock.now()
        day = target_date or self.clock.today()

        task = Task(
            id=str(uuid.uuid4()),
            title=clean_title,
            notes=notes.strip() if notes and notes.strip() else None,
            tags=normalize_tags(tags),
            deadline_at=deadline,
            target_date=day,
            status=task_status,
            sort_order=0,
            created_at=now,
            updated_at=now,
        )
        task = _apply_rule(task, rule)
        task = _apply_timer(task, timer_enabled, timer_minutes)

        with self.store.session() as session:
            task = ordering.append(session, task, day)
            session.insert(task)
        logger.info("added task %s for %s", task.id, day)
        return task

    def update_task(
        self,
        task_id: str,
        *,
        title: str | Unset = UNSET,
        notes: str | None | Unset = UNSET,
        tags: Iterable[str] | Unset = UNSET,
        deadline_at: datetime | None | Unset = UNSET,
        target_date: date | Unset = UNSET,
        status: str | TaskStatus | Unset = UNSET,
        recurrence: str | None | Unset = UNSET,
        interval: int | Unset = UNSET,
        weekdays: str | Iterable[str] | None | Unset = UNSET,
        timer_enabled: bool | Unset = UNSET,
        timer_minutes: int | None | Unset = UNSET,
    ) -> Task:
        """Apply a user edit. Every field is validated before anything is written."""
        clean_title = _clean_title(title) if title is not UNSET else UNSET
        new_status = parse_status(status) if status is not UNSET else UNSET
        deadline = _deadline(deadline_at) if deadline_at is not UNSET else UNSET
        now = self.clock.now()

        with self.store.session() as session:
            old = session.require(task_id)
            task = dataclasses.replace(old, updated_at=now)
            if clean_title is not UNSET:
                task = dataclasses.replace(task, title=clean_title)
            if notes is not UNSET:
                task = dataclasses.replace(
                    task, notes=notes.strip() if notes and notes.strip() else None
                )
            if tags is not UNSET:
                task = dataclasses.replace(task, tags=normalize_tags(tags))
            if deadline is not UNSET:
                task = dataclasses.replace(task, deadline_at=deadline)
            if new_status is not UNSET:
                task = dataclasses.replace(task, status=new_status)

            rule_touched = any(v is not UNSET for v in (recurrence, interval, weekdays))
            if rule_touched:
                rtype = recurrence if recurrence is not UNSET else old.recurrence_type
                if rtype is None:
                    rule = None
                else:
                    rule = validate_rule(
                        rtype,
                        interval if interval is not UNSET else old.recurrence_interval,
                        weekdays if weekdays is not UNSET else old.recurrence_weekdays,
                    )
                task = _apply_rule(task, rule)

            if timer_enabled is not UNSET or timer_minutes is not UNSET:
                enabled = timer_enabled if timer_enabled is not UNSET else old.timer_enabled
                minutes = timer_minutes if timer_minutes is not UNSET else old.timer_minutes
                task = _apply_timer(task, bool(enabled), minutes)

            if target_date is not UNSET and target_date != old.target_date:
                task = dataclasses.replace(
                    task,
                    rolled_over=False,
                    rolled_from_date=None,
                    occurrence_date=target_date if task.is_recurring else None,
                )
                task = ordering.append(session, task, target_date)

            session.update(task)
        return task

    def set_status(self, task_id: str, status: str | TaskStatus) -> Task:
        return self.update_task(task_id, status=status)

    def delete_task(self, task_id: str) -> bool:
        with self.store.session() as session:
            deleted = session.delete(task_id)
        if deleted:
            logger.info("deleted task %s", task_id)
        return deleted

    # ── ordering ─────────────────────────────────────────────────────────────

    def move_task(self, task_id: str, direction: str) -> Task | None:
        """Swap with the neighbour in the same day; returns the neighbour, or None at the edge."""
        parsed = ordering.parse_direction(direction)
        now = self.clock.now()
        with self.store.session() as session:
            return ordering.move(session, task_id, parsed, now)

    def reorder_bucket(self, day: date, ordered_ids: Sequence[str]) -> list[Task]:
        now = self.clock.now()
        with self.store.session() as session:
            return ordering.reorder(session, day, ordered_ids, now)

    def compact_bucket(self, day: date) -> list[Task]:
        now = self.clock.now()
        with self.store.session() as session:
            return ordering.compact(session, day, now)

    # ── timers ───────────────────────────────────────────────────────────────

    def _transition(self, task_id: str, step) -> Task:
        now = self.clock.now()
        with self.store.session() as session:
            task = session.require(task_id)
            changed = step(task, now)
            if changed is not task:
                session.update(changed)
        return changed

    def start_timer(self, task_id: str) -> Task:
        return self._transition(task_id, timer.start)

    def stop_timer(self, task_id: str) -> Task:
        return self._transition(task_id, timer.stop)

    def running_timers(self) -> list[Task]:
        with self.store.session() as session:
            return session.find_running_timers()

    def observe_timers(
        self, task_ids: Iterable[str], now: datetime | None = None
    ) -> list[TimerObservation]:
        """Poll timers. Deadlines that have passed finish here and notify the sink once.

        Every expired task is offered to the sink even if an earlier call fails;
        failures are raised afterwards as ``NotificationError`` carrying the
        observations.
        """
        now = now or self.clock.now()
        observations: list[TimerObservation] = []
        expired: list[Task] = []
        with self.store.session() as session:
            for task_id in task_ids:
                task = session.get(task_id)
                if task is None:
                    logger.debug("observe skipped deleted task %s", task_id)
                    continue
                observed, observation = timer.observe(task, now)
                if observed is not task:
                    session.update(observed)
                if observation.expired:
                    expired.append(observed)
                observations.append(observation)
        failures: dict[str, Exception] = {}
        for task in expired:
            try:
                self.sink.timer_expired(task)
            except Exception as e:
                logger.exception("notifying expiry of task %s failed", task.id)
                failures[task.id] = e
        if failures:
            raise NotificationError(failures, observations)
        return observations


def default_planner(sink: NotificationSink | None = None) -> Planner:
    """Planner on the configured database with the wall clock."""
    return Planner(TaskStore(), SystemClock(), sink or LogNotificationSink())
