from datetime import date, datetime

from dayplan import timer
from dayplan.core.models import Task, TaskStatus, TimerState

from . import ansi
from .dates import relative_label

__all__ = [
    "display_order",
    "format_recurrence",
    "format_deadline",
    "format_remaining",
    "format_status",
    "format_task",
]

_STATUS_SYMBOLS = {
    TaskStatus.TODO: "□",
    TaskStatus.IN_PROGRESS: "◐",
    TaskStatus.DONE: "✓",
    TaskStatus.SKIPPED: "–",
}


def display_order(tasks: list[Task]) -> list[Task]:
    """Open tasks first, resolved after; stored position breaks ties."""
    return sorted(tasks, key=lambda t: (t.resolved, t.sort_order))


def format_remaining(seconds: int) -> str:
    m, s = divmod(max(0, seconds), 60)
    h, m = divmod(m, 60)
    if h:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m:02d}:{s:02d}"


def format_recurrence(task: Task) -> str:
    rule = task.rule
    if rule is None:
        return ""
    unit = {"daily": "d", "weekly": "w", "monthly": "mo"}[rule.type.value]
    every = f"every {rule.interval}{unit}" if rule.interval > 1 else rule.type.value
    if rule.weekdays:
        every += " " + ",".join(rule.weekdays)
    return f"↻ {every}"


def format_status(symbol: str, content: str, item_id: str) -> str:
    return f"{symbol} {content} {ansi.muted(f'[{item_id[:8]}]')}"


def _format_timer(task: Task, now: datetime) -> str:
    state = timer.phase(task)
    if state == timer.DISABLED:
        return ""
    remaining = format_remaining(timer.remaining_seconds(task, now))
    if task.timer_state == TimerState.RUNNING:
        return ansi.coral(f"⏱ {remaining}")
    if task.timer_state == TimerState.FINISHED:
        return ansi.green("⏱ done")
    return ansi.muted(f"⏱ {remaining}")


def format_deadline(task: Task, today: date, now: datetime) -> str:
    if task.deadline_at is None:
        return ""
    local = task.deadline_at.astimezone(now.tzinfo)
    label = f"due {relative_label(local.date(), today)} {local.strftime('%H:%M')}"
    if not task.resolved and local <= now:
        return ansi.red(f"⚑ {label}")
    return ansi.gray(f"⚑ {label}")


def format_task(task: Task, today: date, now: datetime, show_date: bool = False) -> str:
    symbol = _STATUS_SYMBOLS[task.status]
    if task.status == TaskStatus.DONE:
        symbol = ansi.green(symbol)
    title = ansi.muted(task.title) if task.resolved else task.title
    parts = [f"{symbol} {title}"]
    if show_date:
        parts.append(ansi.gray(relative_label(task.target_date, today)))
    if task.rolled_over and task.rolled_from_date:
        parts.append(ansi.yellow(f"← {relative_label(task.rolled_from_date, today)}"))
    recurrence = format_recurrence(task)
    if recurrence:
        parts.append(ansi.cyan(recurrence))
    deadline = format_deadline(task, today, now)
    if deadline:
        parts.append(deadline)
    timer_str = _format_timer(task, now)
    if timer_str:
        parts.append(timer_str)
    parts.extend(ansi.tag(t) for t in task.tags)
    parts.append(ansi.muted(f"[{task.id[:8]}]"))
    return "  ".join(parts)
