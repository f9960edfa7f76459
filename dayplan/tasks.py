from fncli import UsageError, cli

from .core.models import TaskStatus
from .lib import ansi
from .lib.dates import parse_day, parse_deadline, relative_label
from .lib.errors import echo
from .lib.format import format_status
from .lib.resolve import resolve_task
from .planner import Planner, default_planner

__all__ = [
    "add",
    "doing",
    "done",
    "down",
    "edit",
    "reopen",
    "reorder",
    "rm",
    "skip",
    "tags",
    "up",
]


def _ref(ref: list[str], usage: str) -> str:
    item_ref = " ".join(ref) if ref else ""
    if not item_ref.strip():
        raise UsageError(f"Usage: {usage}")
    return item_ref


def _set_status(ref: list[str], status: TaskStatus, symbol: str, usage: str) -> None:
    planner = default_planner()
    task = resolve_task(planner, _ref(ref, usage))
    updated = planner.set_status(task.id, status)
    echo(format_status(symbol, updated.title, updated.id))


def _move(planner: Planner, ref: list[str], direction: str, usage: str) -> None:
    task = resolve_task(planner, _ref(ref, usage))
    neighbour = planner.move_task(task.id, direction)
    if neighbour is not None:
        where = " (rolled over)" if neighbour.rolled_over else ""
        swapped = f"{task.title}  {ansi.gray(f'swapped with {neighbour.title}{where}')}"
        echo(format_status("↑" if direction == "up" else "↓", swapped, task.id))
    else:
        edge = "top" if direction == "up" else "bottom"
        echo(format_status("·", f"{task.title} is already at the {edge}", task.id))


# ── cli ──────────────────────────────────────────────────────────────────────


@cli(
    "dayplan",
    flags={
        "tag": ["-t", "--tag"],
        "day": ["-d", "--day"],
        "every": ["-e", "--every"],
        "minutes": ["-m", "--timer"],
    },
    help={"on": "weekdays for weekly tasks, e.g. 'mon,fri'"},
)
def add(
    title: list[str],
    day: str | None = None,
    tag: list[str] | None = None,
    every: str | None = None,
    interval: int = 1,
    on: str | None = None,
    minutes: int | None = None,
    notes: str | None = None,
    deadline: str | None = None,
) -> None:
    """Add a task"""
    planner = default_planner()
    content = _ref(title, "dayplan add <title> [-d DAY] [-e daily|weekly|monthly] [-m MINUTES]")
    target = parse_day(day, planner.clock.today()) if day else None
    task = planner.add_task(
        content,
        target,
        notes=notes,
        tags=tag,
        deadline_at=parse_deadline(deadline, planner.clock.now()) if deadline else None,
        recurrence=every,
        interval=interval,
        weekdays=on,
        timer_enabled=minutes is not None,
        timer_minutes=minutes,
    )
    label = ansi.gray(relative_label(task.target_date, planner.clock.today()))
    echo(f"{format_status('□', task.title, task.id)}  {label}")


@cli("dayplan")
def done(ref: list[str]) -> None:
    """Mark task done"""
    _set_status(ref, TaskStatus.DONE, ansi.green("✓"), "dayplan done <task>")


@cli("dayplan")
def skip(ref: list[str]) -> None:
    """Skip task for its day"""
    _set_status(ref, TaskStatus.SKIPPED, "–", "dayplan skip <task>")


@cli("dayplan")
def doing(ref: list[str]) -> None:
    """Mark task in progress"""
    _set_status(ref, TaskStatus.IN_PROGRESS, "◐", "dayplan doing <task>")


@cli("dayplan")
def reopen(ref: list[str]) -> None:
    """Set task back to todo"""
    _set_status(ref, TaskStatus.TODO, "□", "dayplan reopen <task>")


@cli("dayplan")
def rm(ref: list[str]) -> None:
    """Delete task"""
    planner = default_planner()
    task = resolve_task(planner, _ref(ref, "dayplan rm <task>"))
    planner.delete_task(task.id)
    echo(format_status("✗", task.title, task.id))


@cli("dayplan")
def up(ref: list[str]) -> None:
    """Move task up within its day (today and rolled-over tasks share one order)"""
    _move(default_planner(), ref, "up", "dayplan up <task>")


@cli("dayplan")
def down(ref: list[str]) -> None:
    """Move task down within its day (today and rolled-over tasks share one order)"""
    _move(default_planner(), ref, "down", "dayplan down <task>")


@cli(
    "dayplan",
    help={
        "ids": "every task id (or unique prefix) of that day, in the new order",
        "compact": "renumber the day 0..n-1 keeping its current order",
    },
)
def reorder(day: str, ids: list[str], compact: bool = False) -> None:
    """Set the full order of a day's tasks"""
    planner = default_planner()
    target = parse_day(day, planner.clock.today())
    if compact and ids:
        raise UsageError("--compact takes no ids")
    if compact:
        tasks = planner.compact_bucket(target)
    elif not ids:
        raise UsageError("Usage: dayplan reorder <day> <id> [id...] | <day> --compact")
    else:
        tasks = planner.reorder_bucket(target, [resolve_task(planner, ref).id for ref in ids])
    for task in tasks:
        echo(format_status(str(task.sort_order), task.title, task.id))


@cli(
    "dayplan",
    flags={"day": ["-d", "--day"], "every": ["-e", "--every"], "minutes": ["-m", "--timer"]},
)
def edit(
    ref: list[str],
    title: str | None = None,
    day: str | None = None,
    notes: str | None = None,
    every: str | None = None,
    interval: int | None = None,
    on: str | None = None,
    minutes: int | None = None,
    deadline: str | None = None,
    no_repeat: bool = False,
    no_timer: bool = False,
    no_deadline: bool = False,
) -> None:
    """Edit task title, day, notes, deadline, recurrence or timer"""
    planner = default_planner()
    task = resolve_task(planner, _ref(ref, "dayplan edit <task> [--title T] [-d DAY] ..."))
    if no_repeat and (every or interval or on):
        raise UsageError("--no-repeat cannot be combined with recurrence options")
    if no_timer and minutes is not None:
        raise UsageError("--no-timer cannot be combined with --timer")
    if no_deadline and deadline is not None:
        raise UsageError("--no-deadline cannot be combined with --deadline")

    changes: dict[str, object] = {}
    if title is not None:
        changes["title"] = title
    if day is not None:
        changes["target_date"] = parse_day(day, planner.clock.today())
    if notes is not None:
        changes["notes"] = notes
    if deadline is not None:
        changes["deadline_at"] = parse_deadline(deadline, planner.clock.now())
    if no_deadline:
        changes["deadline_at"] = None
    if no_repeat:
        changes["recurrence"] = None
    if every is not None:
        changes["recurrence"] = every
    if interval is not None:
        changes["interval"] = interval
    if on is not None:
        changes["weekdays"] = on
    if no_timer:
        changes["timer_enabled"] = False
    if minutes is not None:
        changes["timer_enabled"] = True
        changes["timer_minutes"] = minutes
    if not changes:
        raise UsageError("Nothing to edit. See: dayplan edit --help")

    updated = planner.update_task(task.id, **changes)  # type: ignore[arg-type]
    echo(format_status("□", updated.title, updated.id))


@cli("dayplan", name="tags")
def tags() -> None:
    """List tags in use"""
    found = default_planner().list_tags()
    if not found:
        echo("no tags")
        return
    echo(" ".join(ansi.tag(t) for t in found))

