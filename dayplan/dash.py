from datetime import date, datetime
from itertools import groupby

from fncli import cli

from . import timer
from .core.models import Overview
from .lib import ansi
from .lib.dates import relative_label
from .lib.errors import echo
from .lib.format import display_order, format_recurrence, format_remaining, format_task
from .lib.resolve import resolve_task
from .planner import default_planner


def render_overview(overview: Overview, today: date, now: datetime) -> str:
    lines: list[str] = []
    lines.append(ansi.bold(f"TODAY {today.isoformat()}"))
    if not overview.today and not overview.rolled_over:
        lines.append(ansi.muted("  nothing planned"))
    lines.extend(f"  {format_task(t, today, now)}" for t in display_order(overview.today))

    if overview.rolled_over:
        lines.append("")
        lines.append(ansi.bold(ansi.yellow("ROLLED OVER")))
        lines.extend(
            f"  {format_task(t, today, now)}" for t in display_order(overview.rolled_over)
        )

    if overview.upcoming:
        lines.append("")
        lines.append(ansi.bold("UPCOMING"))
        for day, tasks in groupby(overview.upcoming, key=lambda t: t.target_date):
            lines.append(f"  {ansi.gray(relative_label(day, today))}")
            lines.extend(f"    {format_task(t, today, now)}" for t in display_order(list(tasks)))

    if overview.failures:
        lines.append("")
        lines.append(ansi.red(f"! {len(overview.failures)} task(s) could not be reconciled"))
        lines.extend(
            f"  {ansi.red(f.stage)} [{f.task_id[:8]}] {f.error}" for f in overview.failures
        )
    return "\n".join(lines)


@cli("dayplan")
def overview() -> None:
    """Today, rolled-over and upcoming tasks"""
    planner = default_planner()
    today = planner.clock.today()
    result = planner.get_overview(today)
    echo(render_overview(result, today, planner.clock.now()))


@cli("dayplan")
def show(ref: list[str]) -> None:
    """Show full task detail"""
    planner = default_planner()
    task = resolve_task(planner, " ".join(ref))
    now = planner.clock.now()
    today = planner.clock.today()
    echo(format_task(task, today, now, show_date=True))
    echo(f"  id:        {task.id}")
    echo(f"  date:      {task.target_date.isoformat()}  position {task.sort_order}")
    echo(f"  status:    {task.status.value}")
    if task.rolled_over and task.rolled_from_date:
        echo(f"  rolled:    from {task.rolled_from_date.isoformat()}")
    if task.deadline_at:
        local = task.deadline_at.astimezone(now.tzinfo)
        echo(f"  deadline:  {local.strftime('%Y-%m-%d %H:%M')}")
    if task.rule:
        echo(f"  repeats:   {format_recurrence(task)}  series {task.series_id}")
    if task.timer_enabled:
        remaining = format_remaining(timer.remaining_seconds(task, now))
        echo(f"  timer:     {task.timer_minutes}m  {timer.phase(task)}  {remaining} left")
    if task.tags:
        echo(f"  tags:      {' '.join('#' + t for t in task.tags)}")
    if task.notes:
        echo(f"  notes:     {task.notes}")
