import sys
import time

from fncli import UsageError, cli

from . import config
from .core.errors import NotificationError
from .core.models import TimerState
from .lib import ansi
from .lib.errors import echo
from .lib.format import format_remaining, format_status
from .lib.resolve import resolve_task
from .notify import TerminalNotificationSink
from .planner import default_planner


@cli("dayplan timer", name="start")
def start(ref: list[str]) -> None:
    """Start a task's countdown"""
    planner = default_planner()
    task = resolve_task(planner, " ".join(ref))
    started = planner.start_timer(task.id)
    ends = started.timer_ends_at.strftime("%H:%M") if started.timer_ends_at else "?"
    echo(format_status(ansi.coral("⏱"), f"{started.title}  {started.timer_minutes}m, ends {ends}", started.id))


@cli("dayplan timer", name="stop")
def stop(ref: list[str]) -> None:
    """Stop a running countdown"""
    planner = default_planner()
    task = resolve_task(planner, " ".join(ref))
    planner.stop_timer(task.id)
    echo(format_status("⏹", task.title, task.id))


@cli("dayplan timer", name="ls", default=True)
def ls() -> None:
    """List running timers"""
    planner = default_planner()
    running = planner.running_timers()
    if not running:
        echo("no timers running")
        return
    titles = {t.id: t.title for t in running}
    for obs in planner.observe_timers(list(titles)):
        state = "expired" if obs.expired else format_remaining(obs.remaining_seconds)
        echo(format_status(ansi.coral(state), titles[obs.task_id], obs.task_id))


@cli("dayplan timer", name="watch")
def watch(interval: float | None = None) -> None:
    """Poll running timers until they all finish"""
    planner = default_planner(sink=TerminalNotificationSink())
    pause = interval if interval and interval > 0 else config.get_poll_interval()
    watched = False
    try:
        while True:
            running = planner.running_timers()
            if not running:
                echo("all timers finished" if watched else "no timers running")
                return
            watched = True
            try:
                observations = planner.observe_timers([t.id for t in running])
            except NotificationError as e:
                sys.stderr.write(f"{e}\n")
                observations = e.observations
            titles = {t.id: t.title for t in running}
            line = "  ".join(
                f"{titles[o.task_id]} {format_remaining(o.remaining_seconds)}"
                for o in observations
                if o.state == TimerState.RUNNING
            )
            if line:
                echo(ansi.muted(line))
            time.sleep(pause)
    except KeyboardInterrupt:
        echo("")


@cli("dayplan timer", name="default")
def default(minutes: int | None = None) -> None:
    """Show or set the default timer length in minutes"""
    if minutes is not None:
        if minutes < 1:
            raise UsageError("minutes must be >= 1")
        config.set_default_timer_minutes(minutes)
    echo(f"default timer: {config.get_default_timer_minutes()}m")
