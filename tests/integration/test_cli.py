from datetime import datetime, timezone

from dayplan.core.models import TaskStatus, TimerState
from dayplan.planner import Planner, default_planner
from dayplan.store import TaskStore
from tests.conftest import FixedClock, FnCLIRunner, RecordingSink


def test_add_then_overview(tmp_dayplan_dir):
    runner = FnCLIRunner()
    add_result = runner.invoke(["add", "water", "plants", "-t", "home"])
    assert add_result.exit_code == 0
    assert "water plants" in add_result.stdout

    dash_result = runner.invoke([])
    assert dash_result.exit_code == 0
    assert "TODAY" in dash_result.stdout
    assert "water plants" in dash_result.stdout
    assert "#home" in dash_result.stdout


def test_done_resolves_by_title(tmp_dayplan_dir):
    runner = FnCLIRunner()
    runner.invoke(["add", "file taxes"])

    result = runner.invoke(["done", "taxes"])

    assert result.exit_code == 0
    [task] = default_planner().get_overview().today
    assert task.status == TaskStatus.DONE


def test_recurring_task_shows_next_occurrence(tmp_dayplan_dir):
    runner = FnCLIRunner()
    runner.invoke(["add", "stretch", "-e", "daily"])
    runner.invoke(["done", "stretch"])

    result = runner.invoke([])

    assert "UPCOMING" in result.stdout
    assert result.stdout.count("stretch") == 2


def test_rm_then_show_fails(tmp_dayplan_dir):
    runner = FnCLIRunner()
    runner.invoke(["add", "temporary thing"])

    assert runner.invoke(["rm", "temporary"]).exit_code == 0

    show_result = runner.invoke(["show", "temporary"])
    assert show_result.exit_code != 0
    assert "task not found" in show_result.stderr


def test_ambiguous_ref_fails(tmp_dayplan_dir):
    runner = FnCLIRunner()
    runner.invoke(["add", "call mum"])
    runner.invoke(["add", "call bank"])

    result = runner.invoke(["done", "call"])

    assert result.exit_code != 0
    assert "ambiguous" in result.stderr


def test_timer_start_and_stop(tmp_dayplan_dir):
    runner = FnCLIRunner()
    runner.invoke(["add", "focus", "-m", "30"])

    assert runner.invoke(["timer", "start", "focus"]).exit_code == 0
    [task] = default_planner().running_timers()
    assert task.timer_minutes == 30

    assert runner.invoke(["timer", "stop", "focus"]).exit_code == 0
    assert default_planner().get_task(task.id).timer_state == TimerState.IDLE


def test_up_moves_task(tmp_dayplan_dir):
    runner = FnCLIRunner()
    runner.invoke(["add", "first"])
    runner.invoke(["add", "second"])

    assert runner.invoke(["up", "second"]).exit_code == 0

    today = default_planner().get_overview().today
    assert [t.title for t in sorted(today, key=lambda t: t.sort_order)] == ["second", "first"]


def test_done_without_ref_is_usage_error(tmp_dayplan_dir):
    result = FnCLIRunner().invoke(["done"])
    assert result.exit_code != 0


def test_up_names_the_swapped_rolled_task(tmp_dayplan_dir):
    runner = FnCLIRunner()
    runner.invoke(["add", "leftover", "-d", "yesterday"])
    runner.invoke([])
    runner.invoke(["add", "fresh"])

    result = runner.invoke(["up", "fresh"])

    assert result.exit_code == 0
    assert "swapped with leftover (rolled over)" in result.stdout


def test_add_with_deadline_shows_it(tmp_dayplan_dir):
    runner = FnCLIRunner()
    assert runner.invoke(["add", "submit", "form", "--deadline", "23:30"]).exit_code == 0

    [task] = default_planner().get_overview().today
    assert task.deadline_at is not None
    assert (task.deadline_at.hour, task.deadline_at.minute) == (23, 30)
    assert "due today 23:30" in runner.invoke(["show", "submit"]).stdout

    assert runner.invoke(["edit", "submit", "--no-deadline"]).exit_code == 0
    assert default_planner().get_task(task.id).deadline_at is None


def test_reorder_compact_closes_gaps(tmp_dayplan_dir):
    runner = FnCLIRunner()
    for title in ("alpha", "bravo", "charlie"):
        runner.invoke(["add", title])
    runner.invoke(["edit", "bravo", "-d", "tomorrow"])

    result = runner.invoke(["reorder", "today", "--compact"])

    assert result.exit_code == 0
    today = default_planner().get_overview().today
    assert sorted((t.sort_order, t.title) for t in today) == [(0, "alpha"), (1, "charlie")]


def test_timer_watch_reports_expired_timer(tmp_dayplan_dir, monkeypatch):
    past = FixedClock(datetime(2020, 1, 1, 9, 0, tzinfo=timezone.utc))
    planner = Planner(TaskStore(), past, RecordingSink())
    task = planner.add_task("old focus", timer_enabled=True, timer_minutes=5)
    planner.start_timer(task.id)
    monkeypatch.setattr("dayplan.timers.time.sleep", lambda _seconds: None)

    result = FnCLIRunner().invoke(["timer", "watch"])

    assert result.exit_code == 0
    assert "time's up: old focus" in result.stdout
    assert "all timers finished" in result.stdout
    assert default_planner().get_task(task.id).timer_state == TimerState.FINISHED


def test_timer_watch_without_timers(tmp_dayplan_dir):
    result = FnCLIRunner().invoke(["timer", "watch"])
    assert result.exit_code == 0
    assert "no timers running" in result.stdout
