import dataclasses
import io
from contextlib import redirect_stderr, redirect_stdout
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import fncli
import pytest

import dayplan
from dayplan import config, db
from dayplan.core.errors import DayplanError
from dayplan.core.models import Task, TaskStatus
from dayplan.planner import Planner
from dayplan.store import TaskStore

UTC = timezone.utc


@pytest.fixture
def tmp_dayplan_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "DAYPLAN_DIR", tmp_path)
    monkeypatch.setattr(config, "DB_PATH", tmp_path / "dayplan.db")
    monkeypatch.setattr(config, "CONFIG_PATH", tmp_path / "config.yaml")
    monkeypatch.setattr(config, "BACKUP_DIR", tmp_path / "backups")
    monkeypatch.setattr(config, "LOG_DIR", tmp_path / "logs")
    monkeypatch.setattr(config._config, "_data", {})
    db.init()
    return tmp_path


class FixedClock:
    """Settable clock; ``today`` follows ``now``."""

    def __init__(self, current: datetime | None = None) -> None:
        self.current = current or datetime(2024, 1, 1, 9, 0, tzinfo=UTC)

    def now(self) -> datetime:
        return self.current

    def today(self) -> date:
        return self.current.date()

    def set(self, current: datetime) -> None:
        self.current = current

    def set_day(self, day: date) -> None:
        self.current = datetime.combine(day, self.current.timetz())

    def advance(self, **kwargs: float) -> None:
        self.current = self.current + timedelta(**kwargs)


class RecordingSink:
    def __init__(self) -> None:
        self.expired: list[Task] = []

    def timer_expired(self, task: Task) -> None:
        self.expired.append(task)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def planner(tmp_dayplan_dir, clock, sink) -> Planner:
    return Planner(TaskStore(), clock, sink)


@dataclasses.dataclass
class CLIResult:
    exit_code: int
    stdout: str
    stderr: str


class FnCLIRunner:
    """Runs commands the way ``dayplan.cli.main`` does, capturing output."""

    def __init__(self) -> None:
        fncli.autodiscover(Path(dayplan.__file__).parent, "dayplan")

    def invoke(self, args: list[str]) -> CLIResult:
        argv = ["dayplan", *args] if args else ["dayplan", "overview"]
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            try:
                code = fncli.dispatch(argv)
            except DayplanError as e:
                err.write(f"{e}\n")
                code = 1
            except SystemExit as e:
                code = e.code if isinstance(e.code, int) else 1
        return CLIResult(exit_code=code or 0, stdout=out.getvalue(), stderr=err.getvalue())


def make_task(**overrides) -> Task:
    """Unsaved task for pure-function tests."""
    stamp = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)
    fields: dict[str, object] = {
        "id": "task-0001",
        "title": "write report",
        "target_date": date(2024, 1, 1),
        "status": TaskStatus.TODO,
        "sort_order": 0,
        "created_at": stamp,
        "updated_at": stamp,
    }
    fields.update(overrides)
    return Task(**fields)  # type: ignore[arg-type]
