from datetime import date, datetime, timedelta, timezone

from dayplan.core.models import RecurrenceType, TimerState
from dayplan.lib.converters import (
    TASK_COLUMNS,
    _parse_date,
    _parse_datetime,
    _split_csv,
    row_to_task,
    task_to_row,
)
from tests.conftest import make_task


def test_parse_date_from_iso_string():
    assert _parse_date("2025-10-30") == date(2025, 10, 30)


def test_parse_date_from_iso_datetime_string():
    assert _parse_date("2025-10-30T14:30:00") == date(2025, 10, 30)


def test_parse_date_empty():
    assert _parse_date("") is None
    assert _parse_date(None) is None


def test_parse_datetime_keeps_offset():
    parsed = _parse_datetime("2024-01-01T09:25:00+10:00")
    assert parsed is not None
    assert parsed.utcoffset() == timedelta(hours=10)


def test_split_csv_drops_blanks():
    assert _split_csv("a, b,,c ") == ["a", "b", "c"]
    assert _split_csv(None) == []


def test_row_has_a_value_per_column():
    assert len(task_to_row(make_task())) == len(TASK_COLUMNS)


def test_row_to_task_reads_recurrence_and_timer():
    ends = datetime(2024, 1, 1, 9, 25, tzinfo=timezone.utc)
    task = make_task(
        is_recurring=True,
        recurrence_type=RecurrenceType.WEEKLY,
        recurrence_interval=2,
        recurrence_weekdays=("mon", "fri"),
        series_id="series-1",
        occurrence_date=date(2024, 1, 1),
        timer_enabled=True,
        timer_minutes=25,
        timer_state=TimerState.RUNNING,
        timer_ends_at=ends,
    )
    row = task_to_row(task)
    assert row[TASK_COLUMNS.index("recurrence_weekdays")] == "mon,fri"
    assert row[TASK_COLUMNS.index("timer_ends_at")] == "2024-01-01T09:25:00+00:00"
    assert row_to_task(row) == task


def test_row_to_task_treats_missing_timer_state_as_none():
    row = list(task_to_row(make_task()))
    row[TASK_COLUMNS.index("timer_state")] = ""
    assert row_to_task(tuple(row)).timer_state is None
