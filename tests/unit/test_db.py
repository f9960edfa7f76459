import dataclasses
import sqlite3
from datetime import date

import pytest

from dayplan import config, db
from dayplan.core.errors import NotFoundError, StoreError
from dayplan.core.models import RecurrenceType, TaskStatus
from dayplan.db import load_migrations
from dayplan.store import TaskStore
from tests.conftest import make_task


def test_init_creates_schema(tmp_dayplan_dir):
    """db.init() creates the tasks table and records applied migrations."""
    with db.get_db() as conn:
        tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        applied = {r[0] for r in conn.execute("SELECT name FROM _migrations")}
    assert "tasks" in tables
    assert applied == {name for name, _ in load_migrations()}


def test_init_creates_indexes(tmp_dayplan_dir):
    db.init()
    with db.get_db() as conn:
        indexes = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='index'")}
    assert {"idx_tasks_target_date", "idx_tasks_series", "idx_tasks_date_sort"} <= indexes


def test_init_is_repeatable(tmp_dayplan_dir):
    TaskStore().transaction(lambda s: s.insert(make_task()))
    db.init()
    assert TaskStore().get("task-0001") is not None
    assert not list((config.BACKUP_DIR / "migrations").glob("*.backup"))


def test_get_db_rolls_back_on_error(tmp_dayplan_dir):
    with pytest.raises(RuntimeError), db.get_db() as conn:
        conn.execute(
            "INSERT INTO tasks (id, title, target_date, created_at, updated_at) "
            "VALUES ('x', 'x', '2024-01-01', 'now', 'now')"
        )
        raise RuntimeError("abort")
    with db.get_db() as conn:
        assert conn.execute("SELECT COUNT(*) FROM tasks").fetchone()[0] == 0


def test_store_round_trips_task(tmp_dayplan_dir):
    task = make_task(tags=["home", "work"], notes="call first")
    store = TaskStore()
    store.transaction(lambda s: s.insert(task))
    assert store.get(task.id) == task


def test_unique_position_per_day_is_enforced(tmp_dayplan_dir):
    store = TaskStore()
    store.transaction(lambda s: s.insert(make_task(id="a")))
    with pytest.raises(StoreError) as exc:
        store.transaction(lambda s: s.insert(make_task(id="b")))
    assert exc.value.constraint


def test_schema_rejects_blank_title(tmp_dayplan_dir):
    with pytest.raises(StoreError):
        TaskStore().transaction(lambda s: s.insert(make_task(title="   ")))


def test_session_rolls_back_whole_operation(tmp_dayplan_dir):
    store = TaskStore()

    def two_inserts(session):
        session.insert(make_task(id="a"))
        session.insert(make_task(id="b"))

    with pytest.raises(StoreError):
        store.transaction(two_inserts)
    assert store.get("a") is None


def test_update_missing_task_raises(tmp_dayplan_dir):
    with pytest.raises(NotFoundError):
        TaskStore().transaction(lambda s: s.update(make_task(id="ghost")))


def test_savepoint_undoes_only_inner_work(tmp_dayplan_dir):
    store = TaskStore()
    with store.session() as session:
        session.insert(make_task(id="outer"))
        with pytest.raises(ValueError), session.savepoint():
            session.insert(make_task(id="inner", sort_order=1))
            raise ValueError("inner failure")
    assert store.get("outer") is not None
    assert store.get("inner") is None


def test_find_resolved_recurring_skips_linked(tmp_dayplan_dir):
    base = {
        "is_recurring": True,
        "recurrence_type": RecurrenceType.DAILY,
        "series_id": "s",
        "status": TaskStatus.DONE,
    }
    linked = make_task(id="linked", successor_id="next", **base)
    pending = make_task(id="pending", sort_order=1, **base)
    pending = dataclasses.replace(pending, occurrence_date=date(2024, 1, 1))
    store = TaskStore()
    with store.session() as session:
        session.insert(linked)
        session.insert(pending)
    with store.session() as session:
        found = session.find_resolved_recurring(date(2024, 1, 1))
    assert [t.id for t in found] == ["pending"]


def test_connect_enables_wal(tmp_dayplan_dir):
    conn = db.connect(config.DB_PATH)
    try:
        mode = conn.execute("PRAGMA journal_mode").fetchone()[0]
    finally:
        conn.close()
    assert mode == "wal"


def test_check_data_loss_detects_dropped_rows(tmp_path):
    conn = sqlite3.connect(tmp_path / "x.db")
    conn.execute("CREATE TABLE t (id INTEGER)")
    with pytest.raises(ValueError, match="data loss"):
        db._check_data_loss(conn, {"t": 3})
    conn.close()


def test_deadline_column_added_by_migration(tmp_dayplan_dir):
    with db.get_db() as conn:
        columns = {r[1] for r in conn.execute("PRAGMA table_info(tasks)")}
    assert "deadline_at" in columns
