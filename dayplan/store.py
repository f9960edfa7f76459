"""SQLite-backed task store.

Every logical engine operation runs inside one ``TaskStore.session()``: a
``BEGIN IMMEDIATE`` transaction that commits on success and rolls back on any
error. sqlite errors leave this module as ``StoreError``.
"""

import logging
import sqlite3
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import TypeVar

from . import db
from .core.errors import NotFoundError, StoreError
from .core.models import RESOLVED_STATUSES, Task
from .lib.converters import TASK_COLUMNS, format_date, row_to_task, task_to_row

logger = logging.getLogger(__name__)

R = TypeVar("R")

_COLS = ", ".join(TASK_COLUMNS)
_PLACEHOLDERS = ", ".join("?" for _ in TASK_COLUMNS)
_ASSIGNMENTS = ", ".join(f"{c} = ?" for c in TASK_COLUMNS if c != "id")
_RESOLVED = tuple(s.value for s in RESOLVED_STATUSES)
_BUCKET_ORDER = "ORDER BY sort_order, created_at, id"


@contextmanager
def _translate_errors(action: str):
    try:
        yield
    except sqlite3.IntegrityError as e:
        raise StoreError(f"{action} failed: {e}", constraint=True) from e
    except sqlite3.Error as e:
        raise StoreError(f"{action} failed: {e}") from e


class Session:
    """Task operations bound to one open transaction."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def _fetch(self, where: str, params: tuple[object, ...] = (), order: str = "") -> list[Task]:
        sql = f"SELECT {_COLS} FROM tasks WHERE {where} {order}"  # noqa: S608
        with _translate_errors("query"):
            rows = self._conn.execute(sql, params).fetchall()
        return [row_to_task(row) for row in rows]

    def get(self, task_id: str) -> Task | None:
        tasks = self._fetch("id = ?", (task_id,))
        return tasks[0] if tasks else None

    def require(self, task_id: str) -> Task:
        task = self.get(task_id)
        if task is None:
            raise NotFoundError(task_id)
        return task

    def find_by_date_range(self, start: date, end: date | None = None) -> list[Task]:
        """Tasks with start <= target_date (<= end), by date then position."""
        if end is None:
            return self._fetch(
                "target_date >= ?", (format_date(start),), "ORDER BY target_date, sort_order"
            )
        return self._fetch(
            "target_date >= ? AND target_date <= ?",
            (format_date(start), format_date(end)),
            "ORDER BY target_date, sort_order",
        )

    def find_unresolved_before(self, day: date) -> list[Task]:
        return self._fetch(
            "target_date < ? AND status NOT IN (?, ?)",
            (format_date(day), *_RESOLVED),
            "ORDER BY target_date, sort_order, created_at, id",
        )

    def find_resolved_recurring(self, through: date) -> list[Task]:
        """Resolved recurring occurrences on or before ``through`` that have not spawned yet."""
        return self._fetch(
            "is_recurring = 1 AND series_id IS NOT NULL AND successor_id IS NULL "
            "AND target_date <= ? AND status IN (?, ?)",
            (format_date(through), *_RESOLVED),
            "ORDER BY target_date, sort_order, created_at, id",
        )

    def find_in_bucket(self, day: date) -> list[Task]:
        return self._fetch("target_date = ?", (format_date(day),), _BUCKET_ORDER)

    def find_running_timers(self) -> list[Task]:
        return self._fetch("timer_state = 'running'", (), "ORDER BY timer_ends_at, id")

    def max_sort_order(self, day: date, exclude_id: str | None = None) -> int | None:
        sql = "SELECT MAX(sort_order) FROM tasks WHERE target_date = ?"
        params: tuple[object, ...] = (format_date(day),)
        if exclude_id is not None:
            sql += " AND id != ?"
            params = (*params, exclude_id)
        with _translate_errors("query"):
            row = self._conn.execute(sql, params).fetchone()
        return row[0] if row and row[0] is not None else None

    def find_series_occurrence(self, series_id: str, occurrence_date: date) -> Task | None:
        tasks = self._fetch(
            "series_id = ? AND occurrence_date = ?",
            (series_id, format_date(occurrence_date)),
            "ORDER BY created_at, id LIMIT 1",
        )
        return tasks[0] if tasks else None

    def list_tags(self) -> list[str]:
        with _translate_errors("query"):
            rows = self._conn.execute("SELECT tags FROM tasks WHERE tags != ''").fetchall()
        tags = {t.strip() for (csv,) in rows for t in csv.split(",") if t.strip()}
        return sorted(tags)

    def insert(self, task: Task) -> Task:
        with _translate_errors(f"insert {task.id}"):
            self._conn.execute(
                f"INSERT INTO tasks ({_COLS}) VALUES ({_PLACEHOLDERS})",  # noqa: S608
                task_to_row(task),
            )
        logger.debug("inserted task %s on %s", task.id, task.target_date)
        return task

    def update(self, task: Task) -> Task:
        values = task_to_row(task)
        with _translate_errors(f"update {task.id}"):
            cur = self._conn.execute(
                f"UPDATE tasks SET {_ASSIGNMENTS} WHERE id = ?",  # noqa: S608
                (*values[1:], task.id),
            )
        if cur.rowcount == 0:
            raise NotFoundError(task.id)
        return task

    def set_sort_order(self, task_id: str, sort_order: int, updated_at: str) -> None:
        with _translate_errors(f"reposition {task_id}"):
            self._conn.execute(
                "UPDATE tasks SET sort_order = ?, updated_at = ? WHERE id = ?",
                (sort_order, updated_at, task_id),
            )

    def delete(self, task_id: str) -> bool:
        with _translate_errors(f"delete {task_id}"):
            cur = self._conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        return cur.rowcount > 0

    @contextmanager
    def savepoint(self, name: str = "task") -> Iterator["Session"]:
        """Nested unit of work: an error rolls back only what ran inside it."""
        with _translate_errors("savepoint"):
            self._conn.execute(f"SAVEPOINT {name}")
        try:
            yield self
        except Exception:
            with _translate_errors("rollback to savepoint"):
                self._conn.execute(f"ROLLBACK TO {name}")
                self._conn.execute(f"RELEASE {name}")
            raise
        with _translate_errors("release savepoint"):
            self._conn.execute(f"RELEASE {name}")


class TaskStore:
    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path

    @property
    def db_path(self) -> Path | None:
        return self._db_path

    @contextmanager
    def session(self) -> Iterator[Session]:
        with _translate_errors("transaction"), db.get_db(self._db_path, immediate=True) as conn:
            yield Session(conn)

    def transaction(self, fn: Callable[[Session], R]) -> R:
        with self.session() as session:
            return fn(session)

    def get(self, task_id: str) -> Task | None:
        with self.session() as session:
            return session.get(task_id)
