# src/household_tracker/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from collections.abc import Callable, Iterator
from datetime import date
from pathlib import Path
from typing import Any

from ..errors import StorageError, TaskNotFoundError
from .task_models import Task, TaskStatus, validate_task

logger = logging.getLogger(__name__)


class SqliteTaskStore:
    """
    SQLite implementation of the TaskStore port.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection

    Every sqlite3.Error leaves this class as a StorageError; locked/unopenable
    databases are classified as transient.
    """

    def __init__(
        self,
        db_path: str | Path = "tasks.sqlite3",
        *,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except StorageError:
            total = -1
        logger.info("SqliteTaskStore ready db=%s total=%s", self._db_path, total)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    @contextlib.contextmanager
    def _conn(self, action: str) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(str(self._db_path), timeout=10.0)
        except sqlite3.Error as e:
            raise StorageError.wrap(e, action) from e
        conn.row_factory = sqlite3.Row
        try:
            with contextlib.suppress(sqlite3.Error):
                conn.execute("PRAGMA journal_mode=WAL")
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError.wrap(e, action) from e
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._conn("ensure schema") as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    due_date TEXT,
                    priority INTEGER NOT NULL DEFAULT 3
                        CHECK (priority BETWEEN 1 AND 5),
                    assigned_to TEXT,
                    status TEXT NOT NULL DEFAULT 'active',
                    last_completed TEXT,
                    type TEXT
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("SqliteTaskStore migration: added column %s", name)

            add_col("last_completed", "TEXT")
            add_col("type", "TEXT")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_due_status ON tasks(status, due_date)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_assignee ON tasks(assigned_to)")

    @staticmethod
    def _date_param(d: date | None) -> str | None:
        return d.isoformat() if d is not None else None

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=int(row["id"]),
            name=str(row["name"] or ""),
            description=str(row["description"] or ""),
            due_date=date.fromisoformat(row["due_date"]) if row["due_date"] else None,
            priority=int(row["priority"]),
            assigned_to=row["assigned_to"],
            type=row["type"],
            status=TaskStatus.parse(row["status"]),
            last_completed=(
                date.fromisoformat(row["last_completed"]) if row["last_completed"] else None
            ),
        )

    def _task_params(self, task: Task) -> tuple[Any, ...]:
        return (
            task.name.strip(),
            task.description or "",
            self._date_param(task.due_date),
            int(task.priority),
            task.assigned_to,
            task.status.value,
            self._date_param(task.last_completed),
            task.type,
        )

    # ---- public API (TaskStore port) ----

    def count_tasks(self) -> int:
        with self._conn("count tasks") as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)

    def get_all(self) -> list[Task]:
        with self._conn("get all tasks") as conn:
            rows = conn.execute(
                "SELECT * FROM tasks ORDER BY due_date IS NULL, due_date, priority DESC, id"
            ).fetchall()
            return [self._row_to_task(r) for r in rows]

    def get_by_id(self, task_id: int) -> Task:
        with self._conn("get task") as conn:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),)).fetchone()
        if row is None:
            raise TaskNotFoundError(task_id)
        return self._row_to_task(row)

    def add(self, task: Task) -> Task:
        validate_task(task)
        with self._conn("add task") as conn:
            cur = conn.execute(
                """
                INSERT INTO tasks(
                    name, description, due_date, priority,
                    assigned_to, status, last_completed, type
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                self._task_params(task),
            )
            rowid = cur.lastrowid
        if rowid is None:
            raise StorageError("SQLite did not return lastrowid for tasks insert")
        task.id = int(rowid)
        logger.debug("Task added id=%s name=%s status=%s", task.id, task.name, task.status.value)
        return task

    def update(self, task: Task) -> None:
        validate_task(task)
        with self._conn("update task") as conn:
            cur = conn.execute(
                """
                UPDATE tasks
                SET name = ?, description = ?, due_date = ?, priority = ?,
                    assigned_to = ?, status = ?, last_completed = ?, type = ?
                WHERE id = ?
                """,
                (*self._task_params(task), int(task.id)),
            )
            affected = cur.rowcount
        if affected == 0:
            raise TaskNotFoundError(task.id)

    def delete(self, task_id: int) -> None:
        with self._conn("delete task") as conn:
            affected = conn.execute("DELETE FROM tasks WHERE id = ?", (int(task_id),)).rowcount
        if affected == 0:
            raise TaskNotFoundError(task_id)

    def set_status(self, task_id: int, status: TaskStatus) -> bool:
        """
        Guarded status change. Returns False when nothing was written.

        Raises InvalidTransition when the guard rejects it; entering COMPLETED
        stamps last_completed with today's date.

        OVERDUE is only written while the row itself still qualifies (active or
        postponed, due date before today), checked in the same UPDATE statement.
        A task completed or cancelled after the caller read it is left alone.
        """
        if status == TaskStatus.OVERDUE:
            return self._mark_overdue(task_id)

        task = self.get_by_id(task_id)
        if status == TaskStatus.COMPLETED:
            task.complete(self._clock())
        else:
            task.status = status

        with self._conn("set task status") as conn:
            affected = conn.execute(
                "UPDATE tasks SET status = ?, last_completed = ? WHERE id = ?",
                (task.status.value, self._date_param(task.last_completed), int(task_id)),
            ).rowcount
        if affected == 0:
            raise TaskNotFoundError(task_id)
        return True

    def _mark_overdue(self, task_id: int) -> bool:
        today = self._clock()
        with self._conn("mark task overdue") as conn:
            affected = conn.execute(
                """
                UPDATE tasks
                SET status = ?
                WHERE id = ?
                  AND status IN (?, ?)
                  AND due_date IS NOT NULL
                  AND due_date < ?
                """,
                (
                    TaskStatus.OVERDUE.value,
                    int(task_id),
                    TaskStatus.ACTIVE.value,
                    TaskStatus.POSTPONED.value,
                    today.isoformat(),
                ),
            ).rowcount
            if affected:
                return True
            exists = conn.execute("SELECT 1 FROM tasks WHERE id = ?", (int(task_id),)).fetchone()
        if exists is None:
            raise TaskNotFoundError(task_id)
        logger.debug("Task %s no longer qualifies as overdue, left unchanged", task_id)
        return False

    # ---- extra queries ----

    def list_by_assignee(self, assignee: str) -> list[Task]:
        if not assignee:
            return []
        with self._conn("list tasks by assignee") as conn:
            rows = conn.execute(
                "SELECT * FROM tasks WHERE assigned_to = ? ORDER BY due_date IS NULL, due_date, id",
                (assignee,),
            ).fetchall()
            return [self._row_to_task(r) for r in rows]

    def list_due_between(self, start: date, end: date) -> list[Task]:
        """Tasks whose due date falls in [start, end] (inclusive)."""
        with self._conn("list tasks due between") as conn:
            rows = conn.execute(
                """
                SELECT *
                FROM tasks
                WHERE due_date IS NOT NULL
                  AND due_date BETWEEN ? AND ?
                ORDER BY due_date, priority DESC, id
                """,
                (start.isoformat(), end.isoformat()),
            ).fetchall()
            return [self._row_to_task(r) for r in rows]
