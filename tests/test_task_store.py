# tests/test_task_store.py

from __future__ import annotations

import sqlite3
from datetime import timedelta
from pathlib import Path

import pytest

from household_tracker.errors import (
    InvalidTransition,
    StorageError,
    TaskNotFoundError,
    ValidationError,
    classify_transient,
)
from household_tracker.tasks.task_models import Task, TaskStatus
from household_tracker.tasks.task_store import SqliteTaskStore

from .fakes import TODAY, make_task


@pytest.fixture()
def db(tmp_path: Path) -> SqliteTaskStore:
    return SqliteTaskStore(tmp_path / "tasks.sqlite3", clock=lambda: TODAY)


def test_add_get_update_delete(db: SqliteTaskStore) -> None:
    task = Task(
        name="Clean bathroom",
        description="Sink, tub, mirror",
        due_date=TODAY + timedelta(days=3),
        priority=4,
        assigned_to="Anna",
        type="Cleaning",
    )
    stored = db.add(task)
    assert stored.id > 0
    assert db.count_tasks() == 1

    loaded = db.get_by_id(stored.id)
    assert loaded == stored

    loaded.description = "Sink and tub"
    loaded.priority = 2
    db.update(loaded)
    assert db.get_by_id(stored.id).description == "Sink and tub"
    assert db.get_by_id(stored.id).priority == 2

    db.delete(stored.id)
    assert db.get_all() == []
    with pytest.raises(TaskNotFoundError):
        db.get_by_id(stored.id)


def test_missing_ids_raise_non_transient_not_found(db: SqliteTaskStore) -> None:
    with pytest.raises(TaskNotFoundError) as ei:
        db.delete(123)
    assert ei.value.transient is False

    with pytest.raises(TaskNotFoundError):
        db.update(make_task("Nope", id=123))

    with pytest.raises(TaskNotFoundError):
        db.set_status(123, TaskStatus.ACTIVE)


def test_add_validates(db: SqliteTaskStore) -> None:
    with pytest.raises(ValidationError):
        db.add(make_task("", priority=3))
    with pytest.raises(ValidationError):
        db.add(make_task("Too important", priority=9))
    assert db.count_tasks() == 0


def test_set_status_is_guarded_and_stamps_completion(db: SqliteTaskStore) -> None:
    t = db.add(make_task("Take out trash"))
    db.set_status(t.id, TaskStatus.COMPLETED)
    done = db.get_by_id(t.id)
    assert done.status == TaskStatus.COMPLETED
    assert done.last_completed == TODAY

    with pytest.raises(InvalidTransition):
        db.set_status(t.id, TaskStatus.CANCELLED)
    assert db.get_by_id(t.id).status == TaskStatus.COMPLETED

    db.set_status(t.id, TaskStatus.ACTIVE)
    again = db.get_by_id(t.id)
    assert again.status == TaskStatus.ACTIVE
    assert again.last_completed == TODAY


def test_get_all_orders_by_due_date_then_priority(db: SqliteTaskStore) -> None:
    db.add(make_task("later", due_date=TODAY + timedelta(days=5)))
    db.add(make_task("no date"))
    db.add(make_task("soon low", due_date=TODAY, priority=1))
    db.add(make_task("soon high", due_date=TODAY, priority=5))

    assert [t.name for t in db.get_all()] == ["soon high", "soon low", "later", "no date"]


def test_extra_queries(db: SqliteTaskStore) -> None:
    db.add(make_task("a", assigned_to="Mom", due_date=TODAY))
    db.add(make_task("b", assigned_to="Dad", due_date=TODAY + timedelta(days=10)))
    db.add(make_task("c", assigned_to="Mom"))

    assert [t.name for t in db.list_by_assignee("Mom")] == ["a", "c"]
    assert db.list_by_assignee("") == []
    due = db.list_due_between(TODAY, TODAY + timedelta(days=7))
    assert [t.name for t in due] == ["a"]


def test_data_survives_reopen(tmp_path: Path) -> None:
    path = tmp_path / "tasks.sqlite3"
    first = SqliteTaskStore(path)
    t = first.add(make_task("Persist me"))
    second = SqliteTaskStore(path)
    assert second.get_by_id(t.id).name == "Persist me"


def test_migration_adds_missing_columns(tmp_path: Path) -> None:
    path = tmp_path / "old.sqlite3"
    conn = sqlite3.connect(str(path))
    conn.execute(
        """
        CREATE TABLE tasks (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            due_date TEXT,
            priority INTEGER NOT NULL DEFAULT 3,
            assigned_to TEXT,
            status TEXT NOT NULL DEFAULT 'active'
        )
        """
    )
    conn.execute("INSERT INTO tasks(name) VALUES ('legacy')")
    conn.commit()
    conn.close()

    db = SqliteTaskStore(path)
    (task,) = db.get_all()
    assert task.name == "legacy"
    assert task.type is None
    assert task.last_completed is None


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (sqlite3.OperationalError("database is locked"), True),
        (sqlite3.OperationalError("unable to open database file"), True),
        (ConnectionRefusedError("refused"), True),
        (TimeoutError(), True),
        (sqlite3.OperationalError("no such table: tasks"), False),
        (sqlite3.IntegrityError("CHECK constraint failed: priority"), False),
        (StorageError("anything", transient=True), True),
    ],
)
def test_classify_transient(exc: BaseException, expected: bool) -> None:
    assert classify_transient(exc) is expected


def test_unopenable_database_is_transient(tmp_path: Path) -> None:
    # A directory cannot be opened as a database file.
    with pytest.raises(StorageError) as ei:
        SqliteTaskStore(tmp_path)
    assert ei.value.transient is True


def test_overdue_is_written_only_while_the_row_qualifies(db: SqliteTaskStore) -> None:
    late = db.add(make_task("Mop floor", due_date=TODAY - timedelta(days=2)))
    closed = db.add(make_task("Fix shelf", due_date=TODAY - timedelta(days=2)))
    db.set_status(closed.id, TaskStatus.COMPLETED)
    upcoming = db.add(make_task("Buy soap", due_date=TODAY))

    assert db.set_status(late.id, TaskStatus.OVERDUE) is True
    assert db.set_status(closed.id, TaskStatus.OVERDUE) is False
    assert db.set_status(upcoming.id, TaskStatus.OVERDUE) is False

    assert db.get_by_id(late.id).status == TaskStatus.OVERDUE
    assert db.get_by_id(closed.id).status == TaskStatus.COMPLETED
    assert db.get_by_id(upcoming.id).status == TaskStatus.ACTIVE
    with pytest.raises(TaskNotFoundError):
        db.set_status(999, TaskStatus.OVERDUE)
