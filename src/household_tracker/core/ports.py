# src/household_tracker/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The sync coordinator and the overdue sweeper depend on this Protocol instead of a
concrete engine, so storage backends stay swappable and tests can use an in-memory fake.
"""

from typing import Protocol

from ..tasks.task_models import Task, TaskStatus


class TaskStore(Protocol):
    """
    Persistence contract.

    Every method may raise StorageError; `transient=True` marks connectivity/timeout
    failures. A missing id raises TaskNotFoundError (never transient).
    """

    def get_all(self) -> list[Task]: ...
    def get_by_id(self, task_id: int) -> Task: ...

    # Returns the stored task carrying its newly assigned id.
    def add(self, task: Task) -> Task: ...
    def update(self, task: Task) -> None: ...
    def delete(self, task_id: int) -> None: ...

    # Returns False when nothing was written. OVERDUE is only written while the
    # stored task is still active or postponed with a past due date.
    def set_status(self, task_id: int, status: TaskStatus) -> bool: ...
