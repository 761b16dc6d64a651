# src/household_tracker/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import StrEnum
from typing import Any

from ..errors import InvalidOperation, InvalidTransition, ValidationError

MIN_PRIORITY = 1
MAX_PRIORITY = 5

_MISSING = object()


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    There is no terminal state: ACTIVE is reachable from every other status.
    OVERDUE is normally derived from the due date (see derive_status), not set by hand.
    """

    ACTIVE = "active"
    COMPLETED = "completed"
    POSTPONED = "postponed"
    CANCELLED = "cancelled"
    OVERDUE = "overdue"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, raw: str | TaskStatus | None) -> TaskStatus:
        if isinstance(raw, TaskStatus):
            return raw
        if raw is None or not str(raw).strip():
            raise ValidationError("Task status cannot be empty")
        key = str(raw).strip().lower()
        try:
            return cls(key)
        except ValueError:
            raise ValidationError(f"Unknown task status: {raw!r}") from None


def is_transition_allowed(current: TaskStatus, new: TaskStatus) -> bool:
    if current == new:
        return True
    if new == TaskStatus.COMPLETED:
        return current != TaskStatus.CANCELLED
    if new == TaskStatus.CANCELLED:
        return current != TaskStatus.COMPLETED
    return True


def is_overdue(status: TaskStatus, due_date: date | None, today: date) -> bool:
    return (
        status in (TaskStatus.ACTIVE, TaskStatus.POSTPONED)
        and due_date is not None
        and due_date < today
    )


def derive_status(status: TaskStatus, due_date: date | None, today: date) -> TaskStatus:
    """Status a task should have on `today`. Pure; applying it twice changes nothing."""
    if is_overdue(status, due_date, today):
        return TaskStatus.OVERDUE
    return status


@dataclass(slots=True)
class Task:
    """
    A recurring household task.

    Assigning `status` is guarded: the same value is a no-op, a disallowed
    change raises InvalidTransition.
    """

    name: str
    description: str | None = ""
    due_date: date | None = None
    priority: int = 3
    assigned_to: str | None = None
    type: str | None = None
    status: TaskStatus = TaskStatus.ACTIVE
    last_completed: date | None = None
    id: int = 0

    def __setattr__(self, key: str, value: Any) -> None:
        if key == "status":
            current = getattr(self, "status", _MISSING)
            if current is not _MISSING:
                if value == current:
                    return
                if not isinstance(value, TaskStatus) or not is_transition_allowed(current, value):
                    raise InvalidTransition(current, value)
        object.__setattr__(self, key, value)

    def complete(self, today: date | None = None) -> None:
        if self.status == TaskStatus.COMPLETED:
            return
        self.status = TaskStatus.COMPLETED
        self.last_completed = today or date.today()

    def reactivate(self) -> None:
        self.status = TaskStatus.ACTIVE

    def cancel(self) -> None:
        self.status = TaskStatus.CANCELLED

    def postpone(self, days: int) -> None:
        """Shift the due date by `days` and mark the task postponed."""
        if self.status in (TaskStatus.COMPLETED, TaskStatus.CANCELLED):
            raise InvalidOperation(
                f"Cannot postpone a {self.status.display_name.lower()} task (id={self.id})"
            )
        new_due = self.due_date
        if new_due is not None:
            try:
                new_due = new_due + timedelta(days=int(days))
            except OverflowError:
                raise InvalidOperation(f"Cannot postpone by {days} days: date out of range") from None
        self.status = TaskStatus.POSTPONED
        self.due_date = new_due

    def __str__(self) -> str:
        due = self.due_date.isoformat() if self.due_date else "no due date"
        return f"{self.name} [{self.status.display_name}, {due}]"


def validate_task(task: Task) -> None:
    if task is None:
        raise ValidationError("Task cannot be None")
    if not isinstance(task.name, str) or not task.name.strip():
        raise ValidationError("Task name cannot be empty")
    if not isinstance(task.status, TaskStatus):
        raise ValidationError("Task status cannot be empty")
    prio = task.priority
    if isinstance(prio, bool) or not isinstance(prio, int) or not MIN_PRIORITY <= prio <= MAX_PRIORITY:
        raise ValidationError(f"Priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}, got {prio!r}")


def _date_to_str(d: date | None) -> str | None:
    return d.isoformat() if d is not None else None


def _str_to_date(s: str | None) -> date | None:
    if not s:
        return None
    return date.fromisoformat(s)


def task_to_dict(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "name": task.name,
        "description": task.description,
        "due_date": _date_to_str(task.due_date),
        "priority": task.priority,
        "assigned_to": task.assigned_to,
        "type": task.type,
        "status": task.status.value,
        "last_completed": _date_to_str(task.last_completed),
    }


def task_from_dict(data: dict[str, Any]) -> Task:
    return Task(
        id=int(data.get("id") or 0),
        name=str(data["name"]),
        description=data.get("description", ""),
        due_date=_str_to_date(data.get("due_date")),
        priority=int(data.get("priority", 3)),
        assigned_to=data.get("assigned_to"),
        type=data.get("type"),
        status=TaskStatus.parse(data.get("status") or TaskStatus.ACTIVE),
        last_completed=_str_to_date(data.get("last_completed")),
    )
