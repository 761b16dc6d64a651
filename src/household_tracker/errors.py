# src/household_tracker/errors.py

"""
Error taxonomy.

- ValidationError / InvalidTransition / InvalidOperation: caller mistakes, never retried.
- StorageError: raised by TaskStore implementations. The `transient` flag tells
  connectivity/timeout problems (worth queueing) from data problems (not-found,
  constraint violations) that must surface immediately.
"""

from __future__ import annotations

import sqlite3

_TRANSIENT_PATTERNS = (
    "connection",
    "refused",
    "timeout",
    "timed out",
    "unreachable",
    "database is locked",
    "unable to open database",
    "disk i/o error",
)


class HouseholdTrackerError(Exception):
    """Base class for all errors raised by household_tracker."""


class ValidationError(HouseholdTrackerError):
    """Task data is invalid (blank name, priority out of range, missing status)."""


class InvalidTransition(HouseholdTrackerError):
    """A status change was rejected by the transition guard."""

    def __init__(self, current: object, new: object) -> None:
        super().__init__(f"Invalid status transition: {current} -> {new}")
        self.current = current
        self.new = new


class InvalidOperation(HouseholdTrackerError):
    """Operation is not permitted for the task in its current state."""


class StorageError(HouseholdTrackerError):
    def __init__(self, message: str, *, transient: bool = False) -> None:
        super().__init__(message)
        self.message = message
        self.transient = transient

    def __repr__(self) -> str:
        return f"StorageError({self.message!r}, transient={self.transient})"

    @classmethod
    def wrap(cls, exc: BaseException, action: str) -> StorageError:
        """Build a StorageError from a driver exception, classifying it."""
        err = cls(f"{action} failed: {exc}", transient=classify_transient(exc))
        err.__cause__ = exc
        return err


class TaskNotFoundError(StorageError):
    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task not found with id: {task_id}", transient=False)
        self.task_id = task_id


def classify_transient(exc: BaseException) -> bool:
    """
    Decide whether a low-level store failure is a connectivity/timeout problem.

    Keyed on error metadata only (type + message), never on the operation.
    """
    if isinstance(exc, StorageError):
        return exc.transient
    if isinstance(exc, (ConnectionError, TimeoutError)):
        return True
    if isinstance(exc, (sqlite3.IntegrityError, sqlite3.ProgrammingError)):
        return False
    msg = str(exc).lower()
    return any(p in msg for p in _TRANSIENT_PATTERNS)


def is_transient(exc: BaseException) -> bool:
    """Shared predicate: should this failure be retried later instead of surfaced?"""
    return isinstance(exc, StorageError) and exc.transient
