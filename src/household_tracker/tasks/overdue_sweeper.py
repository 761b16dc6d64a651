# src/household_tracker/tasks/overdue_sweeper.py

from __future__ import annotations

"""
Overdue sweeper.

A small periodic job that:
- loads all tasks,
- applies the derived-overdue rule,
- writes OVERDUE back for tasks whose due date has passed.

Writes are never queued: the next sweep recomputes the same result anyway.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

from ..core.ports import TaskStore
from ..errors import is_transient
from .task_models import TaskStatus, is_overdue

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_HOURS = 24.0


@dataclass(slots=True, frozen=True)
class SweepReport:
    checked: int = 0
    updated: int = 0
    failed: int = 0
    aborted: bool = False


def sweep_overdue(store: TaskStore, today: date) -> SweepReport:
    """Run one sweep. Never raises; per-task failures are logged and counted."""
    try:
        tasks = store.get_all()
    except Exception as e:
        if is_transient(e):
            logger.warning("Overdue sweep skipped, store unreachable: %s", e)
        else:
            logger.exception("Overdue sweep aborted: get_all failed")
        return SweepReport(aborted=True)

    updated = 0
    failed = 0
    for task in tasks:
        if task.status == TaskStatus.OVERDUE or not is_overdue(task.status, task.due_date, today):
            continue
        try:
            written = store.set_status(task.id, TaskStatus.OVERDUE)
        except Exception as e:
            failed += 1
            if is_transient(e):
                logger.warning("Could not mark task %s overdue (store unreachable): %s", task.id, e)
            else:
                logger.exception("Could not mark task %s overdue", task.id)
            continue
        if not written:
            # Changed by someone else since get_all().
            logger.debug("Task %s skipped, no longer overdue-eligible", task.id)
            continue
        updated += 1
        logger.info("Task %s -> overdue (due %s)", task.id, task.due_date)

    if updated:
        logger.info("Overdue sweep updated %d task(s)", updated)
    return SweepReport(checked=len(tasks), updated=updated, failed=failed)


class OverdueSweeper:
    """
    Background thread running sweep_overdue immediately and then every interval.

    stop() signals the thread; a sweep already in progress runs to completion.
    """

    def __init__(
        self,
        store: TaskStore,
        *,
        interval_hours: float = DEFAULT_INTERVAL_HOURS,
        clock: Callable[[], date] = date.today,
    ) -> None:
        if interval_hours <= 0:
            raise ValueError("interval_hours must be positive")
        self._store = store
        self._interval_s = float(interval_hours) * 3600.0
        self._clock = clock
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._run_lock = threading.Lock()
        self.last_report: SweepReport | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> SweepReport:
        with self._run_lock:
            report = sweep_overdue(self._store, self._clock())
            self.last_report = report
            return report

    def _loop(self) -> None:
        logger.info("Overdue sweeper started (every %.1fh)", self._interval_s / 3600.0)
        while not self._stop.is_set():
            self.run_once()
            if self._stop.wait(self._interval_s):
                break
        logger.info("Overdue sweeper stopped")

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="overdue-sweeper", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)
