# src/household_tracker/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the concrete store, queue, coordinator and sweeper into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..sync.coordinator import SyncCoordinator
from ..sync.pending_queue import PendingOperationQueue
from ..tasks.overdue_sweeper import OverdueSweeper
from ..tasks.task_store import SqliteTaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.queue_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = SqliteTaskStore(settings.tasks_db_path)
    queue = PendingOperationQueue(settings.queue_path)
    coordinator = SyncCoordinator(store, queue)

    sweeper = None
    if settings.sweep_enabled:
        sweeper = OverdueSweeper(store, interval_hours=settings.sweep_interval_hours)

    pending = len(queue)
    if pending:
        logger.info("%d operation(s) pending sync from a previous run (%s)", pending, queue.path)

    return AppState(
        settings=settings,
        store=store,
        queue=queue,
        coordinator=coordinator,
        sweeper=sweeper,
    )
