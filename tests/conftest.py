# tests/conftest.py

from __future__ import annotations

from datetime import date
from pathlib import Path
from types import SimpleNamespace

import pytest

from household_tracker.core.state import AppState
from household_tracker.sync.coordinator import SyncCoordinator
from household_tracker.sync.pending_queue import PendingOperationQueue
from household_tracker.tasks.overdue_sweeper import OverdueSweeper

from .fakes import TODAY, InMemoryTaskStore


@pytest.fixture()
def today() -> date:
    return TODAY

@pytest.fixture()
def store() -> InMemoryTaskStore:
    return InMemoryTaskStore(today=TODAY)

@pytest.fixture()
def queue(tmp_path: Path) -> PendingOperationQueue:
    return PendingOperationQueue(tmp_path / "pending_operations.jsonl")

@pytest.fixture()
def coordinator(store: InMemoryTaskStore, queue: PendingOperationQueue) -> SyncCoordinator:
    return SyncCoordinator(store, queue, clock=lambda: TODAY)

@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI.

    We intentionally use a SimpleNamespace rather than reading real env config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="household-test",
        log_level="INFO",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        queue_path=tmp_path / "pending_operations.jsonl",
        sweep_enabled=True,
        sweep_interval_hours=24.0,
        console_enabled=False,
    )

@pytest.fixture()
def state(
    settings: SimpleNamespace,
    store: InMemoryTaskStore,
    queue: PendingOperationQueue,
    coordinator: SyncCoordinator,
) -> AppState:
    """AppState wired with the in-memory store so commands can be driven offline."""
    return AppState(
        settings=settings,
        store=store,
        queue=queue,
        coordinator=coordinator,
        sweeper=OverdueSweeper(store, clock=lambda: TODAY),
    )
