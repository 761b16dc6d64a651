# src/household_tracker/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..sync.coordinator import SyncCoordinator
from ..sync.pending_queue import PendingOperationQueue
from ..tasks.overdue_sweeper import OverdueSweeper
from .ports import TaskStore


@dataclass
class AppState:
    """
    Runtime wiring shared by the CLI and connectors.

    Switching backends means building a new AppState (new store + coordinator),
    never swapping the store under a running coordinator.
    """

    # Settings object (household_tracker.config.Settings or a test stand-in).
    settings: Any

    store: TaskStore
    queue: PendingOperationQueue
    coordinator: SyncCoordinator
    sweeper: OverdueSweeper | None = None

    lock: threading.RLock = field(default_factory=threading.RLock)
