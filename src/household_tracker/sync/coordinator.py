# src/household_tracker/sync/coordinator.py

from __future__ import annotations

"""
Sync coordinator.

Every mutating call goes through `mutate`:
- apply to the store,
- on a transient StorageError divert the operation into the pending queue,
- surface everything else (validation, not-found, guard rejections) unchanged.

`drain` replays the queue in order and stops at the first failure, removing
only the entries that were applied.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

from ..core.ports import TaskStore
from ..errors import StorageError, is_transient
from ..tasks.task_models import Task, validate_task
from .pending_queue import OperationKind, PendingOperationQueue, QueuedOperation

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class MutationResult:
    """
    Outcome of a mutation.

    queued=True means the store was unreachable and the operation is waiting
    for the next drain; callers should show a "pending sync" marker.
    """

    op: QueuedOperation
    queued: bool
    task: Task | None = None

    @property
    def applied(self) -> bool:
        return not self.queued


@dataclass(slots=True, frozen=True)
class SyncResult:
    attempted: int
    applied: int
    remaining: int
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def nothing_to_do(self) -> bool:
        return self.attempted == 0 and self.error is None


class SyncCoordinator:
    def __init__(
        self,
        store: TaskStore,
        queue: PendingOperationQueue,
        *,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._store = store
        self._queue = queue
        self._clock = clock
        self._drain_lock = threading.Lock()

    @property
    def store(self) -> TaskStore:
        return self._store

    @property
    def queue(self) -> PendingOperationQueue:
        return self._queue

    # ---- core ----

    def _apply(self, op: QueuedOperation) -> Task | None:
        if op.kind == OperationKind.ADD:
            return self._store.add(op.task)
        if op.kind == OperationKind.UPDATE:
            self._store.update(op.task)
            return op.task
        if op.kind == OperationKind.DELETE:
            self._store.delete(op.task.id)
            return None
        raise ValueError(f"Unknown operation kind: {op.kind!r}")

    def mutate(self, op: QueuedOperation) -> MutationResult:
        if op.kind in (OperationKind.ADD, OperationKind.UPDATE):
            validate_task(op.task)

        try:
            task = self._apply(op)
        except StorageError as e:
            if not is_transient(e):
                raise
            self._queue.enqueue(op)
            logger.warning(
                "Store unreachable, %s queued for later sync: task id=%s name=%s (%s)",
                op.kind.value,
                op.task.id,
                op.task.name,
                e.message,
            )
            return MutationResult(op=op, queued=True, task=op.task)

        return MutationResult(op=op, queued=False, task=task)

    def drain(self) -> SyncResult:
        """
        Replay queued operations in order.

        Stops at the first failure; applied entries are removed, the failing entry
        and everything after it stay queued for the next attempt.
        """
        with self._drain_lock:
            ops = self._queue.load_all()
            if not ops:
                logger.debug("Nothing to sync")
                return SyncResult(attempted=0, applied=0, remaining=0)

            applied = 0
            error: Exception | None = None
            for op in ops:
                try:
                    self._apply(op)
                except Exception as e:
                    error = e
                    logger.warning(
                        "Sync stopped at %s for task id=%s name=%s: %s",
                        op.kind.value,
                        op.task.id,
                        op.task.name,
                        e,
                    )
                    break
                applied += 1
                logger.debug("Replayed %s for task id=%s", op.kind.value, op.task.id)

            if error is None:
                # Entries enqueued while we were replaying must survive.
                remaining = self._queue.drop_first(len(ops))
                logger.info("Synced %d queued operation(s)", applied)
            else:
                remaining = self._queue.drop_first(applied)
                logger.info("Sync failed after %d operation(s), %d remain queued", applied, remaining)

            return SyncResult(attempted=len(ops), applied=applied, remaining=remaining, error=error)

    def pending_count(self) -> int:
        return len(self._queue)

    def has_pending(self) -> bool:
        return not self._queue.is_empty()

    def discard_next(self) -> QueuedOperation | None:
        """Drop the head of the queue (e.g. an entry the store keeps rejecting)."""
        with self._drain_lock:
            ops = self._queue.load_all()
            if not ops:
                return None
            self._queue.drop_first(1)
            logger.warning("Discarded queued %s for task id=%s", ops[0].kind.value, ops[0].task.id)
            return ops[0]

    # ---- task service helpers ----

    def list_tasks(self) -> list[Task]:
        return self._store.get_all()

    def add_task(self, task: Task) -> MutationResult:
        return self.mutate(QueuedOperation(OperationKind.ADD, task))

    def update_task(self, task: Task) -> MutationResult:
        return self.mutate(QueuedOperation(OperationKind.UPDATE, task))

    def delete_task(self, task: Task) -> MutationResult:
        return self.mutate(QueuedOperation(OperationKind.DELETE, task))

    def delete_task_by_id(self, task_id: int) -> MutationResult:
        """
        Delete without reading the task first, so it can be queued while offline.

        Replay only needs the id; the snapshot carries a placeholder name.
        """
        return self.delete_task(Task(name=f"#{task_id}", id=task_id))

    def complete_task(self, task_id: int) -> MutationResult:
        task = self._store.get_by_id(task_id)
        task.complete(self._clock())
        return self.update_task(task)

    def postpone_task(self, task_id: int, days: int) -> MutationResult:
        task = self._store.get_by_id(task_id)
        task.postpone(days)
        return self.update_task(task)

    def reactivate_task(self, task_id: int) -> MutationResult:
        task = self._store.get_by_id(task_id)
        task.reactivate()
        return self.update_task(task)

    def cancel_task(self, task_id: int) -> MutationResult:
        task = self._store.get_by_id(task_id)
        task.cancel()
        return self.update_task(task)
