# src/household_tracker/sync/pending_queue.py

from __future__ import annotations

"""
Durable FIFO of writes that could not reach the store.

On-disk format is JSON Lines, one operation per line:

    {"kind": "add", "task": {"id": 0, "name": "Vacuum", ...}}

- enqueue appends a line and fsyncs before returning, so committed entries
  survive a crash.
- a torn trailing line (crash mid-append) is skipped on load.
- clear/drop_first rewrite through a temp file + os.replace (atomic).
"""

import json
import logging
import os
import threading
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

from ..tasks.task_models import Task, task_from_dict, task_to_dict

logger = logging.getLogger(__name__)


class OperationKind(StrEnum):
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(slots=True, frozen=True)
class QueuedOperation:
    """A write waiting for replay. DELETE keeps the full snapshot but only uses its id."""

    kind: OperationKind
    task: Task

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "task": task_to_dict(self.task)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QueuedOperation:
        return cls(kind=OperationKind(data["kind"]), task=task_from_dict(data["task"]))


class PendingOperationQueue:
    def __init__(self, path: str | Path = "pending_operations.jsonl") -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    # ---- low-level helpers (caller holds the lock) ----

    def _read_ops(self) -> list[QueuedOperation]:
        if not self._path.exists():
            return []
        ops: list[QueuedOperation] = []
        with self._path.open("r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    ops.append(QueuedOperation.from_dict(json.loads(line)))
                except (ValueError, KeyError, TypeError):
                    logger.warning("Skipping unreadable queue entry %s:%d", self._path, lineno)
        return ops

    def _needs_newline(self) -> bool:
        """True if the file ends with a torn (unterminated) line."""
        try:
            size = self._path.stat().st_size
        except FileNotFoundError:
            return False
        if size == 0:
            return False
        with self._path.open("rb") as f:
            f.seek(-1, os.SEEK_END)
            return f.read(1) != b"\n"

    def _rewrite(self, ops: list[QueuedOperation]) -> None:
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            for op in ops:
                f.write(json.dumps(op.to_dict(), ensure_ascii=False) + "\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, self._path)

    # ---- public API ----

    def enqueue(self, op: QueuedOperation) -> None:
        line = json.dumps(op.to_dict(), ensure_ascii=False) + "\n"
        with self._lock:
            if self._needs_newline():
                line = "\n" + line
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
                f.flush()
                os.fsync(f.fileno())
        logger.debug("Queued %s for task id=%s name=%s", op.kind.value, op.task.id, op.task.name)

    def load_all(self) -> list[QueuedOperation]:
        with self._lock:
            return self._read_ops()

    def clear(self) -> None:
        with self._lock:
            self._rewrite([])

    def drop_first(self, count: int) -> int:
        """
        Remove the first `count` entries, keeping the rest (including anything
        enqueued after they were loaded). Returns how many entries remain.
        """
        with self._lock:
            ops = self._read_ops()
            if count <= 0:
                return len(ops)
            rest = ops[count:]
            self._rewrite(rest)
            return len(rest)

    def is_empty(self) -> bool:
        return len(self) == 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._read_ops())
