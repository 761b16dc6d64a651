# src/household_tracker/logging_setup.py

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from pathlib import Path

LOG_FILE_NAME = "household.log"

# Minimum level a household_tracker logger needs to reach the console.
# Longest matching prefix wins; anything not listed uses the handler level.
# The file log always gets everything.
CONSOLE_THRESHOLDS: dict[str, int] = {
    # Per-task "-> overdue" lines run every interval in a background thread.
    "household_tracker.tasks.overdue_sweeper": logging.WARNING,
    # "ready db=..." and column migrations.
    "household_tracker.tasks.task_store": logging.WARNING,
    # Skipped torn/unreadable queue lines are WARNING and must stay visible.
    "household_tracker.sync.pending_queue": logging.WARNING,
    # Sync summaries (INFO) and queued-for-later diversions (WARNING).
    "household_tracker.sync.coordinator": logging.INFO,
}


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the interactive console readable while the sweeper runs in the background:
    - household_tracker loggers: per-component thresholds (CONSOLE_THRESHOLDS)
    - Python warnings (captured as 'py.warnings') and third-party loggers: ERROR+
    """

    def __init__(self, thresholds: Mapping[str, int] | None = None) -> None:
        super().__init__()
        table = CONSOLE_THRESHOLDS if thresholds is None else thresholds
        self._thresholds = sorted(table.items(), key=lambda kv: len(kv[0]), reverse=True)

    def _threshold(self, name: str) -> int:
        for prefix, level in self._thresholds:
            if name == prefix or name.startswith(prefix + "."):
                return level
        return logging.NOTSET

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name == "household_tracker" or name.startswith("household_tracker."):
            return record.levelno >= self._threshold(name)
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/household",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    console_thresholds: Mapping[str, int] | None = None,
) -> Path:
    """
    Console handler on stderr (filtered) plus a full file log in `log_dir`.

    The file format carries the thread name so sweeper output can be told apart
    from console commands. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    datefmt = "%Y-%m-%d %H:%M:%S"

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt))
    ch.addFilter(_ConsoleNoiseFilter(console_thresholds))
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(
        logging.Formatter(
            "%(asctime)s.%(msecs)03d %(levelname)s [%(threadName)s] %(name)s: %(message)s",
            datefmt,
        )
    )
    root.addHandler(fh)

    logging.captureWarnings(True)
    return log_file
