# tests/test_logging_setup.py

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from household_tracker.logging_setup import LOG_FILE_NAME, _ConsoleNoiseFilter, setup_logging


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


@pytest.mark.parametrize(
    ("name", "level", "shown"),
    [
        ("household_tracker.tasks.overdue_sweeper", logging.INFO, False),
        ("household_tracker.tasks.overdue_sweeper", logging.WARNING, True),
        ("household_tracker.tasks.task_store", logging.INFO, False),
        ("household_tracker.sync.pending_queue", logging.WARNING, True),
        ("household_tracker.sync.coordinator", logging.INFO, True),
        ("household_tracker.sync.coordinator", logging.DEBUG, False),
        ("household_tracker.cli.main", logging.DEBUG, True),
        ("py.warnings", logging.WARNING, False),
        ("urllib3", logging.WARNING, False),
        ("urllib3", logging.ERROR, True),
    ],
)
def test_console_filter(name: str, level: int, shown: bool) -> None:
    assert _ConsoleNoiseFilter().filter(_record(name, level)) is shown


def test_console_filter_custom_thresholds() -> None:
    f = _ConsoleNoiseFilter({"household_tracker": logging.ERROR})
    assert f.filter(_record("household_tracker.sync.coordinator", logging.WARNING)) is False
    assert f.filter(_record("household_tracker.sync.coordinator", logging.ERROR)) is True


def test_setup_logging_writes_everything_to_file(tmp_path: Path) -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        log_file = setup_logging(log_dir=tmp_path / "logs")
        logging.getLogger("household_tracker.tasks.overdue_sweeper").info("Task 3 -> overdue")
        for h in root.handlers:
            h.flush()
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        for h in saved_handlers:
            root.addHandler(h)
        root.setLevel(saved_level)
        logging.captureWarnings(False)

    assert log_file == tmp_path / "logs" / LOG_FILE_NAME
    text = log_file.read_text(encoding="utf-8")
    assert "[MainThread] household_tracker.tasks.overdue_sweeper: Task 3 -> overdue" in text
