# src/household_tracker/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, replays anything left in the pending
queue, starts the overdue sweeper in a background thread, then runs the
console REPL in the main thread.
"""

from __future__ import annotations

import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _initial_sync(state: AppState) -> None:
    if not state.coordinator.has_pending():
        return
    result = state.coordinator.drain()
    if result.ok:
        logger.info("Start-up sync: %d operation(s) applied.", result.applied)
    else:
        logger.warning("Start-up sync incomplete: %d operation(s) remain queued.", result.remaining)


def _shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    if state.sweeper is not None:
        state.sweeper.stop()
        state.sweeper.join(timeout=10.0)

    try:
        close = getattr(state.store, "close", None)
        if close is not None:
            close()
    except Exception:
        logger.debug("Store close failed.", exc_info=True)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    state = create_initial_state(settings=settings)
    _initial_sync(state)

    if state.sweeper is not None:
        state.sweeper.start()

    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
    except (ValueError, OSError):
        # Not available on every platform / outside the main thread.
        pass

    try:
        if settings.console_enabled:
            run_console_loop(state)
            stop_main.set()
        else:
            logger.info("Console disabled. Running the overdue sweeper only. Press Ctrl+C to stop.")
            try:
                stop_main.wait()
            except KeyboardInterrupt:
                pass
    finally:
        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
