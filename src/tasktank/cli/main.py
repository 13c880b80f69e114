# src/tasktank/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (loading the task store), then runs the
console connector on an asyncio loop. Without a console it just keeps the loop
alive so pending auto-transitions and throttled saves can run until Ctrl+C /
SIGTERM.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal

from ..cli.bootstrap import create_initial_state, shutdown_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..tasks.task_errors import PersistenceError

logger = logging.getLogger(__name__)


async def _run(state) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        # Some platforms (Windows) have no loop signal handlers.
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, stop.set)

    if state.settings.console_enabled:
        console = asyncio.create_task(run_console_loop(state))
        waiter = asyncio.create_task(stop.wait())
        await asyncio.wait({console, waiter}, return_when=asyncio.FIRST_COMPLETED)
        for t in (console, waiter):
            t.cancel()
    else:
        logger.info("Console disabled. Keeping the store alive. Press Ctrl+C to stop.")
        await stop.wait()


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    try:
        state = create_initial_state(settings=settings)
    except PersistenceError:
        logger.exception("Could not load tasks; refusing to start with an empty table.")
        raise SystemExit(1) from None

    try:
        asyncio.run(_run(state))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    finally:
        shutdown_state(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
