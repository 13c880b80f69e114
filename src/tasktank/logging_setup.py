# src/tasktank/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path


LOG_FILE_NAME = "tasktank.log"

# Loggers that fire on every save or timer tick; the console only shows their problems.
_CHATTY_LOGGERS = frozenset({"tasktank.tasks.task_persistence", "tasktank.tasks.task_scheduler"})


class _ConsoleNoiseFilter(logging.Filter):
    """Console gets our own records; save/timer chatter and foreign loggers only when they matter."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not record.name.startswith("tasktank."):
            # third-party libraries and captured warnings ('py.warnings')
            return record.levelno >= logging.ERROR
        if record.name in _CHATTY_LOGGERS:
            return record.levelno >= logging.WARNING
        return True


def setup_logging(
    *,
    log_dir: str | Path = "~/.tasktank",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """Route everything to tasktank.log in `log_dir`, and a filtered view to stderr."""
    log_dir = Path(log_dir).expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # setup may run again (tests, restarts); start from a clean root
    for h in list(root.handlers):
        root.removeHandler(h)

    formatter = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)-7s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(formatter)
    console.addFilter(_ConsoleNoiseFilter())

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(formatter)

    for handler in (console, file_handler):
        root.addHandler(handler)

    logging.captureWarnings(True)
    return log_file
