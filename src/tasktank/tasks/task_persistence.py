# src/tasktank/tasks/task_persistence.py

"""
On-disk mirror of the task table.

- TaskFile: JSON Lines file, one task per line, rewritten in full on every save
  (temp file + fsync + os.replace, so a crash never leaves a truncated file).
- SaveThrottle: debounce primitive that coalesces bursts of save requests into
  one write per quiet period.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import os
import tempfile
import time
from collections.abc import Callable, Iterable
from pathlib import Path

from .task_errors import PersistenceError, TaskError
from .task_models import Task, task_from_record, task_to_record

logger = logging.getLogger(__name__)


class TaskFile:
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> list[Task]:
        """
        Load every well-formed task from the file.

        Missing file -> created empty, returns [].
        Malformed lines are logged and skipped; only I/O failures raise.
        """
        if not self._path.exists():
            logger.info("Task file %s doesn't exist yet, creating empty storage", self._path)
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                self._path.touch()
            except OSError as e:
                raise PersistenceError(self._path, f"Failed to create task file: {e}") from e
            return []

        try:
            raw = self._path.read_bytes()
        except OSError as e:
            raise PersistenceError(self._path, f"Failed to read task file: {e}") from e

        tasks: list[Task] = []
        for lineno, raw_line in enumerate(raw.split(b"\n"), start=1):
            if not raw_line.strip():
                continue
            try:
                tasks.append(task_from_record(json.loads(raw_line.decode("utf-8"))))
            except (UnicodeDecodeError, json.JSONDecodeError, TaskError) as e:
                logger.warning("Skipping malformed task at %s:%d: %s", self._path, lineno, e)
        return tasks

    def write(self, tasks: Iterable[Task]) -> int:
        """Replace the file with `tasks`. Returns the number of records written."""
        lines = [json.dumps(task_to_record(t), ensure_ascii=False) + "\n" for t in tasks]

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp")
        except OSError as e:
            raise PersistenceError(self._path, f"Failed to prepare task file: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.writelines(lines)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self._path)
        except OSError as e:
            with contextlib.suppress(OSError):
                os.unlink(tmp)
            raise PersistenceError(self._path, f"Failed to write task file: {e}") from e

        return len(lines)


class SaveThrottle:
    """
    Pending-flag + deadline debounce around a flush function.

    request() arms (or re-arms) a timer on the running event loop; outside a
    loop there is nothing to defer to, so the flush runs right away.
    """

    def __init__(self, flush_fn: Callable[[], None], delay_seconds: float = 1.0) -> None:
        self._flush_fn = flush_fn
        self._delay = max(0.0, float(delay_seconds))
        self._handle: asyncio.TimerHandle | None = None
        self._deadline: float | None = None

    @property
    def delay_seconds(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def deadline(self) -> float | None:
        """Loop-clock time of the pending write, if any."""
        return self._deadline

    def request(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.flush()
            return

        self.cancel()
        self._deadline = loop.time() + self._delay
        self._handle = loop.call_at(self._deadline, self._on_timer)

    def flush(self) -> None:
        """Write now, dropping any pending timer. Errors propagate to the caller."""
        self.cancel()
        self._flush_fn()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._deadline = None

    def _on_timer(self) -> None:
        self._handle = None
        self._deadline = None
        started = time.monotonic()
        try:
            self._flush_fn()
        except Exception:
            logger.exception("Throttled save failed")
            return
        logger.debug("Throttled save done in %.1f ms", (time.monotonic() - started) * 1000)
