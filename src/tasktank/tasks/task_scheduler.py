# src/tasktank/tasks/task_scheduler.py

from __future__ import annotations

"""
Task scheduling helpers.

- pick_highest_priority: read-only "what should run next" selection
  (priority rank first, then oldest created).
- AutoTransitions: one cancellable delayed status change per task, driven by
  the running asyncio loop. Each timer ends either fired (exactly one call to
  the apply function) or cancelled.

Claiming (select + mark in-progress as one step) lives on the store, which owns
the table.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable

from .task_models import Task, TaskStatus

logger = logging.getLogger(__name__)

ApplyTransition = Callable[[str, TaskStatus], object]


def priority_key(task: Task) -> tuple:
    """Sort key: highest rank first, then oldest, then id for a stable order."""
    return (-task.priority.rank, task.created, task.id)


def pick_highest_priority(tasks: Iterable[Task], status: TaskStatus | str) -> Task | None:
    wanted = TaskStatus(status)
    candidates = [t for t in tasks if t.status == wanted]
    if not candidates:
        return None
    return min(candidates, key=priority_key)


class AutoTransitions:
    """
    Pending delayed transitions keyed by task id.

    schedule() replaces any timer already pending for the same task.
    """

    def __init__(self, apply_fn: ApplyTransition) -> None:
        self._apply_fn = apply_fn
        self._timers: dict[str, asyncio.TimerHandle] = {}

    def __len__(self) -> int:
        return len(self._timers)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._timers

    def pending_ids(self) -> list[str]:
        return list(self._timers)

    def schedule(self, task_id: str, delay_seconds: float, target_status: TaskStatus) -> None:
        loop = asyncio.get_running_loop()  # RuntimeError outside a loop
        self.cancel(task_id)

        delay = max(0.0, float(delay_seconds))
        self._timers[task_id] = loop.call_later(delay, self._fire, task_id, target_status)
        logger.debug("Auto-transition scheduled task=%s in %.3fs -> %s", task_id, delay, target_status.value)

    def cancel(self, task_id: str) -> bool:
        handle = self._timers.pop(task_id, None)
        if handle is None:
            return False
        handle.cancel()
        logger.debug("Auto-transition cancelled task=%s", task_id)
        return True

    def cancel_all(self) -> int:
        n = len(self._timers)
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        if n:
            logger.debug("Cancelled %d pending auto-transitions", n)
        return n

    def _fire(self, task_id: str, target_status: TaskStatus) -> None:
        self._timers.pop(task_id, None)
        try:
            self._apply_fn(task_id, target_status)
        except Exception:
            logger.exception("Auto-transition failed task=%s -> %s", task_id, target_status.value)
