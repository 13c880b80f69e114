# src/tasktank/tasks/task_store.py

from __future__ import annotations

import contextlib
import dataclasses
import logging
import uuid
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

from ..core.ports import TaskListener
from .task_errors import NotReadyError, PersistenceError
from .task_graph import related_tasks
from .task_models import Task, TaskStatus, apply_patch, new_task, validate_status
from .task_persistence import SaveThrottle, TaskFile
from .task_scheduler import AutoTransitions, pick_highest_priority

logger = logging.getLogger(__name__)

DEFAULT_TASKS_PATH = Path("~/.tasktank/tasks.jsonl")


class TaskEventKind(StrEnum):
    ADDED = "task-added"
    UPDATED = "task-updated"
    DELETED = "task-deleted"


@dataclass(slots=True, frozen=True)
class TaskEvent:
    kind: TaskEventKind
    task_id: str
    # For DELETED this is the task as it was right before removal.
    task: Task | None = None


class TaskStore:
    """
    In-memory task table mirrored to a JSON Lines file.

    Lifecycle:
    - TaskStore(path) does not touch the disk; call load() (or use TaskStore.open)
      before mutating, otherwise NotReadyError is raised.
    - every mutation requests a throttled save and notifies subscribers.
    - close() cancels pending auto-transitions and forces a final save.

    All methods are synchronous and meant to be called from one event loop
    thread, so a single call never observes a half-applied change.
    """

    def __init__(self, path: str | Path = DEFAULT_TASKS_PATH, *, save_delay_seconds: float = 1.0) -> None:
        self._file = TaskFile(path)
        self._tasks: dict[str, Task] = {}
        self._ready = False
        self._listeners: list[TaskListener] = []
        self._throttle = SaveThrottle(self._write_snapshot, save_delay_seconds)
        self._transitions = AutoTransitions(self._apply_transition)

    @classmethod
    def open(cls, path: str | Path = DEFAULT_TASKS_PATH, *, save_delay_seconds: float = 1.0) -> TaskStore:
        store = cls(path, save_delay_seconds=save_delay_seconds)
        store.load()
        return store

    @property
    def path(self) -> Path:
        return self._file.path

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def save_pending(self) -> bool:
        return self._throttle.pending

    def __len__(self) -> int:
        return len(self._tasks)

    # ---- lifecycle ----

    def load(self) -> int:
        """
        Populate the table from disk. Returns the number of tasks loaded.

        Bad lines are skipped by TaskFile; an unreadable file raises
        PersistenceError and leaves the store not ready, so a later save can't
        overwrite data that was never read.
        """
        if self._ready:
            logger.debug("TaskStore already loaded from %s", self.path)
            return len(self._tasks)

        loaded: dict[str, Task] = {}
        for task in self._file.read():
            if task.id in loaded:
                logger.warning("Duplicate task id %s in %s; keeping the later record", task.id, self.path)
            loaded[task.id] = task

        self._tasks = loaded
        self._ready = True
        logger.info("TaskStore ready path=%s total=%s", self.path, len(self._tasks))
        return len(self._tasks)

    def close(self) -> None:
        """Shutdown hook: no timer may fire after this, and the table is flushed."""
        self.clear_all_timeouts()
        if not self._ready:
            return
        # save_immediately logs its own failures
        with contextlib.suppress(PersistenceError):
            self.save_immediately()

    def _ensure_ready(self) -> None:
        if not self._ready:
            raise NotReadyError("Task storage not yet loaded")

    # ---- persistence ----

    def _write_snapshot(self) -> None:
        n = self._file.write(list(self._tasks.values()))
        logger.debug("Saved %d tasks to %s", n, self.path)

    def save(self) -> None:
        """Request a throttled save; failures are logged, memory state stands."""
        try:
            self._throttle.request()
        except PersistenceError:
            logger.exception("Failed to save tasks")

    def save_immediately(self) -> None:
        """Write the full table now, bypassing the throttle."""
        try:
            self._throttle.flush()
        except PersistenceError:
            logger.exception("Failed to save tasks")
            raise

    # ---- notifications ----

    def subscribe(self, listener: TaskListener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, kind: TaskEventKind, task_id: str, task: Task | None) -> None:
        event = TaskEvent(kind=kind, task_id=task_id, task=task)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Task listener failed event=%s task=%s", kind.value, task_id)

    # ---- CRUD ----

    def add(self, data: Mapping[str, Any]) -> Task:
        self._ensure_ready()
        task = new_task(data)
        while task.id in self._tasks:
            task = dataclasses.replace(task, id=str(uuid.uuid4()))

        self._tasks[task.id] = task
        self.save()
        logger.debug("Task added id=%s priority=%s status=%s", task.id, task.priority.value, task.status.value)
        self._emit(TaskEventKind.ADDED, task.id, task)
        return task

    def get(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    def get_all(self) -> list[Task]:
        return list(self._tasks.values())

    def count(self) -> int:
        return len(self._tasks)

    def update(self, task_id: str, patch: Mapping[str, Any]) -> Task | None:
        """Apply `patch` to a task. Returns None if the id is unknown."""
        self._ensure_ready()
        current = self._tasks.get(task_id)
        if current is None:
            return None
        return self._commit(apply_patch(current, patch))

    def _commit(self, task: Task) -> Task:
        self._tasks[task.id] = task
        self.save()
        logger.debug("Task updated id=%s status=%s", task.id, task.status.value)
        self._emit(TaskEventKind.UPDATED, task.id, task)
        return task

    def delete(self, task_id: str) -> bool:
        self._ensure_ready()
        task = self._tasks.pop(task_id, None)
        if task is None:
            return False

        self._transitions.cancel(task_id)
        self.save()
        logger.debug("Task deleted id=%s", task_id)
        self._emit(TaskEventKind.DELETED, task_id, task)
        return True

    def get_by_status(self, status: TaskStatus | str) -> list[Task]:
        wanted = validate_status(status)
        return [t for t in self._tasks.values() if t.status == wanted]

    # ---- queries ----

    def get_related_tasks(self, task_id: str) -> list[Task]:
        return related_tasks(self._tasks, task_id)

    def get_highest_priority(self, status: TaskStatus | str) -> Task | None:
        return pick_highest_priority(self._tasks.values(), validate_status(status))

    # ---- claiming ----

    def try_claim(
        self,
        task_id: str,
        *,
        expected: Iterable[TaskStatus | str],
        to_status: TaskStatus | str = TaskStatus.IN_PROGRESS,
    ) -> Task | None:
        """
        Compare-and-set on status: move the task to `to_status` only if its
        current status is one of `expected`. Returns the claimed task or None.
        """
        self._ensure_ready()
        allowed = {validate_status(s) for s in expected}
        target = validate_status(to_status)
        current = self._tasks.get(task_id)
        if current is None or current.status not in allowed:
            return None
        return self._commit(apply_patch(current, {"status": target}))

    def claim_next(
        self,
        from_status: TaskStatus | str = TaskStatus.TODO,
        to_status: TaskStatus | str = TaskStatus.IN_PROGRESS,
    ) -> Task | None:
        """Select the highest-priority task in `from_status` and move it, in one step."""
        self._ensure_ready()
        task = self.get_highest_priority(from_status)
        if task is None:
            return None
        return self.try_claim(task.id, expected=[task.status], to_status=to_status)

    # ---- auto-transitions ----

    def set_auto_transition(self, task_id: str, delay_ms: float, target_status: TaskStatus | str) -> None:
        """Move `task_id` to `target_status` after `delay_ms`, replacing any pending timer."""
        self._transitions.schedule(task_id, float(delay_ms) / 1000.0, validate_status(target_status))

    def clear_timeout(self, task_id: str) -> bool:
        return self._transitions.cancel(task_id)

    def clear_all_timeouts(self) -> int:
        return self._transitions.cancel_all()

    def pending_transitions(self) -> list[str]:
        return self._transitions.pending_ids()

    def _apply_transition(self, task_id: str, target_status: TaskStatus) -> None:
        if self.update(task_id, {"status": target_status}) is None:
            logger.info("Auto-transition skipped: task %s no longer exists", task_id)
        else:
            logger.info("Task %s -> %s (auto-transition)", task_id, target_status.value)
