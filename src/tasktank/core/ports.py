# src/tasktank/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used around the task store.

Callers (tool operations, slash commands, the console) depend on these
Protocols instead of TaskStore itself, which keeps them testable with fakes.
"""

from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from pathlib import Path

    from ..tasks.task_models import Task, TaskStatus
    from ..tasks.task_store import TaskEvent


class TaskListener(Protocol):
    """Receives task-added / task-updated / task-deleted notifications."""

    def __call__(self, event: TaskEvent) -> None: ...


class TaskRepo(Protocol):
    @property
    def path(self) -> Path: ...

    # CRUD
    def add(self, data: Mapping[str, Any]) -> Task: ...
    def get(self, task_id: str) -> Task | None: ...
    def get_all(self) -> list[Task]: ...
    def update(self, task_id: str, patch: Mapping[str, Any]) -> Task | None: ...
    def delete(self, task_id: str) -> bool: ...
    def get_by_status(self, status: TaskStatus | str) -> list[Task]: ...
    def count(self) -> int: ...

    # Queries / scheduling
    def get_related_tasks(self, task_id: str) -> list[Task]: ...
    def get_highest_priority(self, status: TaskStatus | str) -> Task | None: ...
    def claim_next(
            self,
            from_status: TaskStatus | str = ...,
            to_status: TaskStatus | str = ...,
    ) -> Task | None: ...
    def try_claim(
            self,
            task_id: str,
            *,
            expected: Iterable[TaskStatus | str],
            to_status: TaskStatus | str = ...,
    ) -> Task | None: ...

    # Auto-transitions
    def set_auto_transition(self, task_id: str, delay_ms: float, target_status: TaskStatus | str) -> None: ...
    def clear_timeout(self, task_id: str) -> bool: ...
    def clear_all_timeouts(self) -> int: ...

    # Durability / notifications
    def save_immediately(self) -> None: ...
    def subscribe(self, listener: TaskListener) -> Callable[[], None]: ...
