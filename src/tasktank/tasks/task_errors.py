# src/tasktank/tasks/task_errors.py

from __future__ import annotations

from pathlib import Path


class TaskError(Exception):
    """Base class for task subsystem errors."""


class ValidationError(TaskError, ValueError):
    """
    A field value broke one of the task rules.

    `field` is the offending input key, `rule` a short machine-readable name
    (min_length, enum, uuid, datetime, type, unknown_field, read_only, required).
    """

    def __init__(self, field: str, rule: str, message: str | None = None) -> None:
        self.field = field
        self.rule = rule
        super().__init__(message or f"{field}: {rule}")


class NotFoundError(TaskError, KeyError):
    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(task_id)

    def __str__(self) -> str:
        return f"Task with ID {self.task_id} not found"


class NotReadyError(TaskError, RuntimeError):
    """Mutation attempted before the store finished loading from disk."""


class PersistenceError(TaskError, OSError):
    def __init__(self, path: str | Path, message: str) -> None:
        self.path = Path(path)
        super().__init__(f"{message} ({self.path})")
