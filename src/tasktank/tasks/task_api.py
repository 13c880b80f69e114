# src/tasktank/tasks/task_api.py

"""
Operations exposed to the tool-serving layer.

Every function takes a TaskRepo and returns a JSON-safe dict, so the caller can
serialize the result as-is. Batch operations apply items independently: one bad
item is reported in the result and never stops the rest.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from ..core.ports import TaskRepo
from .task_errors import NotFoundError, TaskError, ValidationError
from .task_models import TaskStatus, task_to_record, validate_priority, validate_status

logger = logging.getLogger(__name__)


def _error_entry(e: Exception) -> dict[str, Any]:
    entry: dict[str, Any] = {"error": str(e)}
    if isinstance(e, ValidationError):
        entry["field"] = e.field
        entry["rule"] = e.rule
    return entry


def plan_tasks(repo: TaskRepo, items: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """Create many tasks at once (partial failure allowed)."""
    created: list[dict[str, Any]] = []
    errors: list[dict[str, Any]] = []

    for index, item in enumerate(items):
        try:
            task = repo.add(item)
        except ValidationError as e:
            logger.info("plan_tasks: item %d rejected: %s", index, e)
            errors.append({"index": index, **_error_entry(e)})
            continue
        created.append(task_to_record(task))

    return {
        "tasks": created,
        "errors": errors,
        "created": len(created),
        "failed": len(errors),
        "message": f"Created {len(created)} tasks",
    }


def list_tasks(
    repo: TaskRepo,
    *,
    status: TaskStatus | str | None = None,
    priority: str | None = None,
) -> dict[str, Any]:
    filters: dict[str, str] = {}
    tasks = repo.get_all()

    if status:
        wanted_status = validate_status(status)
        filters["status"] = wanted_status.value
        tasks = [t for t in tasks if t.status == wanted_status]
    if priority:
        wanted_priority = validate_priority(priority)
        filters["priority"] = wanted_priority.value
        tasks = [t for t in tasks if t.priority == wanted_priority]

    tasks.sort(key=lambda t: (t.created, t.id))
    return {
        "tasks": [task_to_record(t) for t in tasks],
        "count": len(tasks),
        "filters": filters or "none",
    }


def next_task(repo: TaskRepo) -> dict[str, Any]:
    """Claim the highest-priority todo task (marks it in-progress)."""
    task = repo.claim_next(TaskStatus.TODO, TaskStatus.IN_PROGRESS)
    if task is None:
        return {"task": None, "message": "No todo tasks found"}
    return {"task": task_to_record(task), "message": "Task marked as in-progress"}


def complete_task(repo: TaskRepo, task_id: str) -> dict[str, Any]:
    task = repo.update(task_id, {"status": TaskStatus.DONE})
    if task is None:
        return {"error": str(NotFoundError(task_id))}
    repo.clear_timeout(task_id)
    return {"task": task_to_record(task), "message": "Task marked as completed"}


def update_tasks(repo: TaskRepo, updates: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """
    Apply many {id, ...patch} updates.

    Per-item results carry success + task or error; aggregate counts follow.
    """
    results: list[dict[str, Any]] = []

    for item in updates:
        if not isinstance(item, Mapping):
            results.append({"id": None, "success": False, "error": "update must be an object"})
            continue
        changes = dict(item)
        task_id = changes.pop("id", None)
        if not isinstance(task_id, str) or not task_id:
            results.append({"id": task_id, "success": False, "error": "id is required"})
            continue

        try:
            task = repo.update(task_id, changes)
            if task is None:
                raise NotFoundError(task_id)
        except TaskError as e:
            logger.info("update_tasks: %s failed: %s", task_id, e)
            results.append({"id": task_id, "success": False, **_error_entry(e)})
            continue

        results.append({"id": task_id, "success": True, "task": task_to_record(task)})

    ok = sum(1 for r in results if r["success"])
    return {"updates": results, "success": ok, "failed": len(results) - ok}


def related_tasks(repo: TaskRepo, task_id: str) -> dict[str, Any]:
    if repo.get(task_id) is None:
        return {"error": str(NotFoundError(task_id))}
    related = repo.get_related_tasks(task_id)
    return {"id": task_id, "tasks": [task_to_record(t) for t in related], "count": len(related)}


def schedule_transition(
    repo: TaskRepo,
    task_id: str,
    *,
    delay_seconds: float,
    status: TaskStatus | str,
) -> dict[str, Any]:
    """Arrange for `task_id` to move to `status` after `delay_seconds`."""
    if repo.get(task_id) is None:
        return {"error": str(NotFoundError(task_id))}
    target = validate_status(status)
    repo.set_auto_transition(task_id, max(0.0, float(delay_seconds)) * 1000.0, target)
    return {
        "id": task_id,
        "status": target.value,
        "delay_seconds": max(0.0, float(delay_seconds)),
        "message": f"Task will move to {target.value}",
    }
