# src/tasktank/tasks/task_graph.py

"""
One-hop queries over the dependsOn relation.

Edges point from a task to the tasks it depends on. Dangling ids are dropped
and cycles are tolerated, including a task that names itself; nothing here
walks further than one hop.
"""

from __future__ import annotations

from collections.abc import Mapping

from .task_models import Task


def _by_age(task: Task) -> tuple:
    return (task.created, task.id)


def dependencies(tasks_by_id: Mapping[str, Task], task_id: str) -> list[Task]:
    """Existing tasks that `task_id` depends on."""
    task = tasks_by_id.get(task_id)
    if task is None:
        return []
    found = [tasks_by_id[d] for d in task.depends_on if d in tasks_by_id]
    return sorted(found, key=_by_age)


def dependents(tasks_by_id: Mapping[str, Task], task_id: str) -> list[Task]:
    """Tasks whose dependsOn names `task_id`."""
    found = [t for t in tasks_by_id.values() if task_id in t.depends_on]
    return sorted(found, key=_by_age)


def related_tasks(tasks_by_id: Mapping[str, Task], task_id: str) -> list[Task]:
    """Dependencies first, then dependents, each task listed once."""
    if task_id not in tasks_by_id:
        return []

    out: list[Task] = []
    seen: set[str] = set()
    for t in dependencies(tasks_by_id, task_id) + dependents(tasks_by_id, task_id):
        if t.id in seen:
            continue
        seen.add(t.id)
        out.append(t)
    return out
