# src/tasktank/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections import Counter
from collections.abc import Callable
from typing import Any, cast

from ..core.state import AppState
from ..tasks import task_api
from ..tasks.task_errors import TaskError
from ..tasks.task_models import Task, TaskStatus

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /add, /next, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except TaskError as e:
            # Bad input from the user, not a crash.
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def format_task(task: Task | dict[str, Any]) -> str:
    if isinstance(task, dict):
        tid, status, priority, desc = task["id"], task["status"], task["priority"], task["description"]
        deps = task.get("dependsOn") or []
    else:
        tid, status, priority, desc = task.id, task.status.value, task.priority.value, task.description
        deps = sorted(task.depends_on)
    dep_str = f" (after {', '.join(d[:8] for d in deps)})" if deps else ""
    return f"{tid[:8]} [{status}] ({priority}) {desc}{dep_str}"


def resolve_task_id(state: AppState, prefix: str) -> str:
    """Expand a short id prefix (as printed by format_task) to a full id."""
    store = state.task_store
    if store.get(prefix) is not None:
        return prefix
    matches = [t.id for t in store.get_all() if t.id.lower().startswith(prefix.lower())]
    if len(matches) == 1:
        return matches[0]
    # Ambiguous or unknown: let the caller report not-found on the raw value.
    return prefix


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    store = state.task_store
    counts = Counter(t.status for t in store.get_all())
    per_status = ", ".join(f"{s.value}={counts.get(s, 0)}" for s in TaskStatus)
    return (
        "Status:\n"
        f"  Store: {store.path}\n"
        f"  Tasks: {store.count()} ({per_status})"
    )


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <description>            -> medium priority
    /add !high <description>      -> with priority (!low, !medium, !high)
    """
    priority = None
    if args and args[0].startswith("!"):
        priority = args[0][1:]
        args = args[1:]

    data: dict[str, Any] = {"description": " ".join(args)}
    if priority:
        data["priority"] = priority

    result = task_api.plan_tasks(state.task_store, [data])
    if result["failed"]:
        return f"Error: {result['errors'][0]['error']}"
    return f"Added: {format_task(result['tasks'][0])}"


def cmd_tasks(state: AppState, args: list[str]) -> str:
    """/tasks [status] [priority]"""
    status = args[0] if len(args) > 0 and args[0] != "-" else None
    priority = args[1] if len(args) > 1 else None
    result = task_api.list_tasks(state.task_store, status=status, priority=priority)
    if not result["count"]:
        return "No tasks."
    lines = [f"{result['count']} task(s):"]
    lines.extend(f"  {format_task(t)}" for t in result["tasks"])
    return "\n".join(lines)


def cmd_next(state: AppState, args: list[str]) -> str:
    result = task_api.next_task(state.task_store)
    if result["task"] is None:
        return result["message"]
    return f"{result['message']}: {format_task(result['task'])}"


def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <id>"
    result = task_api.complete_task(state.task_store, resolve_task_id(state, args[0]))
    if "error" in result:
        return result["error"]
    return f"{result['message']}: {format_task(result['task'])}"


def cmd_rm(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <id>"
    task_id = resolve_task_id(state, args[0])
    if not state.task_store.delete(task_id):
        return f"Task with ID {task_id} not found"
    return f"Deleted {task_id}"


def cmd_related(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /related <id>"
    result = task_api.related_tasks(state.task_store, resolve_task_id(state, args[0]))
    if "error" in result:
        return result["error"]
    if not result["count"]:
        return "No related tasks."
    return "\n".join(format_task(t) for t in result["tasks"])


def cmd_later(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/later <id> <seconds> <status>"""
    if len(args) != 3:
        return "Usage: /later <id> <seconds> <status>"
    try:
        delay = float(args[1])
    except ValueError:
        return f"Not a number of seconds: {args[1]}"

    result = task_api.schedule_transition(
        state.task_store,
        resolve_task_id(state, args[0]),
        delay_seconds=delay,
        status=args[2],
    )
    if "error" in result:
        return result["error"]
    if emit is not None:
        emit(f"[timer] {result['id'][:8]} -> {result['status']} in {result['delay_seconds']:g}s")
    return result["message"]


def cmd_save(state: AppState, args: list[str]) -> str:
    state.task_store.save_immediately()
    return f"Saved {state.task_store.count()} tasks to {state.task_store.path}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show store path and task counts.")
registry.register("add", cmd_add, help_text="Add a task: /add [!priority] <description>.")
registry.register("tasks", cmd_tasks, help_text="List tasks: /tasks [status|-] [priority].", aliases=["ls"])
registry.register("next", cmd_next, help_text="Claim the highest-priority todo task.")
registry.register("done", cmd_done, help_text="Complete a task: /done <id>.")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id>.")
registry.register("related", cmd_related, help_text="Dependencies and dependents: /related <id>.")
registry.register("later", cmd_later, help_text="Delayed status change: /later <id> <seconds> <status>.")
registry.register("save", cmd_save, help_text="Write all tasks to disk now.")
