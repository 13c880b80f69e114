# tests/test_commands.py

from __future__ import annotations

from tasktank.cli.commands import CommandRegistry, registry
from tasktank.tasks.task_models import TaskPriority, TaskStatus


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}
    notes: list[str] = []

    def h2(state, args):
        called["h2"] += 1
        return "h2"

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a")
    reg.register("b", h3, "b", aliases=["bee"])

    assert reg.handle(state, "/a x") == "h2"
    assert reg.handle(state, "/bee y", emit=notes.append) == "h3"
    assert called == {"h2": 1, "h3": 1}
    assert notes == ["note"]


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_add_next_done_flow(state) -> None:
    reply = registry.handle(state, "/add !high Fix the login bug")
    assert reply is not None and reply.startswith("Added:")

    [task] = state.task_store.get_all()
    assert task.priority == TaskPriority.HIGH
    assert task.description == "Fix the login bug"

    assert "in-progress" in (registry.handle(state, "/next") or "")
    assert registry.handle(state, "/next") == "No todo tasks found"

    # short id prefixes, as printed by the listing, are accepted
    assert "completed" in (registry.handle(state, f"/done {task.id[:8]}") or "")
    assert state.task_store.get(task.id).status == TaskStatus.DONE


def test_short_id_prefix_ignores_case(state) -> None:
    task = state.task_store.add({"description": "Typed in caps"})

    assert "completed" in (registry.handle(state, f"/done {task.id[:8].upper()}") or "")
    assert state.task_store.get(task.id).status == TaskStatus.DONE


def test_add_rejects_short_description(state) -> None:
    reply = registry.handle(state, "/add ab") or ""
    assert reply.startswith("Error:")
    assert state.task_store.count() == 0


def test_tasks_listing_and_bad_filter(state) -> None:
    registry.handle(state, "/add Write the docs")
    registry.handle(state, "/add !low Tidy imports")

    listing = registry.handle(state, "/tasks") or ""
    assert listing.startswith("2 task(s):")
    assert "Write the docs" in listing

    low_only = registry.handle(state, "/tasks - low") or ""
    assert "Tidy imports" in low_only and "Write the docs" not in low_only

    assert (registry.handle(state, "/tasks finished") or "").startswith("Error:")


def test_related_and_rm(state) -> None:
    store = state.task_store
    base = store.add({"description": "Base task"})
    dep = store.add({"description": "Follow-up", "dependsOn": [base.id]})

    assert "Follow-up" in (registry.handle(state, f"/related {base.id}") or "")
    assert registry.handle(state, f"/rm {dep.id}") == f"Deleted {dep.id}"
    assert registry.handle(state, f"/related {base.id}") == "No related tasks."


def test_status_and_save(state) -> None:
    registry.handle(state, "/add Count me in")

    status = registry.handle(state, "/status") or ""
    assert "todo=1" in status
    assert str(state.task_store.path) in status

    assert (registry.handle(state, "/save") or "").startswith("Saved 1 tasks")
    assert state.task_store.path.read_text("utf-8").count("\n") == 1


def test_later_validates_input(state) -> None:
    task = state.task_store.add({"description": "Wait for it"})

    assert registry.handle(state, "/later") == "Usage: /later <id> <seconds> <status>"
    assert "Not a number" in (registry.handle(state, f"/later {task.id} soon done") or "")
    assert (registry.handle(state, f"/later {task.id} 1 someday") or "").startswith("Error:")
