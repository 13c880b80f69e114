# tests/test_task_models.py

from __future__ import annotations

import dataclasses
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from tasktank.tasks.task_errors import ValidationError
from tasktank.tasks.task_models import (
    TaskPriority,
    TaskStatus,
    apply_patch,
    new_task,
    task_from_record,
    task_to_record,
)

NOW = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)


def test_new_task_applies_defaults() -> None:
    task = new_task({"description": "  Write spec  "}, now=NOW)

    assert uuid.UUID(task.id).version == 4
    assert task.description == "  Write spec  "
    assert task.status == TaskStatus.TODO
    assert task.priority == TaskPriority.MEDIUM
    assert task.created == task.updated == NOW
    assert task.due is None
    assert task.tags == frozenset()
    assert task.depends_on == frozenset()


def test_new_task_accepts_all_optional_fields() -> None:
    dep = str(uuid.uuid4())
    task = new_task(
        {
            "description": "Ship it",
            "status": "blocked",
            "priority": "high",
            "due": "2026-03-05T10:00:00Z",
            "tags": ["release", "release", "ops"],
            "dependsOn": [dep],
        },
        now=NOW,
    )

    assert task.status == TaskStatus.BLOCKED
    assert task.priority == TaskPriority.HIGH
    assert task.due == datetime(2026, 3, 5, 10, 0, tzinfo=timezone.utc)
    assert task.tags == {"release", "ops"}
    assert task.depends_on == {dep}


@pytest.mark.parametrize(
    ("data", "field", "rule"),
    [
        ({"description": "ab"}, "description", "min_length"),
        ({"description": " a"}, "description", "min_length"),
        ({}, "description", "required"),
        ({"description": "valid", "status": "doing"}, "status", "enum"),
        ({"description": "valid", "priority": "urgent"}, "priority", "enum"),
        ({"description": "valid", "dependsOn": ["not-a-uuid"]}, "dependsOn", "uuid"),
        ({"description": "valid", "due": "next tuesday"}, "due", "datetime"),
        ({"description": "valid", "tags": "oops"}, "tags", "type"),
        ({"description": "valid", "owner": "me"}, "owner", "unknown_field"),
        ({"description": "valid", "id": str(uuid.uuid4())}, "id", "read_only"),
    ],
)
def test_new_task_validation_errors(data: dict, field: str, rule: str) -> None:
    with pytest.raises(ValidationError) as exc:
        new_task(data, now=NOW)
    assert exc.value.field == field
    assert exc.value.rule == rule


def test_validation_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        new_task({"description": "x"})


def test_description_whitespace_is_kept_and_counted() -> None:
    assert new_task({"description": " ab "}, now=NOW).description == " ab "
    assert apply_patch(new_task({"description": "abc"}, now=NOW), {"description": "\tx\n"}).description == "\tx\n"

    with pytest.raises(ValidationError):
        new_task({"description": "  "}, now=NOW)


def test_dependency_ids_are_stored_verbatim() -> None:
    dep = str(uuid.uuid4()).upper()
    task = new_task({"description": "Shouting deps", "dependsOn": [dep]}, now=NOW)

    assert task.depends_on == {dep}
    assert task_to_record(task)["dependsOn"] == [dep]


def test_naive_timestamps_are_taken_as_utc() -> None:
    task = new_task({"description": "naive due", "due": "2026-03-05T10:00:00"}, now=NOW)
    assert task.due is not None
    assert task.due.tzinfo is not None
    assert task.due.utcoffset() == timedelta(0)


def test_empty_patch_only_touches_updated() -> None:
    task = new_task({"description": "Write spec", "tags": ["a"]}, now=NOW)
    later = NOW + timedelta(minutes=5)

    patched = apply_patch(task, {}, now=later)

    assert patched.updated == later
    assert patched == dataclasses.replace(task, updated=later)


def test_patch_returns_new_value_and_validates_touched_fields() -> None:
    task = new_task({"description": "Write spec"}, now=NOW)

    patched = apply_patch(task, {"status": "in-progress", "priority": "low"}, now=NOW + timedelta(seconds=1))

    assert patched is not task
    assert task.status == TaskStatus.TODO
    assert patched.status == TaskStatus.IN_PROGRESS
    assert patched.priority == TaskPriority.LOW
    assert patched.id == task.id
    assert patched.created == task.created

    with pytest.raises(ValidationError) as exc:
        apply_patch(task, {"description": "no"})
    assert exc.value.rule == "min_length"

    with pytest.raises(ValidationError) as exc:
        apply_patch(task, {"id": str(uuid.uuid4())})
    assert exc.value.rule == "read_only"


def test_patch_can_clear_due() -> None:
    task = new_task({"description": "Has a due date", "due": "2026-04-01T00:00:00Z"}, now=NOW)
    assert apply_patch(task, {"due": None}, now=NOW).due is None


def test_updated_never_moves_backwards() -> None:
    task = new_task({"description": "Clock skew"}, now=NOW)
    patched = apply_patch(task, {"priority": "high"}, now=NOW - timedelta(hours=1))
    assert patched.updated == NOW


def test_record_mapping_uses_wire_names() -> None:
    dep = str(uuid.uuid4())
    task = new_task({"description": "Wire shape", "dependsOn": [dep], "tags": ["b", "a"]}, now=NOW)

    record = task_to_record(task)

    assert record["status"] == "todo"
    assert record["priority"] == "medium"
    assert record["created"] == "2026-03-01T09:30:00Z"
    assert record["tags"] == ["a", "b"]
    assert record["dependsOn"] == [dep]
    assert "due" not in record
    assert task_from_record(record) == task


def test_record_without_updated_or_defaults_is_accepted() -> None:
    tid = str(uuid.uuid4())
    task = task_from_record({"id": tid, "description": "Old format", "created": "2025-12-31T23:00:00.000Z"})

    assert task.updated == task.created
    assert task.status == TaskStatus.TODO
    assert task.priority == TaskPriority.MEDIUM
    assert task.tags == frozenset()


def test_record_with_bad_values_is_rejected() -> None:
    with pytest.raises(ValidationError):
        task_from_record({"id": "nope", "description": "Bad id", "created": "2026-01-01T00:00:00Z"})
    with pytest.raises(ValidationError):
        task_from_record(["not", "an", "object"])


def test_priority_rank() -> None:
    assert TaskPriority.HIGH.rank > TaskPriority.MEDIUM.rank > TaskPriority.LOW.rank
