# src/tasktank/tasks/task_models.py

from __future__ import annotations

import dataclasses
import re
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from .task_errors import ValidationError

MIN_DESCRIPTION_LENGTH = 3

_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)

# Input keys accepted by new_task/apply_patch, mapped to dataclass field names.
_INPUT_KEYS = {
    "description": "description",
    "status": "status",
    "priority": "priority",
    "due": "due",
    "tags": "tags",
    "dependsOn": "depends_on",
    "depends_on": "depends_on",
}
_READ_ONLY_KEYS = frozenset({"id", "created", "updated"})


class TaskStatus(StrEnum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    BLOCKED = "blocked"
    DONE = "done"


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    TaskPriority.LOW: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.HIGH: 3,
}


@dataclass(frozen=True, slots=True)
class Task:
    id: str
    description: str
    status: TaskStatus
    priority: TaskPriority
    created: datetime
    updated: datetime
    due: datetime | None = None
    tags: frozenset[str] = frozenset()
    depends_on: frozenset[str] = frozenset()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


# ---- field validators ----


def validate_description(value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationError("description", "type", "description must be a string")
    # stored exactly as given; whitespace counts toward the length
    if len(value) < MIN_DESCRIPTION_LENGTH:
        raise ValidationError(
            "description",
            "min_length",
            f"Description must be at least {MIN_DESCRIPTION_LENGTH} characters",
        )
    return value


def validate_status(value: Any, field: str = "status") -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in TaskStatus)
        raise ValidationError(field, "enum", f"{field} must be one of: {allowed} (got {value!r})") from None


def validate_priority(value: Any, field: str = "priority") -> TaskPriority:
    try:
        return TaskPriority(value)
    except ValueError:
        allowed = ", ".join(p.value for p in TaskPriority)
        raise ValidationError(field, "enum", f"{field} must be one of: {allowed} (got {value!r})") from None


def validate_task_id(value: Any, field: str = "id") -> str:
    if not isinstance(value, str) or not _UUID_RE.match(value):
        raise ValidationError(field, "uuid", f"{field} must be a UUID (got {value!r})")
    # Ids are compared verbatim everywhere, so keep the caller's text.
    return value


def validate_timestamp(value: Any, field: str) -> datetime:
    """Accept an aware/naive datetime or ISO 8601 text; naive values are taken as UTC."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.strip())
        except ValueError:
            raise ValidationError(field, "datetime", f"{field} must be an ISO 8601 timestamp (got {value!r})") from None
    else:
        raise ValidationError(field, "datetime", f"{field} must be an ISO 8601 timestamp (got {value!r})")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _string_set(value: Any, field: str) -> list[str]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        raise ValidationError(field, "type", f"{field} must be a list of strings")
    items = list(value)
    for item in items:
        if not isinstance(item, str):
            raise ValidationError(field, "type", f"{field} must be a list of strings")
    return items


def validate_tags(value: Any) -> frozenset[str]:
    return frozenset(_string_set(value, "tags"))


def validate_depends_on(value: Any, field: str = "dependsOn") -> frozenset[str]:
    return frozenset(validate_task_id(v, field) for v in _string_set(value, field))


def _validate_field(name: str, key: str, value: Any) -> Any:
    if name == "description":
        return validate_description(value)
    if name == "status":
        return validate_status(value, key)
    if name == "priority":
        return validate_priority(value, key)
    if name == "due":
        return None if value is None else validate_timestamp(value, key)
    if name == "tags":
        return validate_tags(value)
    if name == "depends_on":
        return validate_depends_on(value, key)
    raise ValidationError(key, "unknown_field")


def _validated_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    if not isinstance(data, Mapping):
        raise ValidationError("task", "type", "task input must be an object")

    out: dict[str, Any] = {}
    for key, value in data.items():
        if key in _READ_ONLY_KEYS:
            raise ValidationError(key, "read_only", f"{key} cannot be set by callers")
        name = _INPUT_KEYS.get(key)
        if name is None:
            raise ValidationError(str(key), "unknown_field", f"unknown task field {key!r}")
        out[name] = _validate_field(name, key, value)
    return out


# ---- construction / update ----


def new_task(data: Mapping[str, Any], *, now: datetime | None = None) -> Task:
    """
    Build a complete Task from partial input.

    Required: description. Optional: status, priority, due, tags, dependsOn.
    Defaults: status=todo, priority=medium, no tags, no dependencies.
    """
    fields = _validated_fields(data)
    if "description" not in fields:
        raise ValidationError("description", "required", "description is required")

    ts = now or utcnow()
    return Task(
        id=str(uuid.uuid4()),
        description=fields["description"],
        status=fields.get("status") or TaskStatus.TODO,
        priority=fields.get("priority") or TaskPriority.MEDIUM,
        created=ts,
        updated=ts,
        due=fields.get("due"),
        tags=fields.get("tags", frozenset()),
        depends_on=fields.get("depends_on", frozenset()),
    )


def apply_patch(task: Task, patch: Mapping[str, Any], *, now: datetime | None = None) -> Task:
    """
    Return a copy of `task` with `patch` applied and `updated` refreshed.

    Only the touched keys are validated. An empty patch changes nothing but `updated`.
    """
    fields = _validated_fields(patch)
    ts = now or utcnow()
    # updated never moves backwards, even if the wall clock does
    fields["updated"] = max(ts, task.updated)
    return dataclasses.replace(task, **fields)


# ---- record mapping (persisted / tool-facing shape) ----


def task_to_record(task: Task) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": task.id,
        "description": task.description,
        "status": task.status.value,
        "priority": task.priority.value,
        "created": format_timestamp(task.created),
        "updated": format_timestamp(task.updated),
    }
    if task.due is not None:
        record["due"] = format_timestamp(task.due)
    record["tags"] = sorted(task.tags)
    record["dependsOn"] = sorted(task.depends_on)
    return record


def task_from_record(record: Any) -> Task:
    """
    Rebuild a Task from its stored shape.

    Older files may omit `updated` (taken from `created`) and the defaulted
    fields. Unknown keys are ignored.
    """
    if not isinstance(record, Mapping):
        raise ValidationError("task", "type", "task record must be an object")
    if "id" not in record:
        raise ValidationError("id", "required", "id is required")
    if "created" not in record:
        raise ValidationError("created", "required", "created is required")
    if "description" not in record:
        raise ValidationError("description", "required", "description is required")

    created = validate_timestamp(record["created"], "created")
    raw_updated = record.get("updated")
    updated = created if raw_updated is None else validate_timestamp(raw_updated, "updated")
    raw_due = record.get("due")

    return Task(
        id=validate_task_id(record["id"]),
        description=validate_description(record["description"]),
        status=validate_status(record.get("status") or TaskStatus.TODO),
        priority=validate_priority(record.get("priority") or TaskPriority.MEDIUM),
        created=created,
        updated=max(updated, created),
        due=None if raw_due is None else validate_timestamp(raw_due, "due"),
        tags=validate_tags(record.get("tags") or []),
        depends_on=validate_depends_on(record.get("dependsOn") or []),
    )
