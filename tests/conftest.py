# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from tasktank.core.state import AppState
from tasktank.tasks import task_models
from tasktank.tasks.task_store import TaskStore

from .fakes import FakeClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="tasktank-test",
        log_level="DEBUG",
        console_enabled=False,
        data_dir=tmp_path,
        tasks_path=tmp_path / "tasks.jsonl",
        save_delay_seconds=0.05,
    )


@pytest.fixture()
def clock(monkeypatch: pytest.MonkeyPatch) -> FakeClock:
    """Every timestamp taken by the models is one second after the previous one."""
    fake = FakeClock()
    monkeypatch.setattr(task_models, "utcnow", fake)
    return fake


@pytest.fixture()
def store(settings: SimpleNamespace, clock: FakeClock) -> TaskStore:
    """
    Real TaskStore on a tmp file.

    Outside an event loop saves are written straight away; async tests get the
    throttled behaviour.
    """
    s = TaskStore(settings.tasks_path, save_delay_seconds=settings.save_delay_seconds)
    s.load()
    yield s
    s.clear_all_timeouts()


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore) -> AppState:
    return AppState(settings=settings, task_store=store)
