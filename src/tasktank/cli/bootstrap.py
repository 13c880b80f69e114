# src/tasktank/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local data directory exists,
- constructs and loads the TaskStore explicitly (no module-level singleton),
- wires it into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    task_store = TaskStore(
        settings.tasks_path,
        save_delay_seconds=getattr(settings, "save_delay_seconds", 1.0),
    )
    task_store.load()

    return AppState(settings=settings, task_store=task_store)


def shutdown_state(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    store = state.task_store
    try:
        close = getattr(store, "close", None)
        if close is not None:
            close()
        else:
            store.clear_all_timeouts()
            store.save_immediately()
    except Exception:
        logger.exception("Failed to close task store.")
