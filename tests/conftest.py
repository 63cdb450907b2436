# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from todo_app.cli.bootstrap import create_initial_state
from todo_app.core.state import AppState
from todo_app.storage.kv_store import MemoryKVStore
from todo_app.storage.storage_service import StorageConfig, StorageService
from todo_app.todos.todo_list import TodoList

from .fakes import RecordingNotifier


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and the CLI commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the developer's environment and .env.
    """
    return SimpleNamespace(
        app_name="todo-test",
        log_level="DEBUG",
        data_dir=tmp_path / "data",
        store_backend="sqlite",
        store_path=tmp_path / "data" / "storage.sqlite3",
        export_dir=tmp_path / "exports",
        storage_key="todoApp",
        schema_version="1.0.0",
        storage_quota_bytes=0,
        rollback_invalid_updates=False,
    )


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def store() -> MemoryKVStore:
    return MemoryKVStore()


@pytest.fixture()
def storage(store: MemoryKVStore, notifier: RecordingNotifier) -> StorageService:
    return StorageService(store, StorageConfig(), notifier)


@pytest.fixture()
def todo_list(storage: StorageService) -> TodoList:
    return TodoList(storage)


@pytest.fixture()
def state(settings: SimpleNamespace, notifier: RecordingNotifier) -> AppState:
    """
    AppState wired through the real composition root.

    NOTE: We keep the real SQLite store here because the CLI path
    (bootstrap -> storage -> list) is part of what we want to test.
    """
    st = create_initial_state(settings=settings, notifier=notifier)
    st.todos.load()
    return st
