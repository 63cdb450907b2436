# src/todo_app/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the key-value store, storage service and todo list into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import KeyValueStore, UserNotifier
from ..core.state import AppState
from ..storage.kv_store import MemoryKVStore, SQLiteKVStore
from ..storage.storage_service import LoggingNotifier, StorageConfig, StorageService
from ..todos.todo_list import TodoList

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    if settings.store_backend == "sqlite":
        settings.store_path.parent.mkdir(parents=True, exist_ok=True)


def build_store(settings) -> KeyValueStore:
    quota = int(getattr(settings, "storage_quota_bytes", 0) or 0) or None
    if settings.store_backend == "memory":
        logger.info("Using in-memory store (nothing survives this session).")
        return MemoryKVStore(quota_bytes=quota)
    return SQLiteKVStore(settings.store_path, quota_bytes=quota)


def create_initial_state(*, settings=None, notifier: UserNotifier | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings(). The todo list is NOT loaded here.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    notifier = notifier or LoggingNotifier()
    store = build_store(settings)
    storage = StorageService(store, StorageConfig.from_settings(settings), notifier)
    if not storage.is_available():
        logger.warning("Storage backend %s is not usable; changes will not be saved.", settings.store_backend)

    todos = TodoList(
        storage,
        rollback_invalid_updates=bool(getattr(settings, "rollback_invalid_updates", False)),
    )

    return AppState(
        settings=settings,
        store=store,
        storage=storage,
        todos=todos,
        notifier=notifier,
    )
