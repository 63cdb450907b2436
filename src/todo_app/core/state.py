# src/todo_app/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..storage.storage_service import StorageService
from ..todos.todo_list import FilterCriteria, TodoList
from .ports import KeyValueStore, UserNotifier


@dataclass
class AppState:
    # Settings object (todo_app.config.Settings or a test stand-in).
    settings: Any

    store: KeyValueStore
    storage: StorageService
    todos: TodoList
    notifier: UserNotifier

    # Front-end view state: what /list shows.
    current_filter: FilterCriteria = field(default_factory=FilterCriteria)
    sort_field: str | None = None
    sort_order: str = "desc"
