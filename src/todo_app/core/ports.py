# src/todo_app/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The todo list and storage service depend on Protocols instead of concrete
implementations, so stores and front ends stay swappable and tests can use fakes.
"""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..todos.todo_models import Todo


class KeyValueStore(Protocol):
    """
    Whole-value string store (local storage semantics).

    No partial updates and no multi-key transactions. Implementations raise
    StorageQuotaExceededError when a write would not fit.
    """

    def get_item(self, key: str) -> str | None: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...


class UserNotifier(Protocol):
    """Front-end side port: how storage problems are surfaced to the person using the app."""

    def notify_user(self, message: str) -> None: ...


class TodoListener(Protocol):
    """Change subscriber; receives a snapshot copy of the current todos."""

    def __call__(self, todos: list[Todo]) -> None: ...
