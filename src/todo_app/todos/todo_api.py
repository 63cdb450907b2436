# src/todo_app/todos/todo_api.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

from ..core.state import AppState
from .todo_models import Todo, parse_instant

logger = logging.getLogger(__name__)

EXPORT_MEDIA_TYPE = "application/json"

NOTHING_TO_EXPORT_NOTICE = "There is no data to export."


def export_filename(now: datetime | None = None) -> str:
    """Suggested export name: todos-YYYY-MM-DD.json, dated in UTC like the envelope timestamps."""
    current = now.astimezone(timezone.utc) if now is not None else datetime.now(timezone.utc)
    day = current.date().isoformat()
    return f"todos-{day}.json"


def export_to_file(state: AppState, directory: str | Path, now: datetime | None = None) -> Path | None:
    """
    Write the stored envelope, unmodified, into `directory`.

    Returns the written path, or None when there is nothing stored.
    """
    data = state.storage.export_raw()
    if not data:
        state.notifier.notify_user(NOTHING_TO_EXPORT_NOTICE)
        return None

    out_dir = Path(directory).expanduser()
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / export_filename(now)
    path.write_text(data, encoding="utf-8")
    logger.info("Exported todos to %s (%d bytes)", path, len(data.encode("utf-8")))
    return path


async def import_from_file(state: AppState, path: str | Path) -> bool:
    """
    Read a previously exported file and replace the stored envelope with it.

    The file read happens off the event loop; on success the todo list is reloaded.
    """
    path = Path(path).expanduser()
    try:
        content = await asyncio.to_thread(path.read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Failed to read import file %s: %s", path, e)
        state.notifier.notify_user(f"Import failed: {e}")
        return False

    result = state.storage.import_raw(content)
    if not result:
        return False

    state.todos.load()
    logger.info("Imported todos from %s", path)
    return True


def display_order(todos: Iterable[Todo]) -> list[Todo]:
    """Incomplete first, then newest created first within each group."""

    def created_ts(todo: Todo) -> float:
        dt = parse_instant(todo.created_at)
        return dt.timestamp() if dt is not None else float("-inf")

    return sorted(todos, key=lambda t: (t.completed, -created_ts(t)))
