# src/todo_app/cli/commands.py

from __future__ import annotations

import asyncio
import inspect
import logging
import shlex
from collections.abc import Callable
from pathlib import Path
from typing import Any, cast

from ..core.state import AppState
from ..todos.formatting import (
    format_date_short,
    format_relative_time,
    parse_list,
    parse_tags,
    priority_label,
)
from ..todos.todo_api import display_order, export_to_file, import_from_file
from ..todos.todo_list import FilterCriteria, StatusFilter
from ..todos.todo_models import Todo, ValidationError

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

# --option -> todo field
_OPTION_FIELDS = {
    "--title": "title",
    "--desc": "description",
    "--priority": "priority",
    "-p": "priority",
    "--due": "dueDate",
    "--cat": "categories",
    "--tags": "tags",
}


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str, emit: CommandEmitter | None = None) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError as e:
            return f"Could not parse command: {e}"
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


def _parse_fields(args: list[str]) -> tuple[list[str], dict[str, Any]]:
    """Split args into positional words and todo fields given as --option value."""
    words: list[str] = []
    data: dict[str, Any] = {}
    i = 0
    while i < len(args):
        token = args[i]
        name = _OPTION_FIELDS.get(token)
        if name is None:
            words.append(token)
            i += 1
            continue
        value = args[i + 1] if i + 1 < len(args) else ""
        if name == "tags":
            data[name] = parse_tags(value)
        elif name == "categories":
            data[name] = parse_list(value)
        elif name == "dueDate":
            data[name] = value or None
        else:
            data[name] = value
        i += 2
    return words, data


def _resolve(state: AppState, raw_id: str) -> Todo | str:
    """Exact id, or a unique id prefix. Returns an error string when ambiguous/missing."""
    if not raw_id.strip():
        return "Missing todo id."
    todo = state.todos.find_by_id(raw_id)
    if todo is not None:
        return todo
    matches = [t for t in state.todos if t.id.startswith(raw_id)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        return f"No todo with id {raw_id}."
    return f"Id prefix {raw_id} is ambiguous ({len(matches)} matches)."


def _format_line(todo: Todo) -> str:
    box = "[x]" if todo.completed else "[ ]"
    bits = [f"{box} {todo.id}  {todo.title}", f"({priority_label(todo.priority)})"]
    if todo.due_date:
        due = format_date_short(todo.due_date) or todo.due_date
        flag = " OVERDUE" if todo.is_overdue() else (" today" if todo.is_due_today() else "")
        bits.append(f"due {due}{flag}")
    if todo.categories:
        bits.append("[" + ", ".join(todo.categories) + "]")
    if todo.tags:
        bits.append(" ".join(todo.tags))
    return " ".join(bits)


def _format_detail(todo: Todo) -> str:
    lines = [
        f"Todo {todo.id}",
        f"  Title: {todo.title}",
        f"  Description: {todo.description or '-'}",
        f"  Status: {'completed' if todo.completed else 'active'}",
        f"  Priority: {priority_label(todo.priority)}",
        f"  Due: {format_date_short(todo.due_date) or '-'}",
        f"  Categories: {', '.join(todo.categories) or '-'}",
        f"  Tags: {' '.join(todo.tags) or '-'}",
        f"  Created: {format_relative_time(todo.created_at)}",
        f"  Updated: {format_relative_time(todo.updated_at)}",
    ]
    if todo.completed_at:
        lines.append(f"  Completed: {format_relative_time(todo.completed_at)}")
    return "\n".join(lines)


# ---- commands ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add Buy milk --priority high --due 2026-10-20 --cat home,errands --tags shop
    """
    words, data = _parse_fields(args)
    if words and "title" not in data:
        data["title"] = " ".join(words)
    try:
        todo = state.todos.add(data)
    except ValidationError as e:
        return f"Invalid todo: {e}"
    return f"Added {todo.id}: {todo.title}"


def cmd_edit(state: AppState, args: list[str]) -> str:
    """/edit <id> --title ... --priority ... (only given fields change)"""
    if not args:
        return "Usage: /edit <id> [--title T] [--desc D] [--priority P] [--due DATE] [--cat a,b] [--tags a,b]"
    found = _resolve(state, args[0])
    if isinstance(found, str):
        return found
    _, data = _parse_fields(args[1:])
    if not data:
        return "Nothing to change."
    try:
        todo = state.todos.update(found.id, data)
    except ValidationError as e:
        return f"Invalid todo: {e}"
    return f"Updated {found.id}." if todo else f"No todo with id {found.id}."


def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <id>"
    found = _resolve(state, args[0])
    if isinstance(found, str):
        return found
    todo = state.todos.toggle(found.id)
    if todo is None:
        return f"No todo with id {found.id}."
    return f"{'Completed' if todo.completed else 'Reopened'} {todo.id}: {todo.title}"


def cmd_rm(state: AppState, args: list[str]) -> str:
    """/rm <id> asks first; /rm <id> yes deletes."""
    if not args:
        return "Usage: /rm <id>"
    found = _resolve(state, args[0])
    if isinstance(found, str):
        return found
    if len(args) < 2 or args[1].lower() != "yes":
        return f"Delete {found.id}: {found.title}? Run /rm {found.id} yes to confirm."
    return f"Deleted {found.id}." if state.todos.delete(found.id) else f"No todo with id {found.id}."


def cmd_show(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /show <id>"
    found = _resolve(state, args[0])
    if isinstance(found, str):
        return found
    return _format_detail(found)


def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list              -> current filter
    /list active       -> one-off status override
    """
    criteria = state.current_filter
    if args:
        criteria = criteria.merged(status=args[0].lower())
    try:
        visible = state.todos.filter(criteria)
    except ValueError as e:
        return str(e)

    if state.sort_field:
        ids = {t.id for t in visible}
        ordered = [t for t in state.todos.sort(state.sort_field, state.sort_order) if t.id in ids]
    else:
        ordered = display_order(visible)

    if not ordered:
        return "No todos."
    return "\n".join(_format_line(t) for t in ordered)


def cmd_filter(state: AppState, args: list[str]) -> str:
    """
    /filter                      -> show current filter
    /filter reset                -> clear it
    /filter status=active tag=work search=milk
    """
    if not args:
        f = state.current_filter
        return (
            "Filter:\n"
            f"  status={f.status or 'all'} priority={f.priority or '-'} category={f.category or '-'}\n"
            f"  tag={f.tag or '-'} search={f.search or '-'}"
        )
    if args[0].lower() == "reset":
        state.current_filter = FilterCriteria()
        return "Filter cleared."

    changes: dict[str, Any] = {}
    for arg in args:
        key, sep, value = arg.partition("=")
        key = key.lower()
        if not sep or key not in ("status", "priority", "category", "tag", "search"):
            return f"Bad filter term: {arg}. Use key=value with status|priority|category|tag|search."
        changes[key] = value or None

    status = changes.get("status")
    if status and status not in tuple(StatusFilter):
        return f"Unknown status filter: {status}"

    state.current_filter = state.current_filter.merged(**changes)
    return "Filter updated."


def cmd_sort(state: AppState, args: list[str]) -> str:
    """/sort priority desc | /sort dueDate asc | /sort reset"""
    if not args:
        return f"Sort: {state.sort_field or 'default'} {state.sort_order if state.sort_field else ''}".rstrip()
    if args[0].lower() == "reset":
        state.sort_field = None
        state.sort_order = "desc"
        return "Sort reset (incomplete first, newest first)."
    order = args[1].lower() if len(args) > 1 else "desc"
    try:
        state.todos.sort(args[0], order)
    except ValueError as e:
        return str(e)
    state.sort_field = args[0]
    state.sort_order = order
    return f"Sorting by {args[0]} {order}."


def cmd_stats(state: AppState, args: list[str]) -> str:
    s = state.todos.get_stats()
    lines = [f"Total: {s.total}", f"Completed: {s.completed}", f"Active: {s.active}"]
    if s.due_today:
        lines.append(f"Due today: {s.due_today}")
    if s.overdue:
        lines.append(f"Overdue: {s.overdue}")
    return "\n".join(lines)


def cmd_cats(state: AppState, args: list[str]) -> str:
    cats = state.todos.get_all_categories()
    return "Categories: " + (", ".join(cats) if cats else "(none)")


def cmd_tags(state: AppState, args: list[str]) -> str:
    tags = state.todos.get_all_tags()
    return "Tags: " + (" ".join(tags) if tags else "(none)")


def cmd_export(state: AppState, args: list[str]) -> str:
    directory = Path(args[0]) if args else Path(getattr(state.settings, "export_dir", "."))
    try:
        path = export_to_file(state, directory)
    except OSError as e:
        logger.exception("Export to %s failed", directory)
        return f"Export failed: {e}"
    return f"Exported to {path}" if path else "There is no data to export."


def cmd_import(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /import <file.json>"
    if emit:
        emit(f"Importing {args[0]}...")
    ok = asyncio.run(import_from_file(state, args[0]))
    return f"Import complete: {len(state.todos)} todos." if ok else "Import failed."


def cmd_clear(state: AppState, args: list[str]) -> str:
    if not args or args[0].lower() != "yes":
        return "This deletes every todo and cannot be undone. Run /clear yes to confirm."
    state.todos.clear()
    return "All todos deleted."


def cmd_info(state: AppState, args: list[str]) -> str:
    info = state.storage.storage_info()
    available = "yes" if state.storage.is_available() else "no"
    return (
        "Storage:\n"
        f"  Key: {info.key}\n"
        f"  Version: {state.storage.version}\n"
        f"  Size: {info.size} bytes ({info.size_kb} KB)\n"
        f"  Available: {available}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register(
    "add", cmd_add, help_text="Add a todo: /add <title> [--priority P] [--due DATE] [--cat a,b] [--tags a,b]."
)
registry.register("list", cmd_list, help_text="List todos: /list [all|active|completed].", aliases=["ls"])
registry.register("show", cmd_show, help_text="Show one todo: /show <id>.")
registry.register("edit", cmd_edit, help_text="Edit a todo: /edit <id> --title ... --priority ...")
registry.register("done", cmd_done, help_text="Toggle completion: /done <id>.", aliases=["toggle"])
registry.register("rm", cmd_rm, help_text="Delete a todo: /rm <id> yes.", aliases=["del", "delete"])
registry.register("filter", cmd_filter, help_text="Set list filter: /filter key=value ... | /filter reset.")
registry.register("sort", cmd_sort, help_text="Set list order: /sort <field> [asc|desc] | /sort reset.")
registry.register("stats", cmd_stats, help_text="Show counts (total/completed/active/overdue/today).")
registry.register("cats", cmd_cats, help_text="List all categories.")
registry.register("tags", cmd_tags, help_text="List all tags.")
registry.register("export", cmd_export, help_text="Export to todos-<date>.json: /export [dir].")
registry.register("import", cmd_import, help_text="Import an exported file: /import <file.json>.")
registry.register("clear", cmd_clear, help_text="Delete every todo: /clear yes.")
registry.register("info", cmd_info, help_text="Show storage key/version/size.")
