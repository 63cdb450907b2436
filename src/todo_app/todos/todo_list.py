# src/todo_app/todos/todo_list.py

from __future__ import annotations

"""
The todo list: single authoritative in-memory set of todos.

Every mutation goes through persist(), which writes the whole list through the
storage service and then notifies subscribers. Subscribers get a snapshot copy,
never the list's own storage.
"""

import copy
import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, fields
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from ..core.ports import TodoListener
from .todo_models import Priority, Todo, ValidationError, normalize_tag, parse_instant

if TYPE_CHECKING:
    from ..storage.storage_service import StorageResult, StorageService

logger = logging.getLogger(__name__)

# Sortable fields: wire name -> attribute name.
_SORT_FIELDS = {
    "id": "id",
    "title": "title",
    "description": "description",
    "completed": "completed",
    "priority": "priority",
    "dueDate": "due_date",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "completedAt": "completed_at",
}
_DATE_ATTRS = frozenset({"due_date", "created_at", "updated_at", "completed_at"})
_EARLIEST = float("-inf")


class StatusFilter(StrEnum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"


@dataclass(slots=True)
class FilterCriteria:
    """
    Conjunctive filter. Unset (None/empty) fields impose no constraint.

    search matches case-insensitively against title OR description.
    """

    status: StatusFilter | str | None = None
    priority: Priority | str | None = None
    category: str | None = None
    tag: str | None = None
    search: str | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> FilterCriteria:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in raw.items() if k in known})

    def merged(self, **changes: Any) -> FilterCriteria:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data.update(changes)
        return FilterCriteria(**data)

    def matches(self, todo: Todo) -> bool:
        status = StatusFilter(self.status) if self.status else StatusFilter.ALL
        if status is StatusFilter.ACTIVE and todo.completed:
            return False
        if status is StatusFilter.COMPLETED and not todo.completed:
            return False

        if self.priority and todo.priority != self.priority:
            return False

        if self.category and self.category not in todo.categories:
            return False

        if self.tag and normalize_tag(self.tag) not in todo.tags:
            return False

        if self.search:
            needle = self.search.lower()
            if needle not in todo.title.lower() and needle not in todo.description.lower():
                return False

        return True


@dataclass(frozen=True, slots=True)
class TodoStats:
    total: int
    completed: int
    active: int
    overdue: int
    due_today: int

    def as_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "completed": self.completed,
            "active": self.active,
            "overdue": self.overdue,
            "dueToday": self.due_today,
        }


def _resolve_sort_field(field_name: str) -> str:
    if field_name in _SORT_FIELDS:
        return _SORT_FIELDS[field_name]
    if field_name in _SORT_FIELDS.values():
        return field_name
    raise ValueError(f"Unknown sort field: {field_name}")


def _sort_key(attr: str) -> Callable[[Todo], Any]:
    if attr in _DATE_ATTRS:
        def date_key(todo: Todo) -> float:
            dt = parse_instant(getattr(todo, attr))
            return dt.timestamp() if dt is not None else _EARLIEST

        return date_key

    if attr == "priority":
        def priority_key(todo: Todo) -> int:
            return todo.priority.rank if isinstance(todo.priority, Priority) else 0

        return priority_key

    def value_key(todo: Todo) -> tuple[bool, Any]:
        value = getattr(todo, attr)
        return (value is not None, value)

    return value_key


class TodoList:
    def __init__(self, storage: StorageService, *, rollback_invalid_updates: bool = False) -> None:
        self.storage = storage
        self.rollback_invalid_updates = rollback_invalid_updates
        self._todos: list[Todo] = []
        self._listeners: list[TodoListener] = []

    def __len__(self) -> int:
        return len(self._todos)

    def __iter__(self) -> Iterator[Todo]:
        return iter(list(self._todos))

    @property
    def todos(self) -> list[Todo]:
        return list(self._todos)

    # ---- persistence ----

    def load(self) -> None:
        """Replace the in-memory todos with what the storage service returns."""
        loaded: list[Todo] = []
        for raw in self.storage.load():
            if not isinstance(raw, Mapping):
                logger.warning("Skipping non-object todo record: %r", raw)
                continue
            loaded.append(Todo.from_dict(raw))
        self._todos = loaded
        logger.info("Loaded %d todos", len(loaded))
        self.notify()

    def persist(self) -> StorageResult:
        """
        Write every todo through the storage service, then notify.

        Subscribers are notified even when the write fails; the storage service
        already surfaced the failure.
        """
        result = self.storage.save([t.to_dict() for t in self._todos])
        if not result:
            logger.warning("Persist failed (%s): %s", result.error, result.detail)
        self.notify()
        return result

    # ---- CRUD ----

    def add(self, data: Mapping[str, Any]) -> Todo:
        todo = Todo.from_dict(data)
        validation = todo.validate()
        if not validation.is_valid:
            raise ValidationError(validation.errors)

        self._todos.append(todo)
        logger.debug("Todo added id=%s", todo.id)
        self.persist()
        return todo

    def update(self, todo_id: str, changes: Mapping[str, Any]) -> Todo | None:
        """
        Apply a partial update and persist.

        On validation failure the in-place change stays unless the list was built
        with rollback_invalid_updates=True.
        """
        todo = self.find_by_id(todo_id)
        if todo is None:
            return None

        if self.rollback_invalid_updates:
            draft = copy.deepcopy(todo)
            draft.update(changes)
            validation = draft.validate()
            if not validation.is_valid:
                raise ValidationError(validation.errors)
            for f in fields(Todo):
                setattr(todo, f.name, getattr(draft, f.name))
        else:
            todo.update(changes)
            validation = todo.validate()
            if not validation.is_valid:
                raise ValidationError(validation.errors)

        logger.debug("Todo updated id=%s", todo.id)
        self.persist()
        return todo

    def delete(self, todo_id: str) -> bool:
        before = len(self._todos)
        self._todos = [t for t in self._todos if t.id != todo_id]
        if len(self._todos) == before:
            return False
        logger.debug("Todo deleted id=%s", todo_id)
        self.persist()
        return True

    def toggle(self, todo_id: str) -> Todo | None:
        todo = self.find_by_id(todo_id)
        if todo is None:
            return None
        todo.toggle_complete()
        self.persist()
        return todo

    def find_by_id(self, todo_id: str) -> Todo | None:
        for todo in self._todos:
            if todo.id == todo_id:
                return todo
        return None

    def clear(self) -> StorageResult:
        self._todos = []
        logger.info("Todo list cleared")
        return self.persist()

    # ---- queries ----

    def filter(self, criteria: FilterCriteria | Mapping[str, Any] | None = None, **kwargs: Any) -> list[Todo]:
        if criteria is None:
            crit = FilterCriteria()
        elif isinstance(criteria, FilterCriteria):
            crit = criteria
        else:
            crit = FilterCriteria.from_mapping(criteria)
        if kwargs:
            crit = crit.merged(**kwargs)

        if crit.status:
            try:
                StatusFilter(crit.status)
            except ValueError:
                raise ValueError(f"Unknown status filter: {crit.status}") from None

        return [t for t in self._todos if crit.matches(t)]

    def sort(self, field: str = "createdAt", order: SortOrder | str = SortOrder.DESC) -> list[Todo]:
        """
        Return a sorted copy; the list itself is untouched.

        Date fields compare by instant (missing/unparseable sorts earliest),
        priority by rank high > medium > low. Stable in both directions.
        """
        attr = _resolve_sort_field(field)
        try:
            direction = SortOrder(order)
        except ValueError:
            raise ValueError(f"Unknown sort order: {order}") from None
        return sorted(self._todos, key=_sort_key(attr), reverse=direction is SortOrder.DESC)

    def get_stats(self, now: datetime | None = None) -> TodoStats:
        total = len(self._todos)
        completed = sum(1 for t in self._todos if t.completed)
        return TodoStats(
            total=total,
            completed=completed,
            active=total - completed,
            overdue=sum(1 for t in self._todos if t.is_overdue(now)),
            due_today=sum(1 for t in self._todos if t.is_due_today(now)),
        )

    def get_all_categories(self) -> list[str]:
        return sorted({c for t in self._todos for c in t.categories})

    def get_all_tags(self) -> list[str]:
        return sorted({tag for t in self._todos for tag in t.tags})

    # ---- change notification ----

    def subscribe(self, listener: TodoListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: TodoListener) -> None:
        self._listeners = [x for x in self._listeners if x != listener]

    def notify(self) -> None:
        for listener in list(self._listeners):
            listener(list(self._todos))
