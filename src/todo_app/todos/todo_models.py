# src/todo_app/todos/todo_models.py

from __future__ import annotations

import logging
import random
import string
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 200

_ID_ALPHABET = string.digits + string.ascii_lowercase

# Wire (envelope) key -> attribute name. Attribute names are accepted as input too.
_WIRE_TO_ATTR = {
    "id": "id",
    "title": "title",
    "description": "description",
    "completed": "completed",
    "priority": "priority",
    "dueDate": "due_date",
    "categories": "categories",
    "tags": "tags",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "completedAt": "completed_at",
}
_ATTR_TO_WIRE = {v: k for k, v in _WIRE_TO_ATTR.items()}

_IMMUTABLE_ATTRS = frozenset({"id", "created_at"})


class Priority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

    @classmethod
    def coerce(cls, raw: Any) -> Priority | str:
        """Known values become members; anything else is kept raw so validate() can report it."""
        if not raw:
            return cls.MEDIUM
        try:
            return cls(raw)
        except (ValueError, TypeError):
            return raw


_PRIORITY_RANK = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


def now_iso(now: datetime | None = None) -> str:
    """UTC timestamp in the envelope format: 2026-10-16T12:00:00.000Z."""
    dt = now.astimezone(timezone.utc) if now is not None else datetime.now(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_instant(value: Any) -> datetime | None:
    """
    Parse an ISO date/date-time string into an aware datetime.

    Naive values are taken as local time. Returns None for anything unparseable.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return datetime.fromisoformat(value.strip()).astimezone()
    except (ValueError, OverflowError, OSError):
        return None


def generate_id() -> str:
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{int(time.time() * 1000)}-{suffix}"


def normalize_tag(tag: str) -> str:
    tag = tag.strip()
    if not tag:
        return ""
    return tag if tag.startswith("#") else f"#{tag}"


def _normalize_tags(raw: Any) -> list[str]:
    out: list[str] = []
    for t in _as_str_list(raw):
        norm = normalize_tag(t)
        if norm:
            out.append(norm)
    return out


def _as_str_list(raw: Any) -> list[str]:
    if not raw:
        return []
    if isinstance(raw, str):
        return [raw]
    if isinstance(raw, Iterable):
        return [str(x) for x in raw]
    return []


def _coerce_due_date(raw: Any) -> str | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, (datetime, date)):
        return raw.isoformat()
    return raw


def _to_attrs(fields: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in fields.items():
        attr = _WIRE_TO_ATTR.get(key) or (key if key in _ATTR_TO_WIRE else None)
        if attr is None:
            logger.debug("Ignoring unknown todo field %r", key)
            continue
        out[attr] = value
    return out


class ValidationError(Exception):
    """A todo failed validation; `errors` keeps every message in rule order."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__(", ".join(self.errors))


@dataclass(frozen=True, slots=True)
class ValidationResult:
    is_valid: bool
    errors: list[str]


@dataclass(slots=True)
class Todo:
    id: str = ""
    title: str = ""
    description: str = ""
    completed: bool = False
    priority: Priority | str = Priority.MEDIUM
    due_date: str | None = None
    categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""
    completed_at: str | None = None

    def __post_init__(self) -> None:
        stamp = now_iso()
        self.id = str(self.id) if self.id else generate_id()
        self.title = "" if self.title is None else str(self.title)
        self.description = "" if self.description is None else str(self.description)
        self.completed = bool(self.completed)
        self.priority = Priority.coerce(self.priority)
        self.due_date = _coerce_due_date(self.due_date)
        self.categories = _as_str_list(self.categories)
        self.tags = _normalize_tags(self.tags)
        self.created_at = self.created_at or stamp
        self.updated_at = self.updated_at or stamp

        # completed_at is set iff completed.
        if self.completed:
            self.completed_at = self.completed_at or self.updated_at
        else:
            self.completed_at = None

    @classmethod
    def from_dict(cls, fields: Mapping[str, Any] | None = None) -> Todo:
        """Build a todo from wire-keyed or attribute-keyed fields; missing fields get defaults."""
        return cls(**_to_attrs(fields or {}))

    # ---- mutation ----

    def toggle_complete(self, now: datetime | None = None) -> None:
        stamp = now_iso(now)
        self.completed = not self.completed
        self.completed_at = stamp if self.completed else None
        self.updated_at = stamp

    def update(self, fields: Mapping[str, Any], now: datetime | None = None) -> None:
        """
        Apply a partial field set in place. `id` and `created_at` are never overwritten.

        Does not validate; the caller is expected to run validate() afterwards.
        """
        attrs = _to_attrs(fields)
        for name in _IMMUTABLE_ATTRS:
            attrs.pop(name, None)

        stamp = now_iso(now)
        was_completed = self.completed

        for name, value in attrs.items():
            if name == "priority":
                # The medium default is for construction only; a blank here must fail validate().
                value = Priority.coerce(value) if value else value
            elif name == "due_date":
                value = _coerce_due_date(value)
            elif name == "tags":
                value = _normalize_tags(value)
            elif name == "categories":
                value = _as_str_list(value)
            elif name == "completed":
                value = bool(value)
            elif name in ("title", "description"):
                value = "" if value is None else str(value)
            setattr(self, name, value)

        if "completed_at" not in attrs and self.completed != was_completed:
            self.completed_at = stamp if self.completed else None
        if not self.completed:
            self.completed_at = None
        elif not self.completed_at:
            self.completed_at = stamp

        self.updated_at = stamp

    # ---- derived state ----

    def is_overdue(self, now: datetime | None = None) -> bool:
        if self.completed:
            return False
        due = parse_instant(self.due_date)
        if due is None:
            return False
        current = now.astimezone() if now is not None else datetime.now().astimezone()
        return due < current

    def is_due_today(self, now: datetime | None = None) -> bool:
        due = parse_instant(self.due_date)
        if due is None:
            return False
        current = now.astimezone() if now is not None else datetime.now().astimezone()
        return due.date() == current.date()

    def validate(self) -> ValidationResult:
        errors: list[str] = []

        if not self.title or not self.title.strip():
            errors.append("Title is required")

        if len(self.title or "") > TITLE_MAX_LENGTH:
            errors.append(f"Title must be {TITLE_MAX_LENGTH} characters or fewer")

        if self.priority not in tuple(Priority):
            errors.append("Priority is invalid")

        if self.due_date is not None and parse_instant(self.due_date) is None:
            errors.append("Due date is invalid")

        return ValidationResult(is_valid=not errors, errors=errors)

    # ---- serialization ----

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "completed": self.completed,
            "priority": self.priority.value if isinstance(self.priority, Priority) else self.priority,
            "dueDate": self.due_date,
            "categories": list(self.categories),
            "tags": list(self.tags),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "completedAt": self.completed_at,
        }

    def __repr__(self) -> str:  # pragma: no cover - convenience only
        return f"Todo(id={self.id}, title={self.title!r}, completed={self.completed})"
