# src/todo_app/todos/formatting.py

"""Small display/parsing helpers shared by the console front end."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from .todo_models import Priority, normalize_tag, parse_instant

_TAG_SPLIT = re.compile(r"[,\s]+")

_PRIORITY_LABELS = {
    Priority.HIGH: "High",
    Priority.MEDIUM: "Medium",
    Priority.LOW: "Low",
}


def parse_tags(text: str | None) -> list[str]:
    """Split "a, b #c" into ["#a", "#b", "#c"]."""
    if not text:
        return []
    out: list[str] = []
    for part in _TAG_SPLIT.split(text):
        tag = normalize_tag(part)
        if tag:
            out.append(tag)
    return out


def parse_list(text: str | None) -> list[str]:
    """Comma-separated list (categories may contain spaces)."""
    if not text:
        return []
    return [p.strip() for p in text.split(",") if p.strip()]


def priority_label(priority: Any) -> str:
    try:
        return _PRIORITY_LABELS[Priority(priority)]
    except (ValueError, TypeError):
        return str(priority)


def format_date_short(value: Any) -> str:
    dt = parse_instant(value)
    if dt is None:
        return ""
    return dt.strftime("%Y/%m/%d")


def format_relative_time(value: Any, now: datetime | None = None) -> str:
    dt = parse_instant(value)
    if dt is None:
        return ""
    current = now.astimezone() if now is not None else datetime.now().astimezone()
    seconds = int((current - dt).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days}d ago"
    if hours > 0:
        return f"{hours}h ago"
    if minutes > 0:
        return f"{minutes}m ago"
    return "just now"
