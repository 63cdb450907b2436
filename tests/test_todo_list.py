# tests/test_todo_list.py

from __future__ import annotations

import json
from datetime import datetime

import pytest

from todo_app.storage.kv_store import MemoryKVStore
from todo_app.storage.storage_service import StorageConfig, StorageError, StorageService
from todo_app.todos.todo_list import FilterCriteria, TodoList
from todo_app.todos.todo_models import ValidationError

from .fakes import FailingWriteStore, ListenerLog, RecordingNotifier


def _stored_todos(store: MemoryKVStore) -> list[dict]:
    raw = store.get_item("todoApp")
    assert raw is not None
    return json.loads(raw)["todos"]


def test_add_then_find_returns_input_plus_system_fields(todo_list: TodoList) -> None:
    fields = {
        "title": "Buy milk",
        "description": "2 liters",
        "priority": "high",
        "dueDate": "2026-10-20",
        "categories": ["home"],
        "tags": ["#shop"],
    }
    todo = todo_list.add(fields)

    found = todo_list.find_by_id(todo.id)
    assert found is todo

    data = found.to_dict()
    for key, value in fields.items():
        assert data[key] == value
    assert data["completed"] is False
    assert data["completedAt"] is None
    assert data["id"] and data["createdAt"] and data["updatedAt"]


def test_add_persists_and_keeps_insertion_order(todo_list: TodoList, store: MemoryKVStore) -> None:
    a = todo_list.add({"title": "a"})
    b = todo_list.add({"title": "b"})

    assert [t.id for t in todo_list] == [a.id, b.id]
    assert [t["id"] for t in _stored_todos(store)] == [a.id, b.id]


def test_add_invalid_raises_and_does_not_mutate(todo_list: TodoList, store: MemoryKVStore) -> None:
    with pytest.raises(ValidationError) as exc:
        todo_list.add({"title": "", "priority": "urgent"})

    assert exc.value.errors == ["Title is required", "Priority is invalid"]
    assert len(todo_list) == 0
    assert store.get_item("todoApp") is None


def test_update_applies_and_persists(todo_list: TodoList, store: MemoryKVStore) -> None:
    todo = todo_list.add({"title": "draft"})

    updated = todo_list.update(todo.id, {"title": "final", "priority": "low"})

    assert updated is todo
    assert todo.title == "final"
    assert _stored_todos(store)[0]["title"] == "final"
    assert _stored_todos(store)[0]["priority"] == "low"


def test_update_missing_id_returns_none_without_side_effects(todo_list: TodoList) -> None:
    log = ListenerLog()
    todo_list.subscribe(log)

    assert todo_list.update("nope", {"title": "x"}) is None
    assert log.calls == []


def test_invalid_update_is_not_rolled_back_by_default(todo_list: TodoList, store: MemoryKVStore) -> None:
    keep = todo_list.add({"title": "keep me"})
    target = todo_list.add({"title": "target"})

    with pytest.raises(ValidationError):
        todo_list.update(target.id, {"title": ""})

    assert keep.title == "keep me"
    # The in-place change stays on the entity but was never persisted.
    assert target.validate().errors == ["Title is required"]
    assert [t["title"] for t in _stored_todos(store)] == ["keep me", "target"]


@pytest.mark.parametrize("blank", ["", None])
def test_update_with_blank_priority_fails_validation(
    todo_list: TodoList, store: MemoryKVStore, blank: str | None
) -> None:
    todo = todo_list.add({"title": "t", "priority": "high"})

    with pytest.raises(ValidationError) as exc:
        todo_list.update(todo.id, {"priority": blank})

    assert exc.value.errors == ["Priority is invalid"]
    assert _stored_todos(store)[0]["priority"] == "high"


def test_invalid_update_rolls_back_when_enabled(storage: StorageService) -> None:
    todo_list = TodoList(storage, rollback_invalid_updates=True)
    target = todo_list.add({"title": "target", "priority": "high"})

    with pytest.raises(ValidationError):
        todo_list.update(target.id, {"title": "", "priority": "low"})

    assert target.title == "target"
    assert target.priority == "high"
    assert target.validate().is_valid

    todo_list.update(target.id, {"title": "renamed"})
    assert todo_list.find_by_id(target.id) is target
    assert target.title == "renamed"


def test_delete(todo_list: TodoList, store: MemoryKVStore) -> None:
    a = todo_list.add({"title": "a"})
    b = todo_list.add({"title": "b"})
    log = ListenerLog()
    todo_list.subscribe(log)

    assert todo_list.delete(a.id) is True
    assert [t["id"] for t in _stored_todos(store)] == [b.id]
    assert len(log.calls) == 1

    assert todo_list.delete(a.id) is False
    assert len(log.calls) == 1


def test_toggle(todo_list: TodoList, store: MemoryKVStore) -> None:
    todo = todo_list.add({"title": "t"})

    assert todo_list.toggle(todo.id) is todo
    assert todo.completed is True
    assert _stored_todos(store)[0]["completed"] is True
    assert _stored_todos(store)[0]["completedAt"] == todo.completed_at

    assert todo_list.toggle("missing") is None


def test_find_by_id_first_match_wins(todo_list: TodoList, store: MemoryKVStore) -> None:
    store.set_item(
        "todoApp",
        json.dumps({"version": "1.0.0", "todos": [{"id": "dup", "title": "first"}, {"id": "dup", "title": "second"}]}),
    )
    todo_list.load()

    found = todo_list.find_by_id("dup")
    assert found is not None
    assert found.title == "first"


def test_load_replaces_todos_and_notifies(todo_list: TodoList, store: MemoryKVStore) -> None:
    todo_list.add({"title": "in memory only"})
    store.set_item(
        "todoApp",
        json.dumps({"version": "1.0.0", "todos": [{"id": "1", "title": "stored"}, "junk", 5]}),
    )
    log = ListenerLog()
    todo_list.subscribe(log)

    todo_list.load()

    assert [t.title for t in todo_list] == ["stored"]
    assert len(log.calls) == 1
    assert [t.id for t in log.calls[0]] == ["1"]


def test_persist_notifies_even_when_save_fails(notifier: RecordingNotifier) -> None:
    todo_list = TodoList(StorageService(FailingWriteStore(), StorageConfig(), notifier))
    log = ListenerLog()
    todo_list.subscribe(log)

    todo = todo_list.add({"title": "still here"})

    assert todo_list.find_by_id(todo.id) is todo
    assert len(log.calls) == 1
    result = todo_list.persist()
    assert not result
    assert result.error is StorageError.WRITE_FAILED
    assert len(log.calls) == 2


def _five_todos(todo_list: TodoList) -> list:
    h1 = todo_list.add({"title": "h1", "priority": "high"})
    h_done = todo_list.add({"title": "h-done", "priority": "high"})
    todo_list.toggle(h_done.id)
    h2 = todo_list.add({"title": "h2", "priority": "high"})
    low = todo_list.add({"title": "low", "priority": "low"})
    h3 = todo_list.add({"title": "h3", "priority": "high"})
    return [h1, h_done, h2, low, h3]


def test_filter_status_and_priority_are_conjunctive(todo_list: TodoList) -> None:
    h1, _, h2, _, h3 = _five_todos(todo_list)

    result = todo_list.filter({"status": "active", "priority": "high"})

    assert [t.id for t in result] == [h1.id, h2.id, h3.id]


def test_filter_accepts_dataclass_and_kwargs(todo_list: TodoList) -> None:
    _, h_done, _, low, _ = _five_todos(todo_list)

    assert [t.id for t in todo_list.filter(FilterCriteria(status="completed"))] == [h_done.id]
    assert [t.id for t in todo_list.filter(priority="low")] == [low.id]
    assert len(todo_list.filter()) == 5
    assert len(todo_list.filter(status="all")) == 5


def test_filter_unknown_status_raises(todo_list: TodoList) -> None:
    with pytest.raises(ValueError):
        todo_list.filter(status="archived")


def test_filter_category_tag_and_search(todo_list: TodoList) -> None:
    milk = todo_list.add({"title": "Buy MILK", "categories": ["home"], "tags": ["shop"]})
    report = todo_list.add({"title": "Report", "description": "quarterly milk numbers", "categories": ["work"]})
    todo_list.add({"title": "Gym", "tags": ["#health"]})

    assert [t.id for t in todo_list.filter(category="home")] == [milk.id]
    assert [t.id for t in todo_list.filter(tag="#shop")] == [milk.id]
    assert [t.id for t in todo_list.filter(tag="shop")] == [milk.id]
    assert [t.id for t in todo_list.filter(search="milk")] == [milk.id, report.id]
    assert [t.id for t in todo_list.filter(search="milk", category="work")] == [report.id]
    assert todo_list.filter(search="nothing-matches") == []


def test_sort_priority_desc_is_stable(todo_list: TodoList) -> None:
    low = todo_list.add({"title": "low", "priority": "low"})
    high_a = todo_list.add({"title": "high a", "priority": "high"})
    medium = todo_list.add({"title": "medium", "priority": "medium"})
    high_b = todo_list.add({"title": "high b", "priority": "high"})

    result = todo_list.sort("priority", "desc")

    assert [t.id for t in result] == [high_a.id, high_b.id, medium.id, low.id]
    assert [t.id for t in todo_list] == [low.id, high_a.id, medium.id, high_b.id]


def test_sort_priority_asc(todo_list: TodoList) -> None:
    todo_list.add({"title": "high", "priority": "high"})
    todo_list.add({"title": "low", "priority": "low"})
    todo_list.add({"title": "medium", "priority": "medium"})

    assert [t.title for t in todo_list.sort("priority", "asc")] == ["low", "medium", "high"]


def test_sort_due_date_missing_sorts_earliest(todo_list: TodoList) -> None:
    later = todo_list.add({"title": "later", "dueDate": "2026-12-01"})
    none = todo_list.add({"title": "none"})
    sooner = todo_list.add({"title": "sooner", "dueDate": "2026-10-20T10:00:00Z"})

    assert [t.id for t in todo_list.sort("dueDate", "asc")] == [none.id, sooner.id, later.id]
    assert [t.id for t in todo_list.sort("due_date", "desc")] == [later.id, sooner.id, none.id]


def test_sort_timestamps_by_instant(todo_list: TodoList, store: MemoryKVStore) -> None:
    store.set_item(
        "todoApp",
        json.dumps(
            {
                "version": "1.0.0",
                "todos": [
                    {"id": "b", "title": "b", "createdAt": "2026-10-02T00:00:00.000Z"},
                    {"id": "a", "title": "a", "createdAt": "2026-10-01T00:00:00.000Z"},
                    {"id": "c", "title": "c", "createdAt": "2026-10-01T23:00:00.000-05:00"},
                ],
            }
        ),
    )
    todo_list.load()

    assert [t.id for t in todo_list.sort()] == ["c", "b", "a"]
    assert [t.id for t in todo_list.sort("createdAt", "asc")] == ["a", "b", "c"]


def test_sort_by_title(todo_list: TodoList) -> None:
    todo_list.add({"title": "b"})
    todo_list.add({"title": "a"})
    assert [t.title for t in todo_list.sort("title", "asc")] == ["a", "b"]


def test_sort_rejects_unknown_field_and_order(todo_list: TodoList) -> None:
    with pytest.raises(ValueError):
        todo_list.sort("colour")
    with pytest.raises(ValueError):
        todo_list.sort("title", "sideways")


def test_stats_on_empty_list(todo_list: TodoList) -> None:
    assert todo_list.get_stats().as_dict() == {
        "total": 0,
        "completed": 0,
        "active": 0,
        "overdue": 0,
        "dueToday": 0,
    }


def test_stats_counts(todo_list: TodoList) -> None:
    now = datetime(2026, 10, 16, 12, 0).astimezone()
    todo_list.add({"title": "overdue", "dueDate": "2026-10-10"})
    todo_list.add({"title": "today", "dueDate": "2026-10-16T18:00:00"})
    done = todo_list.add({"title": "done today", "dueDate": "2026-10-16T09:00:00"})
    todo_list.toggle(done.id)
    todo_list.add({"title": "no due"})

    stats = todo_list.get_stats(now)

    assert stats.total == 4
    assert stats.completed == 1
    assert stats.active == 3
    assert stats.overdue == 1
    assert stats.due_today == 2


def test_all_categories_and_tags_are_unique_and_sorted(todo_list: TodoList) -> None:
    todo_list.add({"title": "a", "categories": ["work", "home"], "tags": ["b", "a"]})
    todo_list.add({"title": "b", "categories": ["home", "errands"], "tags": ["#a"]})

    assert todo_list.get_all_categories() == ["errands", "home", "work"]
    assert todo_list.get_all_tags() == ["#a", "#b"]


def test_clear_empties_and_persists(todo_list: TodoList, store: MemoryKVStore) -> None:
    todo_list.add({"title": "a"})

    assert todo_list.clear()
    assert len(todo_list) == 0
    assert _stored_todos(store) == []


def test_listeners_run_in_order_and_get_copies(todo_list: TodoList) -> None:
    order: list[str] = []
    received: list[list] = []

    def first(todos: list) -> None:
        order.append("first")
        received.append(todos)
        todos.clear()

    def second(todos: list) -> None:
        order.append("second")
        received.append(todos)

    todo_list.subscribe(first)
    todo_list.subscribe(second)
    todo_list.add({"title": "x"})

    assert order == ["first", "second"]
    assert len(received[1]) == 1
    assert len(todo_list) == 1


def test_unsubscribe_stops_notifications(todo_list: TodoList) -> None:
    log = ListenerLog()
    todo_list.subscribe(log)
    todo_list.add({"title": "a"})
    todo_list.unsubscribe(log)
    todo_list.add({"title": "b"})
    todo_list.unsubscribe(log)

    assert len(log.calls) == 1


def test_raising_listener_propagates(todo_list: TodoList) -> None:
    def boom(todos: list) -> None:
        raise RuntimeError("listener failed")

    todo_list.subscribe(boom)
    with pytest.raises(RuntimeError):
        todo_list.add({"title": "a"})
