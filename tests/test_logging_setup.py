# tests/test_logging_setup.py

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from todo_app.logging_setup import _ConsoleNoiseFilter, setup_logging


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


@pytest.mark.parametrize(
    ("name", "level", "shown"),
    [
        ("todo_app.todos.todo_list", logging.DEBUG, True),
        ("todo_app.storage.kv_store", logging.DEBUG, False),
        ("todo_app.storage.kv_store", logging.WARNING, True),
        ("py.warnings", logging.WARNING, False),
        ("sqlite3", logging.WARNING, False),
        ("sqlite3", logging.ERROR, True),
    ],
)
def test_console_filter(name: str, level: int, shown: bool) -> None:
    assert _ConsoleNoiseFilter().filter(_record(name, level)) is shown


@pytest.fixture()
def restore_root_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    logging.captureWarnings(False)


def test_setup_logging_writes_log_file(tmp_path: Path, restore_root_logging) -> None:
    setup_logging(log_dir=tmp_path / "logs", console_level=logging.WARNING)
    log_file = setup_logging(log_dir=tmp_path / "logs", console_level=logging.WARNING)

    assert log_file == tmp_path / "logs" / "todo.log"

    root = logging.getLogger()
    assert len(root.handlers) == 2

    logging.getLogger("todo_app.test").debug("hello file")
    for h in root.handlers:
        h.flush()

    assert "hello file" in log_file.read_text(encoding="utf-8")
