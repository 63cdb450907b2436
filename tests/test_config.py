# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from todo_app.config import Settings

_VARS = (
    "TODO_APP_NAME",
    "TODO_LOG_LEVEL",
    "TODO_DATA_DIR",
    "TODO_STORE_BACKEND",
    "TODO_STORE_PATH",
    "TODO_EXPORT_DIR",
    "TODO_STORAGE_KEY",
    "TODO_SCHEMA_VERSION",
    "TODO_STORAGE_QUOTA_BYTES",
    "TODO_ROLLBACK_INVALID_UPDATES",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    s = Settings.from_env()

    assert s.app_name == "todo"
    assert s.log_level == "INFO"
    assert s.data_dir == Path(".local/todo")
    assert s.store_backend == "sqlite"
    assert s.store_path == Path(".local/todo") / "storage.sqlite3"
    assert s.storage_key == "todoApp"
    assert s.schema_version == "1.0.0"
    assert s.storage_quota_bytes == 5 * 1024 * 1024
    assert s.rollback_invalid_updates is False


def test_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TODO_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TODO_STORE_BACKEND", "MEMORY")
    monkeypatch.setenv("TODO_STORAGE_KEY", "work")
    monkeypatch.setenv("TODO_SCHEMA_VERSION", "2.0.0")
    monkeypatch.setenv("TODO_STORAGE_QUOTA_BYTES", "1024")
    monkeypatch.setenv("TODO_ROLLBACK_INVALID_UPDATES", "yes")

    s = Settings.from_env()

    assert s.data_dir == tmp_path
    assert s.store_path == tmp_path / "storage.sqlite3"
    assert s.store_backend == "memory"
    assert s.storage_key == "work"
    assert s.schema_version == "2.0.0"
    assert s.storage_quota_bytes == 1024
    assert s.rollback_invalid_updates is True


def test_bad_values_fall_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TODO_STORE_BACKEND", "postgres")
    monkeypatch.setenv("TODO_STORAGE_QUOTA_BYTES", "lots")
    monkeypatch.setenv("TODO_STORAGE_KEY", "   ")

    s = Settings.from_env()

    assert s.store_backend == "sqlite"
    assert s.storage_quota_bytes == 5 * 1024 * 1024
    assert s.storage_key == "todoApp"


def test_negative_quota_clamps_to_unlimited(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TODO_STORAGE_QUOTA_BYTES", "-5")
    assert Settings.from_env().storage_quota_bytes == 0


def test_settings_are_frozen() -> None:
    s = Settings.from_env()
    with pytest.raises(AttributeError):
        s.storage_key = "other"  # type: ignore[misc]
