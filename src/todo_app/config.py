# src/todo_app/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Nothing required at import time; every value has a local default.
- Storage key/version are explicit settings, never hidden defaults in the storage code.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TODO"

STORE_BACKENDS = ("sqlite", "memory")

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_choice(name: str, choices: tuple[str, ...], default: str) -> str:
    raw = _env(name, default).strip().lower()
    return raw if raw in choices else default


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    store_backend: str
    store_path: Path
    export_dir: Path

    # ---- Persisted envelope ----
    storage_key: str
    schema_version: str
    storage_quota_bytes: int

    # ---- Todo list behavior ----
    rollback_invalid_updates: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "todo").strip() or "todo"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/todo"))
        store_backend = _env_choice(_k("STORE_BACKEND"), STORE_BACKENDS, "sqlite")
        store_path = _env_path(_k("STORE_PATH"), data_dir / "storage.sqlite3")
        export_dir = _env_path(_k("EXPORT_DIR"), Path("."))

        storage_key = _env(_k("STORAGE_KEY"), "todoApp").strip() or "todoApp"
        schema_version = _env(_k("SCHEMA_VERSION"), "1.0.0").strip() or "1.0.0"
        # 5 MiB mirrors the usual per-origin local storage budget; 0 disables the quota.
        storage_quota_bytes = max(0, _env_int(_k("STORAGE_QUOTA_BYTES"), 5 * 1024 * 1024))

        rollback_invalid_updates = _env_bool(_k("ROLLBACK_INVALID_UPDATES"), False)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            store_backend=store_backend,
            store_path=store_path,
            export_dir=export_dir,
            storage_key=storage_key,
            schema_version=schema_version,
            storage_quota_bytes=storage_quota_bytes,
            rollback_invalid_updates=rollback_invalid_updates,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
