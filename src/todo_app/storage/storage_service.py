# src/todo_app/storage/storage_service.py

"""
Persistence adapter for the todo list.

The whole list lives in one JSON envelope under a single key:

    {"version": "1.0.0", "todos": [...], "lastUpdated": "<ISO-8601>"}

Every failure degrades to a falsy StorageResult (plus a log line and, where the
person using the app has to act, a notice). Nothing here raises to the caller:
a broken store must not take the in-memory session down with it.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from ..core.ports import KeyValueStore, UserNotifier
from ..todos.todo_models import now_iso
from .kv_store import StorageQuotaExceededError

logger = logging.getLogger(__name__)

_PROBE_KEY = "__storage_test__"
DEFAULT_KEY = "todoApp"
DEFAULT_VERSION = "1.0.0"

QUOTA_NOTICE = "Storage is full. Delete old todos and try again."
IMPORT_NOTICE = "Import failed. Check the JSON file format."


class StorageError(StrEnum):
    """Failure kinds reported through StorageResult (never raised)."""

    QUOTA_EXCEEDED = "quota_exceeded"
    WRITE_FAILED = "write_failed"
    INVALID_FORMAT = "invalid_format"


@dataclass(frozen=True, slots=True)
class StorageResult:
    ok: bool
    error: StorageError | None = None
    detail: str = ""

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls) -> StorageResult:
        return cls(ok=True)

    @classmethod
    def failure(cls, error: StorageError, detail: str = "") -> StorageResult:
        return cls(ok=False, error=error, detail=detail)


@dataclass(frozen=True, slots=True)
class StorageConfig:
    key: str = DEFAULT_KEY
    version: str = DEFAULT_VERSION

    @classmethod
    def from_settings(cls, settings: Any) -> StorageConfig:
        return cls(
            key=str(getattr(settings, "storage_key", DEFAULT_KEY)),
            version=str(getattr(settings, "schema_version", DEFAULT_VERSION)),
        )


@dataclass(frozen=True, slots=True)
class StorageInfo:
    size: int
    size_kb: str
    key: str


class LoggingNotifier:
    """Default notifier when no front end is attached: notices go to the log."""

    def notify_user(self, message: str) -> None:
        logger.warning("User notice: %s", message)


class StorageService:
    def __init__(
        self,
        store: KeyValueStore,
        config: StorageConfig | None = None,
        notifier: UserNotifier | None = None,
    ) -> None:
        self._store = store
        self.config = config or StorageConfig()
        self.notifier: UserNotifier = notifier or LoggingNotifier()

    @property
    def key(self) -> str:
        return self.config.key

    @property
    def version(self) -> str:
        return self.config.version

    def _notify(self, message: str) -> None:
        try:
            self.notifier.notify_user(message)
        except Exception:
            logger.exception("User notifier failed for message %r", message)

    # ---- envelope I/O ----

    def load(self) -> list[Any]:
        """
        Return the raw todo records stored under the key.

        Missing key, unparsable JSON, a non-object envelope or a non-list `todos`
        all mean "no todos". A version mismatch is only logged.
        """
        try:
            raw = self._store.get_item(self.key)
        except Exception:
            logger.exception("Failed to read key=%s from storage", self.key)
            return []

        if not raw:
            return []

        try:
            parsed = json.loads(raw)
        except (ValueError, TypeError):
            logger.exception("Failed to parse stored envelope key=%s", self.key)
            return []

        if not isinstance(parsed, dict):
            logger.warning("Invalid data structure in storage key=%s", self.key)
            return []

        stored_version = parsed.get("version")
        if stored_version != self.version:
            logger.info(
                "Data version mismatch key=%s stored=%s current=%s, may need migration",
                self.key,
                stored_version,
                self.version,
            )

        todos = parsed.get("todos")
        return list(todos) if isinstance(todos, list) else []

    def save(self, records: Sequence[Any]) -> StorageResult:
        envelope = {
            "version": self.version,
            "todos": list(records),
            "lastUpdated": now_iso(),
        }
        try:
            payload = json.dumps(envelope, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.exception("Failed to JSON-encode %d todos", len(envelope["todos"]))
            return StorageResult.failure(StorageError.WRITE_FAILED, str(e))

        try:
            self._store.set_item(self.key, payload)
        except StorageQuotaExceededError as e:
            logger.error("Failed to save to storage: %s", e)
            self._notify(QUOTA_NOTICE)
            return StorageResult.failure(StorageError.QUOTA_EXCEEDED, str(e))
        except Exception as e:
            logger.exception("Failed to save to storage key=%s", self.key)
            return StorageResult.failure(StorageError.WRITE_FAILED, str(e))

        logger.debug("Saved %d todos key=%s", len(envelope["todos"]), self.key)
        return StorageResult.success()

    def clear(self) -> StorageResult:
        try:
            self._store.remove_item(self.key)
        except Exception as e:
            logger.exception("Failed to clear storage key=%s", self.key)
            return StorageResult.failure(StorageError.WRITE_FAILED, str(e))
        logger.info("Cleared storage key=%s", self.key)
        return StorageResult.success()

    # ---- import / export ----

    def export_raw(self) -> str | None:
        """The stored envelope string exactly as written, or None."""
        try:
            return self._store.get_item(self.key) or None
        except Exception:
            logger.exception("Failed to export data key=%s", self.key)
            return None

    def import_raw(self, text: str) -> StorageResult:
        """
        Replace the stored envelope with `text`, verbatim.

        Accepted iff it parses and has a list under `todos`; `version` is not checked.
        """
        try:
            parsed = json.loads(text)
        except (ValueError, TypeError) as e:
            logger.error("Failed to import data: %s", e)
            self._notify(IMPORT_NOTICE)
            return StorageResult.failure(StorageError.INVALID_FORMAT, str(e))

        if not isinstance(parsed, dict) or not isinstance(parsed.get("todos"), list):
            logger.error("Failed to import data: missing todos list")
            self._notify(IMPORT_NOTICE)
            return StorageResult.failure(StorageError.INVALID_FORMAT, "missing todos list")

        try:
            self._store.set_item(self.key, text)
        except StorageQuotaExceededError as e:
            logger.error("Failed to import data: %s", e)
            self._notify(QUOTA_NOTICE)
            return StorageResult.failure(StorageError.QUOTA_EXCEEDED, str(e))
        except Exception as e:
            logger.exception("Failed to import data key=%s", self.key)
            self._notify(IMPORT_NOTICE)
            return StorageResult.failure(StorageError.WRITE_FAILED, str(e))

        logger.info("Imported %d todos key=%s", len(parsed["todos"]), self.key)
        return StorageResult.success()

    # ---- diagnostics ----

    def is_available(self) -> bool:
        try:
            self._store.set_item(_PROBE_KEY, _PROBE_KEY)
            self._store.remove_item(_PROBE_KEY)
            return True
        except Exception:
            logger.exception("Storage is not available")
            return False

    def storage_info(self) -> StorageInfo:
        try:
            data = self._store.get_item(self.key)
        except Exception:
            logger.exception("Failed to get storage info key=%s", self.key)
            data = None
        size = len(data.encode("utf-8")) if data else 0
        return StorageInfo(size=size, size_kb=f"{size / 1024:.2f}", key=self.key)
