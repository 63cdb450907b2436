# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file,
which stays gitignored). Every variable has a default, so an empty environment works.
"""

ENV_VARS = {
    # App / logging
    "TODO_APP_NAME": "App display name (default: todo).",
    "TODO_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Paths (gitignored)
    "TODO_DATA_DIR": "Local data directory for the store and todo.log (default: .local/todo).",
    "TODO_STORE_BACKEND": "sqlite (default) or memory (nothing survives the session).",
    "TODO_STORE_PATH": "SQLite key-value store path (default: <data_dir>/storage.sqlite3).",
    "TODO_EXPORT_DIR": "Default directory for /export (default: current directory).",
    # Persisted envelope
    "TODO_STORAGE_KEY": "Key the JSON envelope is stored under (default: todoApp).",
    "TODO_SCHEMA_VERSION": "Version written into the envelope (default: 1.0.0).",
    "TODO_STORAGE_QUOTA_BYTES": "Store size limit in bytes, 0 for none (default: 5242880).",
    # Todo list behavior
    "TODO_ROLLBACK_INVALID_UPDATES": (
        "Restore a todo when an edit fails validation (true/false, default: false)."
    ),
}
