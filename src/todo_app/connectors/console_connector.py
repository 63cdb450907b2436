# src/todo_app/connectors/console_connector.py

from __future__ import annotations

import logging
import shlex
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..todos.todo_models import Todo

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


class ConsoleNotifier:
    """UserNotifier that prints notices straight into the console session."""

    def notify_user(self, message: str) -> None:
        _print_ts(f"[!] {message}")


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (todos=%d).", len(state.todos))
    _print_ts("[CONSOLE] Type /help for commands, plain text to add a todo. Use /exit to quit.\n")

    def emit(text: str) -> None:
        # Immediate user-visible feedback for slower operations (e.g. import)
        print(f"[{_ts_local()}] {text}", flush=True)

    def on_change(todos: list[Todo]) -> None:
        logger.debug("Todo list changed: %d todos", len(todos))

    state.todos.subscribe(on_change)
    try:
        while True:
            try:
                user_input = input(">>> ").strip()
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                print()
                break

            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            # Plain text is shorthand for /add.
            line = user_input if user_input.startswith("/") else f"/add {shlex.quote(user_input)}"

            try:
                reply = command_registry.handle(state, line, emit=emit)
            except Exception:
                logger.exception("Command handler crashed.")
                reply = "Internal error while handling a command."

            if reply is not None:
                print(f"[{_ts_local()}] {reply}")
    finally:
        state.todos.unsubscribe(on_change)

    logger.info("Console connector finished.")
