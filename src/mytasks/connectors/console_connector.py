# src/mytasks/connectors/console_connector.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
import threading
from datetime import datetime
from typing import TYPE_CHECKING

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..ui.screen import render

if TYPE_CHECKING:
    from ..cli.bootstrap import App

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def _snapshot(state: AppState) -> tuple:
    """What the screen depends on; re-render only when it changes."""
    return (state.generation, state.otp_sent, tuple(state.tasks))


def _read_line(prompt: str) -> str:
    return input(prompt)


async def read_line(prompt: str) -> str:
    """
    Read one console line without blocking the event loop.

    input() runs on a daemon thread rather than the default executor, so a
    pending read never holds up interpreter shutdown after Ctrl+C. EOFError
    from input() is re-raised in the awaiting coroutine.
    """
    loop = asyncio.get_running_loop()
    fut: asyncio.Future[str] = loop.create_future()

    def deliver(line: str | None, error: Exception | None) -> None:
        if fut.done():
            return
        if error is not None:
            fut.set_exception(error)
        else:
            fut.set_result(line or "")

    def worker() -> None:
        try:
            line, error = _read_line(prompt), None
        except Exception as e:
            line, error = None, e
        # The loop is gone if the app exited while this read was pending.
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(deliver, line, error)

    threading.Thread(target=worker, name="console-input", daemon=True).start()
    return await fut


async def handle_line(app: App, line: str) -> str | None:
    """
    Route one line of console input.

    Slash commands go through the registry; plain text adds a task when
    signed in. Returns the reply to print, if any.
    """
    def emit(text: str) -> None:
        # Immediate user-visible feedback for slow backend calls.
        _print_ts(text)

    if line.startswith("/"):
        return await command_registry.handle(app, line, emit=emit)

    if app.state.session is None:
        return "Sign in first to add tasks. Use /help for sign-in options."
    return await command_registry.handle(app, f"/add {line}", emit=emit)


async def run_console_loop(app: App) -> None:
    state = app.state
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")
    print(render(state), flush=True)

    last = _snapshot(state)
    while True:
        try:
            user_input = (await read_line(">>> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        # Background reloads may have landed while we were waiting for input.
        await app.wait_idle()

        if not user_input:
            if _snapshot(state) != last:
                print(render(state), flush=True)
                last = _snapshot(state)
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = await handle_line(app, user_input)
            await app.wait_idle()
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply:
            _print_ts(reply)

        err = state.pop_error()
        if err:
            _print_ts(f"[ERROR] {err}")

        if _snapshot(state) != last:
            print(render(state), flush=True)
            last = _snapshot(state)

    if sys.stdout.isatty():
        print()
    logger.info("Console connector finished.")
