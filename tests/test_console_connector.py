# tests/test_console_connector.py

from __future__ import annotations

import asyncio
import threading

import pytest

from mytasks.connectors import console_connector
from mytasks.connectors.console_connector import read_line, run_console_loop


@pytest.mark.asyncio
async def test_read_line_returns_input(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(console_connector, "_read_line", lambda prompt: f"typed after {prompt}")

    assert await read_line(">") == "typed after >"


@pytest.mark.asyncio
async def test_read_line_reraises_eof(monkeypatch: pytest.MonkeyPatch) -> None:
    def eof(prompt: str) -> str:
        raise EOFError

    monkeypatch.setattr(console_connector, "_read_line", eof)

    with pytest.raises(EOFError):
        await read_line(">")


@pytest.mark.asyncio
async def test_pending_read_can_be_abandoned(monkeypatch: pytest.MonkeyPatch) -> None:
    release = threading.Event()
    readers: list[threading.Thread] = []

    def blocking(prompt: str) -> str:
        readers.append(threading.current_thread())
        release.wait(5)
        return "late"

    monkeypatch.setattr(console_connector, "_read_line", blocking)

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(read_line(">"), timeout=0.05)

    assert readers and readers[0].daemon
    release.set()
    readers[0].join(1)
    # The late line is dropped without touching the cancelled future.
    await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_console_loop_runs_commands_until_exit(app, monkeypatch, capsys) -> None:
    lines = iter(["/status", "buy milk", "/exit"])
    monkeypatch.setattr(console_connector, "_read_line", lambda prompt: next(lines))
    await app.start()

    await run_console_loop(app)

    out = capsys.readouterr().out
    assert "Signed in: nobody" in out
    assert "Sign in first to add tasks" in out


@pytest.mark.asyncio
async def test_console_loop_stops_on_eof(app, monkeypatch) -> None:
    def eof(prompt: str) -> str:
        raise EOFError

    monkeypatch.setattr(console_connector, "_read_line", eof)
    await app.start()

    await asyncio.wait_for(run_console_loop(app), timeout=2)
