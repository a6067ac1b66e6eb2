# tests/test_commands.py

from __future__ import annotations

import pytest

from mytasks.cli.commands import CommandRegistry, cmd_add, registry
from mytasks.connectors.console_connector import handle_line
from mytasks.core.models import AuthEvent
from mytasks.ui.screen import EMPTY_LIST_TEXT, render, render_signed_in

from .fakes import make_session


@pytest.mark.asyncio
async def test_command_registry_routes_sync_and_async(app) -> None:
    reg = CommandRegistry()
    called = {"sync": 0, "async": 0}

    def h_sync(app, args, emit):
        called["sync"] += 1
        return "sync:" + ",".join(args)

    async def h_async(app, args, emit):
        called["async"] += 1
        if emit is not None:
            emit("note")
        return "async"

    reg.register("a", h_sync, "a", aliases=["aa"])
    reg.register("b", h_async, "b")

    assert await reg.handle(app, "/a x y") == "sync:x,y"
    assert await reg.handle(app, "/AA") == "sync:"
    assert await reg.handle(app, "/b", emit=lambda _: None) == "async"
    assert called == {"sync": 2, "async": 1}


@pytest.mark.asyncio
async def test_command_registry_unknown_and_non_command(app) -> None:
    reg = CommandRegistry()
    assert await reg.handle(app, "hello") is None
    assert "Unknown command" in (await reg.handle(app, "/nope") or "")
    assert "Empty command" in (await reg.handle(app, "/") or "")


@pytest.mark.asyncio
async def test_task_commands_need_sign_in(app) -> None:
    await app.start()
    for line in ("/add milk", "/done 1", "/rm 1", "/logout", "milk"):
        reply = await handle_line(app, line)
        assert reply is not None and "ign in" in reply


@pytest.mark.asyncio
async def test_signed_in_flow_add_toggle_delete(app, provider, table) -> None:
    await app.start()
    provider.emit(AuthEvent.SIGNED_IN, make_session("u1", full_name="Ada"))
    await app.wait_idle()
    assert EMPTY_LIST_TEXT in render(app.state)

    assert await handle_line(app, "buy milk") == "Added: buy milk"
    assert await handle_line(app, "/add call mom") == "Added: call mom"
    assert [t.title for t in app.state.tasks] == ["call mom", "buy milk"]

    assert await handle_line(app, "/done 2") == "Completed: buy milk"
    assert app.state.tasks[1].is_completed is True
    assert "[x] buy milk" in render(app.state)
    assert await handle_line(app, "/done 2") == "Reopened: buy milk"

    assert await handle_line(app, "/rm 1") == "Deleted: call mom"
    assert [t.title for t in app.state.tasks] == ["buy milk"]

    assert "No task #5" in (await handle_line(app, "/rm 5") or "")
    assert "Not a task number" in (await handle_line(app, "/done x") or "")

    screen = render(app.state)
    assert "My Tasks" in screen and "Ada" in screen
    await app.aclose()


@pytest.mark.asyncio
async def test_email_command_and_signed_out_screen(app, provider) -> None:
    await app.start()

    assert await handle_line(app, "/email a@x.com") == "Check your inbox!"
    screen = render(app.state)
    assert "Check your inbox!" in screen
    assert "/signin google" in screen and "/signin facebook" in screen


@pytest.mark.asyncio
async def test_signin_command_checks_provider(app, provider) -> None:
    await app.start()

    reply = await handle_line(app, "/signin google")
    assert reply is not None and "provider=google" in reply

    reply = await handle_line(app, "/signin myspace")
    assert reply is not None and "Unknown provider" in reply

    reply = await handle_line(app, "/facebook")
    assert reply is not None and "provider=facebook" in reply


@pytest.mark.asyncio
async def test_logout_command(app, provider) -> None:
    provider.session = make_session("u1")
    await app.start()
    await app.wait_idle()

    assert await handle_line(app, "/logout") == "Signed out."
    assert app.state.session is None


def test_help_lists_commands() -> None:
    text = registry.build_help()
    for name in ("/add", "/done", "/rm", "/email", "/signin", "/logout"):
        assert name in text


@pytest.mark.asyncio
async def test_provider_shortcut_respects_configured_providers(app, provider) -> None:
    app.settings.oauth_providers = ["google"]
    await app.start()

    reply = await handle_line(app, "/facebook")
    assert reply is not None and "Unknown provider: facebook" in reply
    assert not any(call[0] == "sign_in_with_oauth" for call in provider.calls)

    reply = await handle_line(app, "/google")
    assert reply is not None and "provider=google" in reply


@pytest.mark.asyncio
async def test_add_without_session_is_refused(app, table) -> None:
    await app.start()

    reply = await cmd_add(app, ["milk"])

    assert "Sign in first" in reply
    assert table.rows == []


def test_signed_in_screen_falls_back_without_session(state) -> None:
    assert render_signed_in(state).startswith("Sign in to see your tasks:")
