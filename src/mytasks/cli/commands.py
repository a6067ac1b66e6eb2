# src/mytasks/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from ..core.models import Task
from ..ui.screen import render

if TYPE_CHECKING:
    from .bootstrap import App

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[["App", list[str], CommandEmitter | None], str | Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        app: App,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        result = handler(app, args, emit)
        if inspect.isawaitable(result):
            result = await result
        return result

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _require_signed_in(app: App) -> str | None:
    if app.state.session is None:
        return "Sign in first. Use /help to see the sign-in options."
    return None


def _require_signed_out(app: App) -> str | None:
    session = app.state.session
    if session is not None:
        return f"Already signed in as {session.user.display_name}. Use /logout first."
    return None


def _pick_task(app: App, args: list[str]) -> Task | str:
    if not args:
        return "Which task? Give its number from the list."
    try:
        n = int(args[0])
    except ValueError:
        return f"Not a task number: {args[0]}"
    if n < 1 or n > len(app.state.tasks):
        return f"No task #{n}. The list has {len(app.state.tasks)} task(s)."
    return app.state.tasks[n - 1]


# ---- general ----


def cmd_help(app: App, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


def cmd_status(app: App, args: list[str], emit: CommandEmitter | None = None) -> str:
    state = app.state
    session = state.session
    who = session.user.display_name if session else "nobody"
    backend = getattr(app.settings, "supabase_url", "") or "(not configured)"
    return (
        "Status:\n"
        f"  Signed in: {who}\n"
        f"  Tasks loaded: {len(state.tasks)}\n"
        f"  Backend: {backend}"
    )


def cmd_show(app: App, args: list[str], emit: CommandEmitter | None = None) -> str:
    return render(app.state)


# ---- auth ----


def _check_provider(app: App, provider: str) -> str | None:
    allowed = [p.lower() for p in (getattr(app.settings, "oauth_providers", None) or [])]
    if allowed and provider.lower() not in allowed:
        return f"Unknown provider: {provider}. Available: {', '.join(allowed)}"
    return None


def _oauth_command(provider: str) -> CommandHandler:
    async def _cmd(app: App, args: list[str], emit: CommandEmitter | None = None) -> str:
        if (msg := _check_provider(app, provider)) is not None:
            return msg
        if (msg := _require_signed_out(app)) is not None:
            return msg
        url = await app.sessions.sign_in_with_provider(provider)
        if url is None:
            return f"Could not start sign-in with {provider.capitalize()}."
        return (
            f"Open this link to sign in with {provider.capitalize()}:\n  {url}\n"
            "After the browser redirects, paste the final URL with /callback <url>."
        )

    _cmd.__name__ = f"cmd_{provider}"
    return _cmd


async def cmd_signin(app: App, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /signin <provider>"
    return await _oauth_command(args[0].lower())(app, args[1:], emit)


async def cmd_email(app: App, args: list[str], emit: CommandEmitter | None = None) -> str:
    if (msg := _require_signed_out(app)) is not None:
        return msg
    if not args:
        return "Usage: /email <address>"
    if emit:
        emit("Sending your login link...")
    if await app.sessions.sign_in_with_email(args[0]):
        return "Check your inbox!"
    return "Could not send the login link."


async def cmd_verify(app: App, args: list[str], emit: CommandEmitter | None = None) -> str:
    if (msg := _require_signed_out(app)) is not None:
        return msg
    if len(args) < 2:
        return "Usage: /verify <address> <code>"
    if await app.sessions.verify_email_code(args[0], args[1]):
        return "Signed in."
    return "Could not verify the code."


async def cmd_callback(app: App, args: list[str], emit: CommandEmitter | None = None) -> str:
    if (msg := _require_signed_out(app)) is not None:
        return msg
    if not args:
        return "Usage: /callback <redirect url>"
    if await app.sessions.complete_redirect(args[0]):
        return "Signed in."
    return "Could not complete sign-in."


async def cmd_logout(app: App, args: list[str], emit: CommandEmitter | None = None) -> str:
    if (msg := _require_signed_in(app)) is not None:
        return msg
    if await app.sessions.sign_out():
        return "Signed out."
    return "Sign-out failed."


# ---- tasks ----


async def cmd_add(app: App, args: list[str], emit: CommandEmitter | None = None) -> str:
    if (msg := _require_signed_in(app)) is not None:
        return msg
    title = " ".join(args).strip()
    if not title:
        return "Usage: /add <title>"
    user_id = app.state.user_id
    if user_id is None:
        return "Sign in first. Use /help to see the sign-in options."
    task = await app.task_store.add_task(user_id, title)
    if task is None:
        return "Task was not added."
    return f"Added: {task.title}"


async def cmd_done(app: App, args: list[str], emit: CommandEmitter | None = None) -> str:
    if (msg := _require_signed_in(app)) is not None:
        return msg
    picked = _pick_task(app, args)
    if isinstance(picked, str):
        return picked
    if not await app.task_store.toggle_task(picked.id, picked.is_completed):
        return "Task was not updated."
    return f"{'Reopened' if picked.is_completed else 'Completed'}: {picked.title}"


async def cmd_rm(app: App, args: list[str], emit: CommandEmitter | None = None) -> str:
    if (msg := _require_signed_in(app)) is not None:
        return msg
    picked = _pick_task(app, args)
    if isinstance(picked, str):
        return picked
    if not await app.task_store.delete_task(picked.id):
        return "Task was not deleted."
    return f"Deleted: {picked.title}"


async def cmd_refresh(app: App, args: list[str], emit: CommandEmitter | None = None) -> str:
    if (msg := _require_signed_in(app)) is not None:
        return msg
    await app.reload()
    return f"{len(app.state.tasks)} task(s) loaded."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show who is signed in and the backend in use.")
registry.register("show", cmd_show, help_text="Redraw the screen.", aliases=["ls", "list"])
registry.register("signin", cmd_signin, help_text="Sign in with an OAuth provider: /signin <provider>.")
for _provider in ("google", "facebook"):
    registry.register(_provider, _oauth_command(_provider), help_text=f"Sign in with {_provider.capitalize()}.")
registry.register("email", cmd_email, help_text="Email me a login link: /email <address>.")
registry.register("verify", cmd_verify, help_text="Sign in with the emailed code: /verify <address> <code>.")
registry.register("callback", cmd_callback, help_text="Finish a browser sign-in: /callback <redirect url>.")
registry.register("logout", cmd_logout, help_text="Sign out.", aliases=["signout"])
registry.register("add", cmd_add, help_text="Add a task: /add <title>.")
registry.register("done", cmd_done, help_text="Complete / undo a task: /done <n>.", aliases=["toggle", "undo"])
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <n>.", aliases=["delete", "del"])
registry.register("refresh", cmd_refresh, help_text="Reload tasks from the server.")
