# src/mytasks/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the HTTP adapters into SessionManager / TaskStoreClient,
- reloads the task list whenever the signed-in user changes.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..auth.refresher import run_token_refresher
from ..auth.session_manager import SessionManager, Subscription
from ..auth.supabase_auth import SupabaseAuthClient
from ..config import get_settings
from ..core.models import AuthEvent, Session
from ..core.ports import AuthProvider, TaskTable
from ..core.state import AppState
from ..tasks.task_store import TaskStoreClient
from ..tasks.task_table import PostgrestTaskTable

logger = logging.getLogger(__name__)


@dataclass
class App:
    settings: Any
    state: AppState
    provider: AuthProvider
    sessions: SessionManager
    task_store: TaskStoreClient
    http: httpx.AsyncClient | None = None
    refresh_interval_seconds: float | None = None

    _subscription: Subscription | None = field(default=None, init=False, repr=False)
    _refresher: asyncio.Task | None = field(default=None, init=False, repr=False)
    _reloads: set[asyncio.Task] = field(default_factory=set, init=False, repr=False)

    async def start(self) -> None:
        self._subscription = self.sessions.on_session_change(self._on_session_change)
        await self.sessions.start()
        if self.refresh_interval_seconds:
            self._refresher = asyncio.create_task(
                run_token_refresher(self.provider, interval_seconds=self.refresh_interval_seconds)
            )

    def _on_session_change(self, event: AuthEvent, session: Session | None) -> None:
        if event == AuthEvent.TOKEN_REFRESHED or session is None:
            # Same user, or nobody: AppState already holds the right (possibly empty) list.
            return
        task = asyncio.get_running_loop().create_task(self.task_store.list_tasks(session.user.id))
        self._reloads.add(task)
        task.add_done_callback(self._reloads.discard)

    async def wait_idle(self) -> None:
        """Wait for pending task-list reloads triggered by session changes."""
        if self._reloads:
            await asyncio.gather(*list(self._reloads), return_exceptions=True)

    async def reload(self) -> None:
        user_id = self.state.user_id
        if user_id is not None:
            await self.task_store.list_tasks(user_id)

    async def aclose(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

        pending = list(self._reloads)
        if self._refresher is not None:
            pending.append(self._refresher)
            self._refresher = None
        for task in pending:
            task.cancel()
        for task in pending:
            with contextlib.suppress(asyncio.CancelledError):
                await task

        self.sessions.close()

        if self.http is not None:
            await self.http.aclose()
            self.http = None


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    if getattr(settings, "persist_session", False):
        settings.session_path.parent.mkdir(parents=True, exist_ok=True)


def create_app(
    *,
    settings=None,
    provider: AuthProvider | None = None,
    table: TaskTable | None = None,
) -> App:
    """
    Build App from the provided settings.

    provider/table are injectable for tests; when omitted the Supabase HTTP
    adapters are created and the backend URL + anon key become mandatory.
    """
    if settings is None:
        settings = get_settings()

    http: httpx.AsyncClient | None = None
    if provider is None or table is None:
        url = (getattr(settings, "supabase_url", "") or "").strip()
        key = (getattr(settings, "supabase_anon_key", "") or "").strip()
        if not url:
            raise RuntimeError("Backend URL is not set. Set MYTASKS_SUPABASE_URL in your .env.")
        if not key:
            raise RuntimeError("Backend key is not set. Set MYTASKS_SUPABASE_ANON_KEY in your .env.")

        _ensure_local_dirs(settings)
        http = httpx.AsyncClient(timeout=httpx.Timeout(float(settings.http_timeout_seconds)))

        if provider is None:
            provider = SupabaseAuthClient(
                http,
                base_url=url,
                api_key=key,
                redirect_url=settings.redirect_url,
                session_path=settings.session_path if settings.persist_session else None,
                refresh_margin_seconds=settings.refresh_margin_seconds,
            )
        if table is None:
            table = PostgrestTaskTable(http, base_url=url, api_key=key, table=settings.tasks_table)

    state = AppState(settings=settings)
    sessions = SessionManager(
        state,
        provider,
        open_browser=bool(getattr(settings, "open_browser", False)),
    )

    refresh_every: float | None = None
    if http is not None:
        margin = float(getattr(settings, "refresh_margin_seconds", 60.0))
        refresh_every = max(5.0, margin / 2)

    return App(
        settings=settings,
        state=state,
        provider=provider,
        sessions=sessions,
        task_store=TaskStoreClient(state, table),
        http=http,
        refresh_interval_seconds=refresh_every,
    )
