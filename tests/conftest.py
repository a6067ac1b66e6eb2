# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from mytasks.auth.session_manager import SessionManager
from mytasks.cli.bootstrap import App, create_app
from mytasks.core.state import AppState
from mytasks.tasks.task_store import TaskStoreClient

from .fakes import FakeAuthProvider, FakeTaskTable


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the developer's .env.
    """
    return SimpleNamespace(
        app_name="mytasks-test",
        supabase_url="https://project.supabase.test",
        supabase_anon_key="anon-key",
        tasks_table="tasks",
        http_timeout_seconds=5.0,
        redirect_url="http://localhost:3000",
        oauth_providers=["google", "facebook"],
        open_browser=False,
        refresh_margin_seconds=60.0,
        persist_session=False,
        data_dir=tmp_path,
        session_path=tmp_path / "session.json",
    )


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    return AppState(settings=settings)


@pytest.fixture()
def provider() -> FakeAuthProvider:
    return FakeAuthProvider()


@pytest.fixture()
def table() -> FakeTaskTable:
    return FakeTaskTable()


@pytest.fixture()
def sessions(state: AppState, provider: FakeAuthProvider) -> SessionManager:
    return SessionManager(state, provider)


@pytest.fixture()
def store(state: AppState, table: FakeTaskTable) -> TaskStoreClient:
    return TaskStoreClient(state, table)


@pytest.fixture()
def app(settings: SimpleNamespace, provider: FakeAuthProvider, table: FakeTaskTable) -> App:
    """App wired with deterministic fakes (no HTTP client, no refresher)."""
    return create_app(settings=settings, provider=provider, table=table)
