# src/mytasks/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The session manager and the task store client depend on Protocols instead of
the HTTP adapters. This keeps the backend swappable and makes testing easier.
Adapters raise AuthError / StoreError; callers in the core catch them.
"""

from typing import Any, Callable, Protocol

from .models import AuthEvent, Session

SessionListener = Callable[[AuthEvent, Session | None], None]


class Unsubscribe(Protocol):
    def __call__(self) -> None: ...


class AuthProvider(Protocol):
    """Auth provider boundary (GoTrue-compatible)."""

    async def get_session(self) -> Session | None: ...

    def subscribe(self, listener: SessionListener) -> Unsubscribe: ...

    async def sign_in_with_oauth(self, provider: str) -> str:
        """Return the authorize URL the user must visit."""
        ...

    async def sign_in_with_otp(self, email: str) -> None: ...

    async def verify_otp(self, email: str, token: str) -> Session: ...

    async def exchange_redirect(self, url: str) -> Session: ...

    async def refresh_session(self) -> Session | None: ...

    async def sign_out(self) -> None: ...


class TaskTable(Protocol):
    """Table store boundary for the `tasks` collection."""

    async def select_for_user(self, access_token: str, user_id: str) -> list[dict[str, Any]]: ...

    async def insert(self, access_token: str, *, title: str, user_id: str) -> dict[str, Any]: ...

    async def update_completed(self, access_token: str, task_id: str, is_completed: bool) -> None: ...

    async def delete(self, access_token: str, task_id: str) -> None: ...
