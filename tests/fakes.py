# tests/fakes.py

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from mytasks.core.errors import AuthError, StoreError
from mytasks.core.models import AuthEvent, Session, User
from mytasks.core.ports import SessionListener, Unsubscribe


def make_session(user_id: str = "u1", email: str | None = "a@x.com", **kw: Any) -> Session:
    return Session(
        access_token=f"token-{user_id}",
        refresh_token=f"refresh-{user_id}",
        user=User(id=user_id, email=email, full_name=kw.get("full_name"), avatar_url=kw.get("avatar_url")),
        expires_at=kw.get("expires_at"),
    )


class FakeAuthProvider:
    """
    In-memory AuthProvider.

    - Captures calls for assertions
    - `fail` holds operation names that raise AuthError on the next call
    - emit() plays the provider's session-change notifications
    """

    def __init__(self, session: Session | None = None) -> None:
        self.session = session
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.fail: set[str] = set()
        self._listeners: dict[int, SessionListener] = {}
        self._ids = itertools.count(1)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _check(self, op: str, *args: Any) -> None:
        self.calls.append((op, args))
        if op in self.fail:
            self.fail.discard(op)
            raise AuthError(f"{op} rejected", status=400)

    def subscribe(self, listener: SessionListener) -> Unsubscribe:
        key = next(self._ids)
        self._listeners[key] = listener
        return lambda: self._listeners.pop(key, None)

    def emit(self, event: AuthEvent, session: Session | None) -> None:
        self.session = session
        for listener in list(self._listeners.values()):
            listener(event, session)

    async def get_session(self) -> Session | None:
        self._check("get_session")
        return self.session

    async def sign_in_with_oauth(self, provider: str) -> str:
        self._check("sign_in_with_oauth", provider)
        return f"https://auth.example/authorize?provider={provider}"

    async def sign_in_with_otp(self, email: str) -> None:
        self._check("sign_in_with_otp", email)

    async def verify_otp(self, email: str, token: str) -> Session:
        self._check("verify_otp", email, token)
        session = make_session("u-otp", email=email)
        self.emit(AuthEvent.SIGNED_IN, session)
        return session

    async def exchange_redirect(self, url: str) -> Session:
        self._check("exchange_redirect", url)
        session = make_session("u-redirect")
        self.emit(AuthEvent.SIGNED_IN, session)
        return session

    async def refresh_session(self) -> Session | None:
        self._check("refresh_session")
        return self.session

    async def sign_out(self) -> None:
        self._check("sign_out")
        self.emit(AuthEvent.SIGNED_OUT, None)


@dataclass
class FakeTaskTable:
    """
    In-memory `tasks` table.

    `leak_other_users` simulates a misconfigured row filter that returns
    every row; `gates` blocks select_for_user for a user until the event is set.
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    fail: set[str] = field(default_factory=set)
    leak_other_users: bool = False
    gates: dict[str, asyncio.Event] = field(default_factory=dict)
    calls: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)

    _ids: Any = field(default_factory=lambda: itertools.count(1))
    _clock: datetime = field(default_factory=lambda: datetime(2024, 1, 1, tzinfo=UTC))

    def _check(self, op: str, *args: Any) -> None:
        self.calls.append((op, args))
        if op in self.fail:
            self.fail.discard(op)
            raise StoreError(f"{op} failed", status=500)

    def seed(self, *, title: str, user_id: str, is_completed: bool = False) -> dict[str, Any]:
        self._clock += timedelta(seconds=1)
        row = {
            "id": next(self._ids),
            "title": title,
            "user_id": user_id,
            "is_completed": is_completed,
            "created_at": self._clock.isoformat(),
        }
        self.rows.append(row)
        return row

    def owned_by(self, user_id: str) -> list[dict[str, Any]]:
        return [r for r in self.rows if r["user_id"] == user_id]

    async def select_for_user(self, access_token: str, user_id: str) -> list[dict[str, Any]]:
        gate = self.gates.get(user_id)
        if gate is not None:
            await gate.wait()
        self._check("select", user_id)
        rows = list(self.rows) if self.leak_other_users else self.owned_by(user_id)
        return sorted((dict(r) for r in rows), key=lambda r: r["created_at"], reverse=True)

    async def insert(self, access_token: str, *, title: str, user_id: str) -> dict[str, Any]:
        self._check("insert", title, user_id)
        return dict(self.seed(title=title, user_id=user_id))

    async def update_completed(self, access_token: str, task_id: str, is_completed: bool) -> None:
        self._check("update", task_id, is_completed)
        for r in self.rows:
            if str(r["id"]) == str(task_id):
                r["is_completed"] = is_completed

    async def delete(self, access_token: str, task_id: str) -> None:
        self._check("delete", task_id)
        self.rows = [r for r in self.rows if str(r["id"]) != str(task_id)]
