# src/mytasks/core/models.py

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any


class AuthEvent(StrEnum):
    """Session change notifications emitted by the auth provider."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


@dataclass(frozen=True, slots=True)
class User:
    id: str
    email: str | None = None
    full_name: str | None = None
    avatar_url: str | None = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.email or self.id

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> User:
        meta = raw.get("user_metadata") or {}
        if not isinstance(meta, dict):
            meta = {}
        user_id = raw.get("id")
        if not user_id:
            raise ValueError("user object has no id")
        return cls(
            id=str(user_id),
            email=raw.get("email") or None,
            full_name=meta.get("full_name") or meta.get("name") or None,
            avatar_url=meta.get("avatar_url") or meta.get("picture") or None,
        )

    def to_api(self) -> dict[str, Any]:
        meta: dict[str, Any] = {}
        if self.full_name:
            meta["full_name"] = self.full_name
        if self.avatar_url:
            meta["avatar_url"] = self.avatar_url
        return {"id": self.id, "email": self.email, "user_metadata": meta}


@dataclass(frozen=True, slots=True)
class Session:
    """
    Token bundle issued by the auth provider.

    The app never inspects the tokens; it only reads `user` and passes the
    access token along to the table store.
    """

    access_token: str
    refresh_token: str | None
    user: User
    expires_at: float | None = None
    token_type: str = "bearer"

    def expires_within(self, seconds: float, *, now: float | None = None) -> bool:
        if self.expires_at is None:
            return False
        now_ts = time.time() if now is None else now
        return self.expires_at - now_ts <= seconds

    def with_user(self, user: User) -> Session:
        return replace(self, user=user)

    @classmethod
    def from_api(cls, raw: dict[str, Any], *, user: User | None = None) -> Session:
        access_token = raw.get("access_token")
        if not access_token:
            raise ValueError("session has no access_token")

        expires_at: float | None = None
        if raw.get("expires_at") is not None:
            expires_at = float(raw["expires_at"])
        elif raw.get("expires_in") is not None:
            expires_at = time.time() + float(raw["expires_in"])

        if user is None:
            user_raw = raw.get("user")
            if not isinstance(user_raw, dict):
                raise ValueError("session has no user")
            user = User.from_api(user_raw)

        return cls(
            access_token=str(access_token),
            refresh_token=raw.get("refresh_token") or None,
            user=user,
            expires_at=expires_at,
            token_type=str(raw.get("token_type") or "bearer"),
        )

    def to_api(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": self.expires_at,
            "token_type": self.token_type,
            "user": self.user.to_api(),
        }


@dataclass(frozen=True, slots=True)
class Task:
    id: str
    title: str
    user_id: str
    is_completed: bool
    created_at: str

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Task:
        # Unknown columns (e.g. updated_at) are ignored.
        return cls(
            id=str(row["id"]),
            title=str(row.get("title") or ""),
            user_id=str(row.get("user_id") or ""),
            is_completed=bool(row.get("is_completed", False)),
            created_at=str(row.get("created_at") or ""),
        )

    def toggled(self, is_completed: bool) -> Task:
        return replace(self, is_completed=is_completed)
