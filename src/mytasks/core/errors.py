# src/mytasks/core/errors.py

from __future__ import annotations


class MyTasksError(Exception):
    """Base error for backend failures. Carries a human-readable message."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        if self.status is not None:
            return f"HTTP {self.status}: {self.message}"
        return self.message


class AuthError(MyTasksError):
    """Sign-in / sign-out / token refresh failures."""


class StoreError(MyTasksError):
    """Fetch / insert / update / delete failures against the tasks table."""
