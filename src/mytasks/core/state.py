# src/mytasks/core/state.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .models import Session, Task

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    """
    Explicit UI state container owned by the composition root.

    Writers:
    - session / generation: SessionManager only
    - tasks: TaskStoreClient (and invalidate_tasks on session change)
    - otp_sent / last_error: whoever ran the last user action

    `generation` is bumped whenever the session user changes (sign-in,
    sign-out, account switch). Async results captured under an older
    generation are stale and must be dropped.
    """

    settings: Any

    session: Session | None = None
    generation: int = 0
    tasks: list[Task] = field(default_factory=list)

    otp_sent: bool = False
    last_error: str | None = None

    @property
    def user_id(self) -> str | None:
        return self.session.user.id if self.session is not None else None

    @property
    def signed_in(self) -> bool:
        return self.session is not None

    def set_session(self, session: Session | None) -> bool:
        """Store the new session. Returns True if the user changed."""
        old_user = self.user_id
        self.session = session
        new_user = self.user_id

        if old_user == new_user:
            return False

        self.generation += 1
        self.invalidate_tasks()
        if session is not None:
            self.otp_sent = False
        logger.debug("Session user changed %s -> %s (generation=%d)", old_user, new_user, self.generation)
        return True

    def is_current(self, generation: int, user_id: str | None = None) -> bool:
        if generation != self.generation:
            return False
        return user_id is None or user_id == self.user_id

    def invalidate_tasks(self) -> None:
        self.tasks = []

    def report_error(self, message: str) -> None:
        self.last_error = message

    def pop_error(self) -> str | None:
        err, self.last_error = self.last_error, None
        return err
