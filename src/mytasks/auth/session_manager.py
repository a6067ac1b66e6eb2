# src/mytasks/auth/session_manager.py

"""
Session lifecycle for the app.

The manager is the single writer of AppState.session. It:
- reads the current session once at startup,
- keeps AppState in sync through a provider subscription,
- fans session changes out to app-level listeners (task reloads, UI),
- turns provider failures (AuthError) into "state unchanged, error surfaced".
"""

from __future__ import annotations

import contextlib
import itertools
import logging
import webbrowser
from dataclasses import dataclass, field
from typing import Callable

from ..core.errors import AuthError
from ..core.models import AuthEvent, Session
from ..core.ports import AuthProvider, SessionListener, Unsubscribe
from ..core.state import AppState

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Subscription:
    """Scoped listener registration. Call unsubscribe() on teardown."""

    _release: Callable[[], None] | None = field(default=None, repr=False)

    @property
    def active(self) -> bool:
        return self._release is not None

    def unsubscribe(self) -> None:
        release, self._release = self._release, None
        if release is None:
            return
        try:
            release()
        except Exception:
            logger.exception("Failed to release session subscription")

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc: object) -> None:
        self.unsubscribe()


class SessionManager:
    def __init__(
        self,
        state: AppState,
        provider: AuthProvider,
        *,
        open_browser: bool = False,
        browser_opener: Callable[[str], bool] = webbrowser.open,
    ) -> None:
        self._state = state
        self._provider = provider
        self._open_browser = open_browser
        self._browser_opener = browser_opener

        self._listeners: dict[int, SessionListener] = {}
        self._ids = itertools.count(1)
        self._provider_unsub: Unsubscribe | None = None

    @property
    def current_session(self) -> Session | None:
        return self._state.session

    # ---- lifecycle ----

    async def start(self) -> Session | None:
        """Query the current session once and subscribe to provider changes."""
        if self._provider_unsub is None:
            self._provider_unsub = self._provider.subscribe(self._on_provider_change)

        session = await self.get_current_session()
        self._apply(AuthEvent.INITIAL_SESSION, session)
        return session

    def close(self) -> None:
        unsub, self._provider_unsub = self._provider_unsub, None
        if unsub is not None:
            try:
                unsub()
            except Exception:
                logger.exception("Failed to unsubscribe from auth provider")
        self._listeners.clear()

    # ---- subscriptions ----

    def on_session_change(self, callback: SessionListener) -> Subscription:
        key = next(self._ids)
        self._listeners[key] = callback
        return Subscription(lambda: self._listeners.pop(key, None))

    def _on_provider_change(self, event: AuthEvent, session: Session | None) -> None:
        self._apply(event, session)

    def _apply(self, event: AuthEvent, session: Session | None) -> None:
        self._state.set_session(session)
        for listener in list(self._listeners.values()):
            try:
                listener(event, session)
            except Exception:
                logger.exception("Session change listener failed on %s", event.value)

    # ---- operations ----

    async def get_current_session(self) -> Session | None:
        try:
            return await self._provider.get_session()
        except AuthError as e:
            logger.warning("Failed to read current session: %s", e)
            self._state.report_error(f"Could not restore session: {e}")
            return None

    async def sign_in_with_provider(self, name: str) -> str | None:
        """
        Start a redirect OAuth flow.

        Returns the authorize URL (so a console user can open it by hand);
        success is only observed later through the session change listener.
        """
        try:
            url = await self._provider.sign_in_with_oauth(name)
        except AuthError as e:
            logger.warning("OAuth sign-in error (%s): %s", name, e)
            self._state.report_error(f"Sign-in with {name} failed: {e}")
            return None

        if self._open_browser:
            with contextlib.suppress(Exception):
                self._browser_opener(url)
        return url

    async def sign_in_with_email(self, address: str) -> bool:
        address = (address or "").strip()
        try:
            if not address:
                raise AuthError("Email address is required.")
            await self._provider.sign_in_with_otp(address)
        except AuthError as e:
            logger.warning("Error sending magic link: %s", e)
            self._state.report_error(f"Could not send sign-in link: {e}")
            return False

        self._state.otp_sent = True
        return True

    async def verify_email_code(self, address: str, code: str) -> bool:
        try:
            await self._provider.verify_otp(address, code)
        except AuthError as e:
            logger.warning("One-time code verification failed: %s", e)
            self._state.report_error(f"Code verification failed: {e}")
            return False
        return True

    async def complete_redirect(self, url: str) -> bool:
        try:
            await self._provider.exchange_redirect(url)
        except AuthError as e:
            logger.warning("Redirect sign-in failed: %s", e)
            self._state.report_error(f"Sign-in failed: {e}")
            return False
        return True

    async def sign_out(self) -> bool:
        try:
            await self._provider.sign_out()
        except AuthError as e:
            logger.warning("Sign-out error: %s", e)
            self._state.report_error(f"Sign-out failed: {e}")
            return False

        # Provider normally notifies SIGNED_OUT; make sure local state is cleared either way.
        if self._state.session is not None:
            self._apply(AuthEvent.SIGNED_OUT, None)
        return True
