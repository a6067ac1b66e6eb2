# src/mytasks/auth/supabase_auth.py

from __future__ import annotations

import contextlib
import itertools
import json
import logging
import os
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs

import httpx

from ..core.errors import AuthError
from ..core.models import AuthEvent, Session, User
from ..core.ports import SessionListener, Unsubscribe

logger = logging.getLogger(__name__)


def extract_error(response: httpx.Response) -> str:
    """Pull a readable message out of a GoTrue / PostgREST error body."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        if isinstance(body.get("error"), dict):
            msg = body["error"].get("message")
            if msg:
                return str(msg)
        for key in ("msg", "message", "error_description", "error"):
            msg = body.get(key)
            if msg:
                return str(msg)

    text = (response.text or "").strip()
    if text:
        return text[:300]
    return "request failed"


def _load_json(path: Path) -> dict[str, Any]:
    val = json.loads(path.read_text("utf-8"))
    if isinstance(val, dict):
        return val
    raise ValueError("Expected JSON object")


def _atomic_write_json(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(data, ensure_ascii=False), "utf-8")
    os.replace(tmp, path)
    with contextlib.suppress(OSError):
        # The file holds a refresh token; keep it private on disk.
        os.chmod(path, 0o600)


class SupabaseAuthClient:
    """
    GoTrue (Supabase Auth) client over httpx.

    Holds the current session in memory and, when `session_path` is set,
    persists it to a private JSON file so restarts keep the user signed in.
    Listeners registered with subscribe() get (event, session) on every
    sign-in, sign-out and token refresh.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        base_url: str,
        api_key: str,
        redirect_url: str | None = None,
        session_path: str | Path | None = None,
        refresh_margin_seconds: float = 60.0,
    ) -> None:
        self._http = http
        self._base_url = base_url.rstrip("/") + "/auth/v1"
        self._api_key = api_key
        self._redirect_url = redirect_url or None
        self._session_path = Path(session_path) if session_path else None
        self._refresh_margin = max(0.0, float(refresh_margin_seconds))

        self._session: Session | None = None
        self._restored = False
        self._listeners: dict[int, SessionListener] = {}
        self._ids = itertools.count(1)

    # ---- listeners ----

    def subscribe(self, listener: SessionListener) -> Unsubscribe:
        key = next(self._ids)
        self._listeners[key] = listener

        def _unsubscribe() -> None:
            self._listeners.pop(key, None)

        return _unsubscribe

    def _emit(self, event: AuthEvent, session: Session | None) -> None:
        for listener in list(self._listeners.values()):
            try:
                listener(event, session)
            except Exception:
                logger.exception("Session listener failed on %s", event.value)

    # ---- low-level helpers ----

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        headers = {"apikey": self._api_key}
        headers["Authorization"] = f"Bearer {access_token or self._api_key}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        access_token: str | None = None,
    ) -> Any:
        try:
            resp = await self._http.request(
                method,
                f"{self._base_url}{path}",
                json=json_body,
                params=params,
                headers=self._headers(access_token),
            )
        except httpx.HTTPError as e:
            raise AuthError(f"Auth request failed: {e.__class__.__name__}: {e}") from e

        if resp.status_code >= 300:
            raise AuthError(extract_error(resp), status=resp.status_code)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise AuthError("Auth provider returned invalid JSON.", status=resp.status_code) from e

    def _set_session(self, session: Session | None, event: AuthEvent) -> None:
        self._session = session
        if session is None:
            self._forget_session()
        else:
            self._save_session(session)
        logger.info("Auth event %s (user=%s)", event.value, session.user.id if session else None)
        self._emit(event, session)

    # ---- persistence ----

    def _load_session(self) -> Session | None:
        path = self._session_path
        if path is None or not path.exists():
            return None
        try:
            session = Session.from_api(_load_json(path))
        except (OSError, ValueError, KeyError, TypeError):
            logger.warning("Failed to restore session from %s; ignoring it.", path, exc_info=True)
            return None
        logger.info("Session restored for user=%s", session.user.id)
        return session

    def _save_session(self, session: Session) -> None:
        if self._session_path is None:
            return
        try:
            _atomic_write_json(self._session_path, session.to_api())
        except OSError:
            logger.exception("Failed to write session file %s", self._session_path)

    def _forget_session(self) -> None:
        if self._session_path is None:
            return
        with contextlib.suppress(FileNotFoundError):
            self._session_path.unlink()

    # ---- public API ----

    async def get_session(self) -> Session | None:
        if not self._restored:
            self._restored = True
            if self._session is None:
                self._session = self._load_session()

        session = self._session
        if session is None or not session.expires_within(self._refresh_margin):
            return session

        try:
            return await self.refresh_session()
        except AuthError as e:
            if self._session is not session:
                return self._session
            # Only a rejected refresh token ends the session; transport errors are retried.
            if session.expires_within(0) and e.status in (400, 401):
                logger.warning("Session expired and refresh was rejected (%s); signing out locally.", e)
                self._set_session(None, AuthEvent.SIGNED_OUT)
                return None
            logger.warning("Token refresh failed, keeping current token: %s", e)
            return session

    async def sign_in_with_oauth(self, provider: str) -> str:
        name = (provider or "").strip().lower()
        if not name:
            raise AuthError("OAuth provider name is required.")
        params = {"provider": name}
        if self._redirect_url:
            params["redirect_to"] = self._redirect_url
        url = str(httpx.URL(f"{self._base_url}/authorize", params=params))
        logger.info("OAuth sign-in started provider=%s", name)
        return url

    async def sign_in_with_otp(self, email: str) -> None:
        address = (email or "").strip()
        if not address:
            raise AuthError("Email address is required.")
        params = {"redirect_to": self._redirect_url} if self._redirect_url else None
        await self._request(
            "POST",
            "/otp",
            json_body={"email": address, "create_user": True},
            params=params,
        )
        logger.info("One-time sign-in link requested")

    async def verify_otp(self, email: str, token: str) -> Session:
        data = await self._request(
            "POST",
            "/verify",
            json_body={"type": "email", "email": (email or "").strip(), "token": (token or "").strip()},
        )
        session = self._parse_session(data)
        self._set_session(session, AuthEvent.SIGNED_IN)
        return session

    async def exchange_redirect(self, url: str) -> Session:
        """
        Finish an implicit-flow redirect (OAuth or magic link).

        Tokens arrive in the URL fragment (#access_token=...&refresh_token=...);
        some setups put them in the query string instead.
        """
        parsed = httpx.URL((url or "").strip())
        raw = parsed.fragment or parsed.query.decode("ascii", errors="replace")
        params = {k: v[0] for k, v in parse_qs(raw).items() if v}

        if params.get("error") or params.get("error_description"):
            raise AuthError(params.get("error_description") or params["error"])
        if "access_token" not in params:
            if "code" in params:
                raise AuthError("Redirect carries an authorization code; only the implicit flow is supported.")
            raise AuthError("Redirect URL has no access_token.")

        access_token = params["access_token"]
        user_raw = await self._request("GET", "/user", access_token=access_token)
        if not isinstance(user_raw, dict):
            raise AuthError("Auth provider returned no user.")

        try:
            session = Session.from_api(params, user=User.from_api(user_raw))
        except ValueError as e:
            raise AuthError(f"Invalid redirect session: {e}") from e

        self._set_session(session, AuthEvent.SIGNED_IN)
        return session

    async def refresh_session(self) -> Session | None:
        current = self._session
        if current is None or not current.refresh_token:
            return current

        data = await self._request(
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            json_body={"refresh_token": current.refresh_token},
        )
        if self._session is not current:
            # Signed out or switched accounts while the request was in flight.
            logger.info("Discarding refreshed token: the session changed during refresh.")
            return self._session
        session = self._parse_session(data)
        self._set_session(session, AuthEvent.TOKEN_REFRESHED)
        return session

    async def sign_out(self) -> None:
        current = self._session
        if current is not None:
            try:
                await self._request("POST", "/logout", access_token=current.access_token)
            except AuthError as e:
                # Token already revoked or expired: the server side session is gone anyway.
                if e.status not in (401, 403, 404):
                    raise
                logger.info("Logout returned %s; clearing local session.", e.status)
        self._set_session(None, AuthEvent.SIGNED_OUT)

    @staticmethod
    def _parse_session(data: Any) -> Session:
        if not isinstance(data, dict):
            raise AuthError("Auth provider returned no session.")
        try:
            return Session.from_api(data)
        except (ValueError, KeyError, TypeError) as e:
            raise AuthError(f"Invalid session payload: {e}") from e
