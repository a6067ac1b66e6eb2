# src/mytasks/tasks/task_table.py

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..auth.supabase_auth import extract_error
from ..core.errors import StoreError

logger = logging.getLogger(__name__)


class PostgrestTaskTable:
    """
    `tasks` table over the PostgREST API (`/rest/v1/<table>`).

    Every call is authorized with the caller's access token so row level
    security on the server scopes rows to the signed-in user.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        base_url: str,
        api_key: str,
        table: str = "tasks",
    ) -> None:
        self._http = http
        self._url = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self._api_key = api_key

    # ---- low-level helpers ----

    def _headers(self, access_token: str, *, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {access_token}",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        *,
        access_token: str,
        params: dict[str, str],
        json_body: Any = None,
        prefer: str | None = None,
    ) -> Any:
        try:
            resp = await self._http.request(
                method,
                self._url,
                params=params,
                json=json_body,
                headers=self._headers(access_token, prefer=prefer),
            )
        except httpx.HTTPError as e:
            raise StoreError(f"Store request failed: {e.__class__.__name__}: {e}") from e

        if resp.status_code >= 300:
            raise StoreError(extract_error(resp), status=resp.status_code)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise StoreError("Store returned invalid JSON.", status=resp.status_code) from e

    # ---- public API ----

    async def select_for_user(self, access_token: str, user_id: str) -> list[dict[str, Any]]:
        data = await self._request(
            "GET",
            access_token=access_token,
            params={
                "select": "*",
                "user_id": f"eq.{user_id}",
                "order": "created_at.desc",
            },
        )
        if data is None:
            return []
        if not isinstance(data, list):
            raise StoreError("Unexpected response format while loading tasks.")
        return [row for row in data if isinstance(row, dict)]

    async def insert(self, access_token: str, *, title: str, user_id: str) -> dict[str, Any]:
        data = await self._request(
            "POST",
            access_token=access_token,
            params={"select": "*"},
            json_body=[{"title": title, "user_id": user_id}],
            prefer="return=representation",
        )
        rows = data if isinstance(data, list) else [data]
        if not rows or not isinstance(rows[0], dict):
            raise StoreError("Insert returned no row.")
        return rows[0]

    async def update_completed(self, access_token: str, task_id: str, is_completed: bool) -> None:
        await self._request(
            "PATCH",
            access_token=access_token,
            params={"id": f"eq.{task_id}"},
            json_body={"is_completed": bool(is_completed)},
            prefer="return=minimal",
        )

    async def delete(self, access_token: str, task_id: str) -> None:
        await self._request(
            "DELETE",
            access_token=access_token,
            params={"id": f"eq.{task_id}"},
            prefer="return=minimal",
        )
