# src/mytasks/auth/refresher.py

from __future__ import annotations

import asyncio
import logging

from ..core.errors import AuthError
from ..core.ports import AuthProvider

logger = logging.getLogger(__name__)


async def run_token_refresher(
        provider: AuthProvider,
        *,
        interval_seconds: float = 30.0,
) -> None:
    """
    Simple polling loop that keeps the session token fresh.

    Every interval_seconds it asks the provider for the current session; the
    provider refreshes the token when it is close to expiry and notifies
    TOKEN_REFRESHED (or SIGNED_OUT when the session cannot be renewed).
    A failed refresh is logged and tried again on the next tick.

    To stop the refresher, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(interval_seconds))

    while True:
        await asyncio.sleep(sleep_s)
        try:
            await provider.get_session()
        except AuthError as e:
            logger.warning("Background token refresh failed: %s", e)
        except Exception:
            logger.exception("Background token refresh crashed")
