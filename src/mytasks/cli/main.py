# src/mytasks/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the App, restores the session, then runs the
console screen until /exit, EOF or Ctrl+C.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import App, create_app
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _run(app: App) -> None:
    try:
        await app.start()
        await app.wait_idle()
        await run_console_loop(app)
    finally:
        await app.aclose()


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    try:
        app = create_app(settings=settings)
    except RuntimeError as e:
        logger.error("%s", e)
        raise SystemExit(2) from e

    try:
        asyncio.run(_run(app))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")

    logger.info("Bye.")


if __name__ == "__main__":
    main()
