# src/mytasks/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (backend URL/key are checked at bootstrap).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

from dotenv import load_dotenv

ENV_PREFIX = "MYTASKS"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Backend ----
    supabase_url: str
    supabase_anon_key: str
    tasks_table: str
    http_timeout_seconds: float

    # ---- Auth ----
    redirect_url: str
    oauth_providers: List[str]
    open_browser: bool
    refresh_margin_seconds: float
    persist_session: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    session_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "mytasks") or "mytasks"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        supabase_url = (_first_env(_k("SUPABASE_URL"), "SUPABASE_URL", default="") or "").strip()
        supabase_anon_key = (
            _first_env(_k("SUPABASE_ANON_KEY"), "SUPABASE_ANON_KEY", "SUPABASE_KEY", default="") or ""
        ).strip()
        tasks_table = _env(_k("TASKS_TABLE"), "tasks").strip() or "tasks"
        http_timeout_seconds = _env_float(_k("HTTP_TIMEOUT_SECONDS"), 20.0)

        redirect_url = _env(_k("REDIRECT_URL"), "http://localhost:3000").strip()
        oauth_providers = [p.lower() for p in _env_list(_k("OAUTH_PROVIDERS"), ["google", "facebook"])]
        open_browser = _env_bool(_k("OPEN_BROWSER"), True)
        refresh_margin_seconds = _env_float(_k("REFRESH_MARGIN_SECONDS"), 60.0)
        persist_session = _env_bool(_k("PERSIST_SESSION"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/mytasks"))
        session_path = _env_path(_k("SESSION_PATH"), data_dir / "session.json")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            supabase_url=supabase_url,
            supabase_anon_key=supabase_anon_key,
            tasks_table=tasks_table,
            http_timeout_seconds=http_timeout_seconds,
            redirect_url=redirect_url,
            oauth_providers=oauth_providers,
            open_browser=open_browser,
            refresh_margin_seconds=refresh_margin_seconds,
            persist_session=persist_session,
            data_dir=data_dir,
            session_path=session_path,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
