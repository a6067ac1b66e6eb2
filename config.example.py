# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real keys. Use .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "MYTASKS_APP_NAME": "App display name (default: mytasks).",
    "MYTASKS_LOG_LEVEL": "Console logging level (default: INFO).",
    # Backend
    "MYTASKS_SUPABASE_URL": "Project URL, e.g. https://<ref>.supabase.co (falls back to SUPABASE_URL).",
    "MYTASKS_SUPABASE_ANON_KEY": "Public anon key (falls back to SUPABASE_ANON_KEY / SUPABASE_KEY).",
    "MYTASKS_TASKS_TABLE": "Table holding tasks (default: tasks).",
    "MYTASKS_HTTP_TIMEOUT_SECONDS": "Timeout for every backend request (default: 20).",
    # Auth
    "MYTASKS_REDIRECT_URL": "Where OAuth / magic links redirect (default: http://localhost:3000).",
    "MYTASKS_OAUTH_PROVIDERS": "Comma/space separated providers offered by /signin (default: google facebook).",
    "MYTASKS_OPEN_BROWSER": "Open the OAuth link in a browser automatically (true/false).",
    "MYTASKS_REFRESH_MARGIN_SECONDS": "Refresh the access token this long before it expires (default: 60).",
    "MYTASKS_PERSIST_SESSION": "Keep the session across restarts (true/false).",
    # Paths (gitignored)
    "MYTASKS_DATA_DIR": "Local data directory for logs and session (default: .local/mytasks).",
    "MYTASKS_SESSION_PATH": "Session JSON path (default: <data_dir>/session.json).",
}
