"""
Application configuration.

Loads settings from environment variables with sensible defaults.
"""
from __future__ import annotations

import os


def _get_int(key: str, default: int) -> int:
    """Get integer from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_str(key: str, default: str) -> str:
    """Get string from environment variable."""
    return os.environ.get(key, default)


def _get_list(key: str, default: list[str]) -> list[str]:
    """Comma-separated list from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


# ---------- Database ----------
# Empty means <project root>/data/league.db
DB_PATH = _get_str("VOLLEYLEAGUE_DB_PATH", "")

# ---------- Server ----------
HOST = _get_str("HOST", "127.0.0.1")
PORT = _get_int("PORT", 8000)
CORS_ORIGINS = _get_list(
    "CORS_ORIGINS",
    [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
)

# ---------- Logging ----------
LOG_LEVEL = _get_str("LOG_LEVEL", "INFO")
