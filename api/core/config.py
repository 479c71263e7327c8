"""
Environment-driven settings.

Everything is read lazily so tests and CLI commands can tweak `os.environ`
before the first call.
"""

from __future__ import annotations

import os

DEFAULT_QUERY_TIMEOUT_S = 10.0
DEFAULT_APP_PORT = 8080


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def pool_min_size() -> int:
    return max(_env_int("DB_POOL_MIN", 1), 1)


def pool_max_size() -> int:
    return max(_env_int("DB_POOL_MAX", 5), pool_min_size())


def query_timeout_s() -> float:
    value = _env_float("TASKS_QUERY_TIMEOUT_S", DEFAULT_QUERY_TIMEOUT_S)
    return value if value > 0 else DEFAULT_QUERY_TIMEOUT_S


def app_host() -> str:
    return os.environ.get("APP_HOST", "0.0.0.0").strip() or "0.0.0.0"


def app_port() -> int:
    return _env_int("APP_PORT", DEFAULT_APP_PORT)


def static_dir() -> str:
    return os.environ.get("STATIC_DIR", "./public").strip() or "./public"


def log_level() -> str:
    return os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"


def api_url() -> str:
    return os.environ.get("TASKS_API_URL", "http://localhost:8080").strip() or "http://localhost:8080"
