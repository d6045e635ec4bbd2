from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, List


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/planner.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - AUTH_USERS: comma-separated 'username:password' pairs accepted via HTTP Basic Auth
    - LOG_LEVEL: logging level name (default: INFO)
    - MAX_RANGE_DAYS: longest date range accepted by the range endpoint (default: 366)
    """

    persistence_backend: str
    sqlite_db_path: str
    cors_allow_origins: List[str]
    auth_users: Dict[str, str] = field(default_factory=dict)
    log_level: str = "INFO"
    max_range_days: int = 366


_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        # Star will be handled in main via allow_origins=["*"]
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


def _parse_users(users_value: str) -> Dict[str, str]:
    """
    Parse 'alice:secret,bob:hunter2' into a username -> password mapping.
    Entries without a ':' separator or with an empty username are skipped.
    """
    users: Dict[str, str] = {}
    for entry in users_value.split(","):
        username, sep, password = entry.strip().partition(":")
        if not sep or not username.strip():
            continue
        users[username.strip()] = password
    return users


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite"}:
        # Fallback to memory if unsupported
        backend = "memory"

    sqlite_path = _get_env("SQLITE_DB_PATH", "./data/planner.db").strip()
    origins = _parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*"))
    users = _parse_users(os.getenv("AUTH_USERS", ""))

    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in _LOG_LEVELS:
        log_level = "INFO"

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=sqlite_path,
        cors_allow_origins=origins,
        auth_users=users,
        log_level=log_level,
        max_range_days=_parse_int(_get_env("MAX_RANGE_DAYS", "366"), 366),
    )
