"""Runtime configuration read from the environment."""
from __future__ import annotations

import os
from typing import Final, Optional


def _parse_bool(value: str | None, *, default: bool = False) -> bool:
    if value is None:
        return default
    value = value.strip().lower()
    return value in {"1", "true", "yes", "on"}


def _parse_int(value: str | None, *, default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _parse_float(value: str | None, *, default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_bool(name: str, *, default: bool = False) -> bool:
    return _parse_bool(os.getenv(name), default=default)


def _env_int(name: str, *, default: int) -> int:
    return _parse_int(os.getenv(name), default=default)


def _env_str(name: str, *, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


DEFAULT_HOST: Final[str] = "https://open.apipost.net"

APIPOST_TOKEN: Final[Optional[str]] = _env_str("APIPOST_TOKEN")
APIPOST_HOST: Final[str] = _env_str("APIPOST_HOST", default=DEFAULT_HOST) or DEFAULT_HOST
SECURITY_MODE: Final[str] = (_env_str("APIPOST_SECURITY_MODE", default="limited") or "limited").lower()
DEFAULT_TEAM_NAME: Final[Optional[str]] = _env_str("APIPOST_DEFAULT_TEAM_NAME")
DEFAULT_PROJECT_NAME: Final[Optional[str]] = _env_str("APIPOST_DEFAULT_PROJECT_NAME")
INLINE_COMMENTS: Final[bool] = _env_bool("APIPOST_INLINE_COMMENTS", default=False)
URL_PREFIX: Final[str] = os.getenv("APIPOST_URL_PREFIX", "")
REQUEST_TIMEOUT: Final[float] = _parse_float(os.getenv("APIPOST_TIMEOUT"), default=30.0)
MAX_DELETE_BATCH: Final[int] = _env_int("APIPOST_MAX_DELETE_BATCH", default=100)
LIST_DEFAULT_LIMIT: Final[int] = 50
LIST_MAX_LIMIT: Final[int] = 200


__all__ = [
    "APIPOST_HOST",
    "APIPOST_TOKEN",
    "DEFAULT_HOST",
    "DEFAULT_PROJECT_NAME",
    "DEFAULT_TEAM_NAME",
    "INLINE_COMMENTS",
    "LIST_DEFAULT_LIMIT",
    "LIST_MAX_LIMIT",
    "MAX_DELETE_BATCH",
    "REQUEST_TIMEOUT",
    "SECURITY_MODE",
    "URL_PREFIX",
]
