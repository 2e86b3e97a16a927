"""Security-mode gate for read, write, and delete operations."""
from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Optional

from .config import SECURITY_MODE

logger = logging.getLogger("apipost.security")

READ = "read"
WRITE = "write"
DELETE = "delete"

_MODES: Dict[str, FrozenSet[str]] = {
    "readonly": frozenset({READ}),
    "limited": frozenset({READ, WRITE}),
    "full": frozenset({READ, WRITE, DELETE}),
}

_REQUIRED_MODE = {
    READ: "readonly",
    WRITE: "limited",
    DELETE: "full",
}


class PermissionDenied(PermissionError):
    """Raised when the security mode forbids an operation."""

    def __init__(self, operation: str, mode: str) -> None:
        required = _REQUIRED_MODE.get(operation, "full")
        super().__init__(
            f"security mode '{mode}' does not allow {operation} operations "
            f"(requires '{required}' or higher)"
        )
        self.operation = operation
        self.mode = mode


def allowed_operations(mode: Optional[str] = None) -> FrozenSet[str]:
    """Return the operations permitted by *mode* (defaults to the configured one)."""

    resolved = (mode if mode is not None else SECURITY_MODE).strip().lower()
    operations = _MODES.get(resolved)
    if operations is None:
        logger.warning("Unknown security mode %r; falling back to readonly", resolved)
        return _MODES["readonly"]
    return operations


def is_allowed(operation: str, mode: Optional[str] = None) -> bool:
    return operation in allowed_operations(mode)


def ensure_permission(operation: str, mode: Optional[str] = None) -> None:
    resolved = mode if mode is not None else SECURITY_MODE
    if not is_allowed(operation, resolved):
        raise PermissionDenied(operation, resolved)


__all__ = [
    "DELETE",
    "PermissionDenied",
    "READ",
    "WRITE",
    "allowed_operations",
    "ensure_permission",
    "is_allowed",
]
