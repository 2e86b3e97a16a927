"""Error codes and helpers for tool and route envelopes."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Mapping, MutableMapping, Optional, Sequence


class ErrorCode(str, Enum):
    """Stable error codes returned from tools and HTTP routes."""

    INVALID_REQUEST = "INVALID_REQUEST"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    SYNTHESIS_FAILED = "SYNTHESIS_FAILED"
    RESULT_TOO_LARGE = "RESULT_TOO_LARGE"
    INTERNAL = "INTERNAL"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    UNAVAILABLE = "UNAVAILABLE"


@dataclass(frozen=True)
class ErrorTemplate:
    """Default status, message, and recovery hints for an error code."""

    status: int
    message: str
    recovery: Sequence[str] = ()


_TEMPLATES: Mapping[ErrorCode, ErrorTemplate] = {
    ErrorCode.INVALID_REQUEST: ErrorTemplate(
        status=400,
        message="Request was malformed or failed validation.",
        recovery=(
            "Check required fields and value formats.",
            "Field lists must be JSON arrays of {key, type, required, desc, example}.",
        ),
    ),
    ErrorCode.FORBIDDEN: ErrorTemplate(
        status=403,
        message="Operation is not allowed by the configured security mode.",
        recovery=(
            "Set APIPOST_SECURITY_MODE to 'limited' for writes or 'full' for deletes.",
        ),
    ),
    ErrorCode.NOT_FOUND: ErrorTemplate(
        status=404,
        message="Requested API document was not found.",
        recovery=(
            "Use apipost_list to look up a valid target_id.",
            "Check that the current workspace owns the document.",
        ),
    ),
    ErrorCode.SYNTHESIS_FAILED: ErrorTemplate(
        status=422,
        message="Document could not be synthesized from the field lists.",
        recovery=(
            "Every response needs a non-empty 'fields' list.",
        ),
    ),
    ErrorCode.RESULT_TOO_LARGE: ErrorTemplate(
        status=413,
        message="Request exceeds configured limits.",
        recovery=(
            "Split the request into smaller batches.",
        ),
    ),
    ErrorCode.INTERNAL: ErrorTemplate(
        status=500,
        message="Internal server error.",
        recovery=(
            "Retry the request or inspect the server logs.",
        ),
    ),
    ErrorCode.UPSTREAM_ERROR: ErrorTemplate(
        status=502,
        message="ApiPost rejected the request.",
        recovery=(
            "Check the upstream message and the request parameters.",
        ),
    ),
    ErrorCode.UNAVAILABLE: ErrorTemplate(
        status=503,
        message="ApiPost workspace is unavailable.",
        recovery=(
            "Verify APIPOST_TOKEN and APIPOST_HOST, then retry.",
        ),
    ),
}


def _resolve_template(code: ErrorCode) -> ErrorTemplate:
    try:
        return _TEMPLATES[code]
    except KeyError:  # pragma: no cover
        raise ValueError(f"No error template registered for {code!s}") from None


def make_error(
    code: ErrorCode,
    message: Optional[str] = None,
    *,
    recovery: Optional[Iterable[str]] = None,
    status: Optional[int] = None,
) -> Dict[str, object]:
    """Create a JSON-serialisable error dict."""

    template = _resolve_template(code)
    resolved_message = message if message is not None else template.message
    resolved_status = status if status is not None else template.status
    resolved_recovery: List[str] = list(recovery) if recovery is not None else list(
        template.recovery
    )
    payload: MutableMapping[str, object] = {
        "status": int(resolved_status),
        "code": code.value,
        "message": resolved_message,
        "recovery": resolved_recovery,
    }
    return dict(payload)


__all__ = ["ErrorCode", "ErrorTemplate", "make_error"]
