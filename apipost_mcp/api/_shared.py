"""Shared helpers for tools and HTTP routes."""
from __future__ import annotations

import inspect
from functools import wraps
from typing import Callable, Dict, Optional

from starlette.responses import JSONResponse

from ..apipost.client import ApiPostClient, RequestError
from ..utils.errors import ErrorCode, make_error


def envelope_ok(data: Dict[str, object]) -> Dict[str, object]:
    return {"ok": True, "data": data, "errors": []}


def envelope_error(
    code: ErrorCode,
    message: str | None = None,
    *,
    recovery: tuple[str, ...] | None = None,
    status: int | None = None,
    upstream_error: dict | None = None,
) -> Dict[str, object]:
    error_payload = make_error(code, message=message, recovery=recovery, status=status)
    if upstream_error is not None:
        error_payload = dict(error_payload)
        error_payload["upstream"] = upstream_error
    return {"ok": False, "data": None, "errors": [error_payload]}


def upstream_envelope(
    error: Optional[RequestError], message: str | None = None
) -> Dict[str, object]:
    """Envelope for a failed ApiPost call, carrying the upstream details."""

    if error is None:
        return envelope_error(ErrorCode.UPSTREAM_ERROR, message)
    if error.status is None:
        return envelope_error(
            ErrorCode.UNAVAILABLE,
            message or f"ApiPost is unreachable: {error.reason}",
            upstream_error=error.as_dict(),
        )
    return envelope_error(
        ErrorCode.UPSTREAM_ERROR,
        message or f"ApiPost rejected the request: {error.reason}",
        upstream_error=error.as_dict(),
    )


def envelope_response(payload: Dict[str, object]) -> JSONResponse:
    status = 200
    if not payload.get("ok"):
        errors = payload.get("errors")
        if isinstance(errors, list) and errors:
            status = int(errors[0].get("status", 500))
        else:
            status = 500
    return JSONResponse(payload, status_code=status)


def error_response(
    code: ErrorCode,
    message: str | None = None,
    *,
    recovery: tuple[str, ...] | None = None,
    upstream_error: dict | None = None,
    status: int | None = None,
) -> JSONResponse:
    return envelope_response(
        envelope_error(
            code,
            message,
            recovery=recovery,
            upstream_error=upstream_error,
            status=status,
        )
    )


def inject_client(factory: Callable[[], ApiPostClient]):
    """Inject an :class:`ApiPostClient` and hide it from the published signature."""

    def decorator(func):
        sig = inspect.signature(func)
        params = list(sig.parameters.values())
        if not params:
            raise TypeError("inject_client requires a function that accepts a client parameter")

        public_signature = inspect.Signature(
            params[1:], return_annotation=sig.return_annotation
        )

        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                client = factory()
            except ValueError as exc:
                return envelope_error(ErrorCode.UNAVAILABLE, str(exc))
            try:
                return func(client, *args, **kwargs)
            finally:
                client.close()

        wrapper.__signature__ = public_signature
        return wrapper

    return decorator


__all__ = [
    "envelope_error",
    "envelope_ok",
    "envelope_response",
    "error_response",
    "inject_client",
    "upstream_envelope",
]
