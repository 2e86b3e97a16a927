"""Request-scoped logging and the delete batch limit."""
from __future__ import annotations

import contextvars
import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from time import monotonic
from typing import Dict, Iterator, Mapping, Optional

from .config import MAX_DELETE_BATCH

_CURRENT: contextvars.ContextVar["RequestContext | None"] = contextvars.ContextVar(
    "apipost_request", default=None
)


def configure_root(level: int = logging.INFO) -> None:
    # stderr only: stdout carries the MCP stdio transport.
    logging.basicConfig(level=level, format="%(levelname)s:%(name)s:%(message)s")


class SafetyLimitExceeded(RuntimeError):
    """Raised when a batch is larger than the active request allows."""

    def __init__(self, kind: str, limit: int, attempted: int):
        super().__init__(f"{kind} limit exceeded: attempted {attempted} > allowed {limit}")
        self.kind = kind
        self.limit = limit
        self.attempted = attempted


@dataclass(slots=True)
class RequestContext:
    """One tool call or route invocation."""

    name: str
    logger: logging.Logger
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    max_items: int = MAX_DELETE_BATCH
    metadata: Dict[str, object] = field(default_factory=dict)
    counters: Dict[str, int] = field(default_factory=dict)
    started: float = field(default_factory=monotonic)

    def extra(self, **values: object) -> Dict[str, object]:
        return {"request_id": self.request_id, "request": self.name, **self.metadata, **values}

    def increment(self, counter: str, amount: int = 1) -> int:
        self.counters[counter] = self.counters.get(counter, 0) + amount
        return self.counters[counter]


@contextmanager
def request_scope(
    name: str,
    *,
    logger: Optional[logging.Logger] = None,
    extra: Optional[Mapping[str, object]] = None,
    max_items: Optional[int] = None,
) -> Iterator[RequestContext]:
    """Tag every log record of one call with a request id and collect counters.

    Logs ``request.start`` and ``request.finish`` (with duration and counters);
    an escaping exception is logged as ``request.error`` and re-raised.
    """

    context = RequestContext(
        name=name,
        logger=logger or logging.getLogger("apipost.request"),
        max_items=MAX_DELETE_BATCH if max_items is None else max_items,
        metadata=dict(extra or {}),
    )
    token = _CURRENT.set(context)
    context.logger.info("request.start", extra=context.extra())
    try:
        yield context
    except Exception:
        context.logger.exception("request.error", extra=context.extra())
        raise
    finally:
        context.logger.info(
            "request.finish",
            extra=context.extra(
                duration_s=monotonic() - context.started,
                counters=dict(context.counters),
            ),
        )
        _CURRENT.reset(token)


def current_request() -> Optional[RequestContext]:
    return _CURRENT.get()


def increment_counter(name: str, amount: int = 1) -> None:
    """Bump a counter on the active request; a no-op outside any scope."""

    context = current_request()
    if context is not None:
        context.increment(name, amount)


def enforce_batch_limit(size: int, *, counter: str = "batch_size") -> None:
    """Reject batches above the active request's ``max_items``."""

    context = current_request()
    limit = context.max_items if context is not None else MAX_DELETE_BATCH
    if size > limit:
        if context is not None:
            context.logger.warning(
                "limit.items_exceeded",
                extra=context.extra(attempted=size, limit=limit, counter=counter),
            )
        raise SafetyLimitExceeded(counter, limit, size)
    increment_counter(counter, size)


__all__ = [
    "RequestContext",
    "SafetyLimitExceeded",
    "configure_root",
    "current_request",
    "enforce_batch_limit",
    "increment_counter",
    "request_scope",
]
