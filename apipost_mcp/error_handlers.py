"""Render exceptions escaping HTTP routes as error envelopes."""
import json
import logging
import uuid
from typing import Dict, Tuple, Type

from starlette.requests import Request
from starlette.responses import JSONResponse

from .api._shared import envelope_error, envelope_response
from .features.fields import FieldListError
from .features.responses import ResponseSynthesisError
from .utils.errors import ErrorCode
from .utils.logging import current_request

log = logging.getLogger("apipost.http")

# Starlette picks the handler for the most specific class in the MRO.
_HANDLED: Tuple[Tuple[Type[Exception], ErrorCode, str], ...] = (
    (json.JSONDecodeError, ErrorCode.INVALID_REQUEST, "json_decode_error"),
    (FieldListError, ErrorCode.INVALID_REQUEST, "field_list_error"),
    (ResponseSynthesisError, ErrorCode.SYNTHESIS_FAILED, "synthesis_error"),
    (ValueError, ErrorCode.INVALID_REQUEST, "value_error"),
    (TypeError, ErrorCode.INVALID_REQUEST, "type_error"),
)


def error_payload(code: ErrorCode, exc: Exception, *, summary: str) -> Dict[str, object]:
    """Envelope for *exc* with a correlation id tying it to the server log."""

    context = current_request()
    correlation_id = context.request_id if context is not None else uuid.uuid4().hex
    log.warning("%s: %s", summary, exc, extra={"correlation_id": correlation_id})
    payload = envelope_error(code, str(exc) or None)
    payload["meta"] = {"correlation_id": correlation_id, "summary": summary}
    return payload


def install_error_handlers(app) -> None:
    for exc_type, code, summary in _HANDLED:

        async def _handler(
            request: Request, exc: Exception, *, _code: ErrorCode = code, _summary: str = summary
        ) -> JSONResponse:
            return envelope_response(error_payload(_code, exc, summary=_summary))

        app.add_exception_handler(exc_type, _handler)


__all__ = ["error_payload", "install_error_handlers"]
