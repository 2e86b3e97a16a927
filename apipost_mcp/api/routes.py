"""Starlette routes exposing health and document preview endpoints."""
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Tuple

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from ..apipost.client import ApiPostClient
from ..features.documents import (
    build_body_section,
    build_parameter_block,
    parse_field_list,
    parse_response_list,
)
from ..features.fields import FieldListError
from ..features.responses import ResponseOptions, ResponseSynthesisError, normalize_responses
from ..utils.config import INLINE_COMMENTS, SECURITY_MODE, URL_PREFIX
from ..utils.errors import ErrorCode
from ..utils.logging import request_scope
from ..utils.security import allowed_operations
from ._shared import envelope_ok, error_response
from .validators import validate_payload


async def _validated_json_body(
    request: Request, schema: str
) -> Tuple[Dict[str, Any] | None, JSONResponse | None]:
    try:
        data = await request.json()
    except json.JSONDecodeError as exc:
        return None, error_response(ErrorCode.INVALID_REQUEST, f"Invalid JSON payload: {exc.msg}")
    if not isinstance(data, dict):
        return None, error_response(ErrorCode.INVALID_REQUEST, "Payload must be a JSON object.")
    valid, errors = validate_payload(schema, data)
    if not valid:
        return None, error_response(ErrorCode.INVALID_REQUEST, "; ".join(errors))
    return data, None


def make_routes(
    client_factory: Callable[[], ApiPostClient],
    *,
    security_mode: str = SECURITY_MODE,
    inline_comments: bool = INLINE_COMMENTS,
):
    logger = logging.getLogger("apipost.api")

    async def health_route(request: Request):
        with request_scope(
            "health",
            logger=logger,
            extra={"path": "/api/health.json"},
        ):
            upstream: Dict[str, object] = {"reachable": False}
            try:
                client = client_factory()
            except ValueError as exc:
                upstream["error"] = str(exc)
                token_configured = False
            else:
                token_configured = True
                try:
                    upstream["base_url"] = client.base_url
                    failure = client.ping()
                finally:
                    client.close()
                if failure is None:
                    upstream["reachable"] = True
                else:
                    upstream["error"] = failure.reason
            payload = {
                "service": "apipost-mcp",
                "security_mode": security_mode,
                "allowed_operations": sorted(allowed_operations(security_mode)),
                "token_configured": token_configured,
                "url_prefix": URL_PREFIX,
                "apipost": upstream,
            }
            return JSONResponse(envelope_ok(payload))

    async def preview_route(request: Request):
        data, error = await _validated_json_body(request, "preview.request.v1.json")
        if error is not None:
            return error
        comments = bool(data.get("inline_comments", inline_comments))
        with request_scope(
            "preview",
            logger=logger,
            extra={"path": "/api/preview.json"},
        ):
            try:
                body = parse_field_list(data.get("body"), context="body")
                headers = parse_field_list(data.get("headers"), context="headers")
                query = parse_field_list(data.get("query"), context="query")
                responses = parse_response_list(data.get("responses"))
            except FieldListError as exc:
                return error_response(ErrorCode.INVALID_REQUEST, str(exc))
            try:
                response_set = normalize_responses(
                    responses if "responses" in data else None,
                    ResponseOptions(use_default_when_missing=True, inline_comments=comments),
                )
            except ResponseSynthesisError as exc:
                return error_response(ErrorCode.SYNTHESIS_FAILED, str(exc))
            payload = {
                "body": build_body_section(body, inline_comments=comments),
                "headers": build_parameter_block(headers),
                "query": build_parameter_block(query),
                "response": response_set.as_dict(),
                "response_state": response_set.state,
            }
            return JSONResponse(envelope_ok(payload))

    return [
        Route("/api/health.json", health_route, methods=["GET"]),
        Route("/api/preview.json", preview_route, methods=["POST"]),
    ]


__all__ = ["make_routes"]
