"""Normalise response specifications into ApiPost response examples."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .fields import FieldSpec, expand_with_parents, fields_from_mappings
from .parameters import to_parameter_list
from .render import build_description_index, render_annotated, render_plain
from .synthesis import synthesize

logger = logging.getLogger("apipost.responses")

CANONICAL_MARKERS = ("example_id", "expect", "raw")
DEFAULT_RESPONSE_DATA: Mapping[str, Any] = {"code": 0, "message": "success", "data": {}}
DEFAULT_RESPONSE_NAME = "Success"


class ResponseSynthesisError(ValueError):
    """Raised when a simplified response cannot be synthesized."""


@dataclass(frozen=True, slots=True)
class ResponseSpec:
    """Simplified response: a status plus a flat field list."""

    fields: Tuple[FieldSpec, ...]
    name: Optional[str] = None
    status: Optional[int | str] = None
    schema: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True, slots=True)
class ResponseOptions:
    fallback_examples: Sequence[Mapping[str, Any]] = ()
    use_default_when_missing: bool = True
    keep_empty: bool = True
    is_check_result: int = 1
    inline_comments: bool = False


@dataclass(slots=True)
class ResponseSet:
    examples: List[Any] = field(default_factory=list)
    is_check_result: int = 1
    state: str = ""

    def as_dict(self) -> Dict[str, Any]:
        return {"example": list(self.examples), "is_check_result": self.is_check_result}


def is_canonical_response(item: object) -> bool:
    return isinstance(item, Mapping) and any(item.get(key) is not None for key in CANONICAL_MARKERS)


def _expect(
    *,
    code: str,
    name: str,
    is_default: bool,
    mock: str,
    schema: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    return {
        "code": code,
        "content_type": "application/json",
        "is_default": 1 if is_default else -1,
        "mock": mock,
        "name": name,
        "schema": dict(schema) if schema else {"type": "object", "properties": {}},
        "verify_type": "schema",
        "sleep": 0,
    }


def default_response() -> Dict[str, Any]:
    data = dict(DEFAULT_RESPONSE_DATA)
    return {
        "example_id": "1",
        "raw": render_plain(data),
        "raw_parameter": [],
        "headers": [],
        "expect": _expect(
            code="200",
            name=DEFAULT_RESPONSE_NAME,
            is_default=True,
            mock=json.dumps(data, ensure_ascii=False),
        ),
    }


def _as_response_spec(item: object, position: int) -> ResponseSpec:
    if isinstance(item, ResponseSpec):
        spec = item
    elif isinstance(item, Mapping):
        raw_fields = item.get("fields")
        if not isinstance(raw_fields, (list, tuple)):
            raw_fields = []
        if all(isinstance(entry, FieldSpec) for entry in raw_fields):
            parsed = tuple(raw_fields)
        else:
            parsed = tuple(
                fields_from_mappings(raw_fields, context=f"responses[{position}].fields")
            )
        spec = ResponseSpec(
            fields=parsed,
            name=item.get("name"),
            status=item.get("status"),
            schema=item.get("schema"),
        )
    else:
        raise ResponseSynthesisError(f"responses[{position}] must be an object")
    if not spec.fields:
        raise ResponseSynthesisError(
            f"responses[{position}].fields is required and must not be empty"
        )
    return spec


def synthesize_response(spec: ResponseSpec, position: int, *, inline_comments: bool) -> Dict[str, Any]:
    """Build one canonical response example from a simplified spec."""

    expanded = expand_with_parents(spec.fields)
    document = synthesize(expanded)
    if inline_comments:
        raw = render_annotated(document, build_description_index(expanded))
    else:
        raw = render_plain(document)
    status = spec.status if spec.status not in (None, "") else 200
    name = spec.name or (DEFAULT_RESPONSE_NAME if position == 0 else f"Response {position + 1}")
    return {
        "example_id": str(position + 1),
        "raw": raw,
        "raw_parameter": to_parameter_list(expanded),
        "headers": [],
        "expect": _expect(
            code=str(status),
            name=name,
            is_default=position == 0,
            mock=json.dumps(document, ensure_ascii=False),
            schema=spec.schema,
        ),
    }


def normalize_responses(
    responses: Optional[Sequence[Any]],
    options: ResponseOptions = ResponseOptions(),
) -> ResponseSet:
    """Reconcile the response input into one canonical response set.

    ``None`` means the caller gave no responses; ``[]`` is an explicit empty
    set. A simplified item without fields aborts the whole call with
    :class:`ResponseSynthesisError`.
    """

    check = options.is_check_result
    fallback = list(options.fallback_examples)

    if responses is not None and len(responses) == 0:
        examples = [] if options.keep_empty else fallback
        return ResponseSet(examples, check, state="explicit_empty")

    if responses is None:
        if fallback:
            return ResponseSet(fallback, check, state="absent_with_fallback")
        if not options.use_default_when_missing:
            return ResponseSet([], check, state="absent_no_default")
        return ResponseSet([default_response()], check, state="absent_default")

    if all(is_canonical_response(item) for item in responses):
        return ResponseSet(list(responses), check, state="provided_canonical")

    specs = [_as_response_spec(item, position) for position, item in enumerate(responses)]
    examples = [
        synthesize_response(spec, position, inline_comments=options.inline_comments)
        for position, spec in enumerate(specs)
    ]
    logger.debug("responses.synthesized", extra={"count": len(examples)})
    return ResponseSet(examples, check, state="provided_simplified")


__all__ = [
    "CANONICAL_MARKERS",
    "ResponseOptions",
    "ResponseSet",
    "ResponseSpec",
    "ResponseSynthesisError",
    "default_response",
    "is_canonical_response",
    "normalize_responses",
    "synthesize_response",
]
