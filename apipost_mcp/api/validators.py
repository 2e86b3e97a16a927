"""JSON schema validation helpers for tool and route requests."""
from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from typing import Any, Dict, List, Tuple

from jsonschema import Draft202012Validator
from referencing import Registry, Resource

_SCHEMA_PACKAGE = "apipost_mcp.api.schemas"


@lru_cache(maxsize=None)
def _schema_contents(name: str) -> Dict[str, Any]:
    with resources.files(_SCHEMA_PACKAGE).joinpath(name).open("r", encoding="utf-8") as handle:
        return json.load(handle)


@lru_cache(maxsize=1)
def _registry() -> Registry:
    registry = Registry()
    for entry in resources.files(_SCHEMA_PACKAGE).iterdir():
        if entry.name.endswith(".json"):
            contents = _schema_contents(entry.name)
            schema_id = contents.get("$id")
            if schema_id:
                registry = registry.with_resource(schema_id, Resource.from_contents(contents))
    return registry


@lru_cache(maxsize=None)
def schema_validator(name: str) -> Draft202012Validator:
    """Return a cached validator for a packaged schema, with $refs resolved."""

    return Draft202012Validator(_schema_contents(name), registry=_registry())


def validate_payload(schema_name: str, payload: Dict[str, Any]) -> Tuple[bool, List[str]]:
    validator = schema_validator(schema_name)
    errors: List[str] = []
    for error in validator.iter_errors(payload):
        location = "".join(f"[{part!r}]" if isinstance(part, int) else f".{part}" for part in error.path)
        errors.append(f"{location.lstrip('.')}: {error.message}" if location else error.message)
    return not errors, errors


__all__ = ["schema_validator", "validate_payload"]
