"""Build example documents from expanded field lists."""
from __future__ import annotations

import math
import re
from typing import Any, Dict, List, Sequence

from .fields import FieldSpec, FieldType
from .paths import parse_path


_TRUE_STRINGS = {"true", "1", "yes"}
_FALSE_STRINGS = {"false", "0", "no"}
_INTEGER_TEXT = re.compile(r"[+-]?[0-9]+", re.ASCII)
_NUMBER_TEXT = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?", re.ASCII)


def default_value(field_type: FieldType) -> Any:
    """Return the placeholder used when a field has no example."""

    if field_type in (FieldType.INTEGER, FieldType.NUMBER):
        return 0
    if field_type is FieldType.BOOLEAN:
        return False
    if field_type is FieldType.ARRAY:
        return []
    if field_type is FieldType.OBJECT:
        return {}
    if field_type is FieldType.NULL:
        return None
    return ""


def coerce_example(spec: FieldSpec) -> Any:
    """Return the example for *spec*, coerced to its type where unambiguous.

    Never raises: an example that does not parse is returned unchanged.
    """

    if not spec.has_example:
        return default_value(spec.type)
    value = spec.example
    if not isinstance(value, str):
        return value
    text = value.strip()
    if spec.type is FieldType.INTEGER:
        return int(text) if _INTEGER_TEXT.fullmatch(text) else value
    if spec.type is FieldType.NUMBER:
        if not _NUMBER_TEXT.fullmatch(text):
            return value
        number = float(text)
        # Overflow to inf has no JSON spelling.
        if not math.isfinite(number):
            return value
        return int(number) if number.is_integer() and "." not in text else number
    if spec.type is FieldType.BOOLEAN:
        lowered = text.lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return value


def _is_container_placeholder(spec: FieldSpec) -> bool:
    return not spec.has_example and spec.type in (FieldType.OBJECT, FieldType.ARRAY)


def _assign(container: Dict[str, Any] | List[Any], key: Any, spec: FieldSpec) -> None:
    current = container[key] if isinstance(container, list) or key in container else None
    # A declared object/array without example must not wipe what descendants built.
    if _is_container_placeholder(spec) and isinstance(current, (dict, list)) and current:
        return
    container[key] = coerce_example(spec)


def _descend(container: Dict[str, Any] | List[Any], key: Any) -> Dict[str, Any]:
    child = container[key] if isinstance(container, list) or key in container else None
    if not isinstance(child, dict):
        child = {}
        container[key] = child
    return child


def synthesize(fields: Sequence[FieldSpec]) -> Dict[str, Any]:
    """Reconstruct the nested example document described by *fields*.

    Arrays always hold exactly one element: every ``[]`` path under the same
    prefix writes into that element, and the last leaf written at a position
    wins.
    """

    root: Dict[str, Any] = {}
    for spec in fields:
        if spec.is_auto_parent:
            continue
        segments = parse_path(spec.path)
        current: Dict[str, Any] = root
        last = len(segments) - 1
        for index, segment in enumerate(segments):
            is_leaf = index == last
            if segment.is_array_element:
                items = current.get(segment.name)
                if not isinstance(items, list):
                    items = []
                    current[segment.name] = items
                if not items:
                    items.append({})
                if is_leaf:
                    _assign(items, 0, spec)
                else:
                    current = _descend(items, 0)
            elif is_leaf:
                _assign(current, segment.name, spec)
            else:
                current = _descend(current, segment.name)
    return root


__all__ = ["coerce_example", "default_value", "synthesize"]
