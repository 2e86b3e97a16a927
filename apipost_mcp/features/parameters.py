"""Project expanded field lists into ApiPost parameter descriptors."""
from __future__ import annotations

import itertools
import threading
import time
from typing import Any, Dict, List, Sequence

from .fields import FieldSpec

_COUNTER = itertools.count()
_COUNTER_LOCK = threading.Lock()


def generate_id() -> str:
    """Return a process-unique hex id (millisecond clock plus a counter)."""

    with _COUNTER_LOCK:
        sequence = next(_COUNTER)
    return f"{int(time.time() * 1000):x}{sequence & 0xFFFF:04x}"


def to_parameter(spec: FieldSpec) -> Dict[str, Any]:
    if spec.is_auto_parent:
        flag = 0
        value: Any = ""
    else:
        flag = 1 if spec.required else 0
        value = spec.example if spec.has_example else ""
    return {
        "param_id": generate_id(),
        "description": spec.description,
        "field_type": spec.type.value,
        "is_checked": flag,
        "key": spec.path,
        "not_null": flag,
        "value": value,
        "schema": {"type": spec.type.value},
    }


def to_parameter_list(fields: Sequence[FieldSpec]) -> List[Dict[str, Any]]:
    """One descriptor per field, in the same order as *fields*."""

    return [to_parameter(spec) for spec in fields]


__all__ = ["generate_id", "to_parameter", "to_parameter_list"]
