"""Field records and parent expansion for flat field lists."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from .paths import prefix_paths


class FieldListError(ValueError):
    """Raised when a caller-supplied field list cannot be used."""


class FieldType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    NULL = "null"

    @classmethod
    def parse(cls, value: object) -> "FieldType":
        text = str(value or "").strip().lower()
        try:
            return cls(text)
        except ValueError:
            return cls.STRING


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """One field of a flat field list.

    ``example`` is :data:`MISSING` when the caller gave none; ``None`` is a
    real example meaning JSON ``null``.
    """

    path: str
    type: FieldType = FieldType.STRING
    required: bool = False
    description: str = ""
    example: Any = MISSING
    is_auto_parent: bool = False

    @property
    def has_example(self) -> bool:
        return self.example is not MISSING

    @classmethod
    def declared(
        cls,
        path: str,
        *,
        description: str,
        type: FieldType | str = FieldType.STRING,
        required: bool = False,
        example: Any = MISSING,
    ) -> "FieldSpec":
        """Build a caller-declared field, enforcing a non-empty description."""

        key = str(path or "").strip()
        if not key:
            raise FieldListError("field key must not be empty")
        text = str(description or "").strip()
        if not text:
            raise FieldListError(f"field '{key}' is missing desc")
        field_type = type if isinstance(type, FieldType) else FieldType.parse(type)
        return cls(
            path=key,
            type=field_type,
            required=bool(required),
            description=text,
            example=example,
        )

    @classmethod
    def auto_parent(cls, path: str, *, is_array: bool) -> "FieldSpec":
        return cls(
            path=path,
            type=FieldType.ARRAY if is_array else FieldType.OBJECT,
            required=False,
            description="",
            is_auto_parent=True,
        )


def field_spec_from_mapping(entry: Mapping[str, Any]) -> Optional[FieldSpec]:
    """Convert one ``{key, type, required, desc, example}`` mapping.

    Returns ``None`` for entries without a key; they are ignored upstream.
    ``description``/``value`` are accepted as aliases of ``desc``/``example``.
    """

    key = entry.get("key")
    if key is None or not str(key).strip():
        return None
    description = entry.get("desc") or entry.get("description") or ""
    if "example" in entry:
        example = entry["example"]
    elif "value" in entry:
        example = entry["value"]
    else:
        example = MISSING
    return FieldSpec.declared(
        str(key),
        description=str(description),
        type=entry.get("type") or FieldType.STRING,
        required=bool(entry.get("required", False)),
        example=example,
    )


def fields_from_mappings(entries: Iterable[Mapping[str, Any]], *, context: str) -> List[FieldSpec]:
    fields: List[FieldSpec] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            raise FieldListError(f"{context}[{index}] must be an object")
        try:
            spec = field_spec_from_mapping(entry)
        except FieldListError as exc:
            raise FieldListError(f"{context}[{index}]: {exc}") from None
        if spec is not None:
            fields.append(spec)
    return fields


def expand_with_parents(fields: Sequence[FieldSpec]) -> Tuple[FieldSpec, ...]:
    """Insert auto-parent fields so every path has its full lineage.

    Ancestors appear once, before their first descendant. A prefix that the
    caller declares explicitly is never shadowed by an auto-parent, and each
    path is emitted at most once.
    """

    declared: Set[str] = {spec.path for spec in fields}
    emitted: Set[str] = set()
    expanded: List[FieldSpec] = []
    for spec in fields:
        for prefix, segment in prefix_paths(spec.path):
            if prefix in emitted or prefix in declared:
                continue
            expanded.append(FieldSpec.auto_parent(prefix, is_array=segment.is_array_element))
            emitted.add(prefix)
        if spec.path in emitted:
            continue
        expanded.append(spec)
        emitted.add(spec.path)
    return tuple(expanded)


__all__ = [
    "FieldListError",
    "FieldSpec",
    "FieldType",
    "MISSING",
    "expand_with_parents",
    "field_spec_from_mapping",
    "fields_from_mappings",
]
