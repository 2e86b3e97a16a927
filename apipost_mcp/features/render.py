"""Plain and comment-annotated text rendering of synthesized documents."""
from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Sequence

from .fields import FieldSpec, expand_with_parents
from .paths import normalize_index_path
from .synthesis import synthesize

INDENT = 4


def build_description_index(fields: Sequence[FieldSpec]) -> Dict[str, str]:
    """Map concrete paths (``items[0].id``) to their non-empty descriptions."""

    index: Dict[str, str] = {}
    for spec in fields:
        if spec.description:
            index[normalize_index_path(spec.path)] = spec.description
    return index


def _scalar(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def _comment(index: Mapping[str, str], path: str) -> str:
    description = index.get(path)
    return f" // {description}" if description else ""


def render_annotated(
    value: Any,
    index: Mapping[str, str],
    *,
    indent: int = INDENT,
    _path: str = "",
    _level: int = 0,
) -> str:
    """Pretty-print *value* with ``// description`` after described entries.

    The output is documentation text; the comments make it invalid JSON.
    """

    pad = " " * (indent * (_level + 1))
    closing = " " * (indent * _level)
    if isinstance(value, list):
        if not value:
            return "[]"
        lines = []
        for position, item in enumerate(value):
            child = f"{_path}[{position}]"
            rendered = render_annotated(item, index, indent=indent, _path=child, _level=_level + 1)
            lines.append((f"{pad}{rendered}", _comment(index, child)))
        return "[\n" + _join(lines) + f"\n{closing}]"
    if isinstance(value, dict):
        if not value:
            return "{}"
        lines = []
        for key, item in value.items():
            child = f"{_path}.{key}" if _path else str(key)
            rendered = render_annotated(item, index, indent=indent, _path=child, _level=_level + 1)
            lines.append((f"{pad}{_scalar(str(key))}: {rendered}", _comment(index, child)))
        return "{\n" + _join(lines) + f"\n{closing}}}"
    return _scalar(value)


def _join(lines: Sequence[tuple[str, str]]) -> str:
    # The separator comma goes before the comment so the comment ends its line.
    rendered = []
    last = len(lines) - 1
    for position, (text, comment) in enumerate(lines):
        separator = "," if position < last else ""
        rendered.append(f"{text}{separator}{comment}")
    return "\n".join(rendered)


def render_plain(value: Any) -> str:
    return json.dumps(value, indent=INDENT, ensure_ascii=False)


def render_document(fields: Sequence[FieldSpec], *, inline_comments: bool) -> str:
    """Expand, synthesize, and render *fields* in one step."""

    expanded = expand_with_parents(fields)
    document = synthesize(expanded)
    if inline_comments and expanded:
        return render_annotated(document, build_description_index(expanded))
    return render_plain(document)


__all__ = [
    "build_description_index",
    "render_annotated",
    "render_document",
    "render_plain",
]
