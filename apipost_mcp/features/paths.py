"""Dotted field paths with ``[]`` array suffixes."""
from __future__ import annotations

from typing import Iterator, List, NamedTuple, Tuple

ARRAY_SUFFIX = "[]"


class PathSegment(NamedTuple):
    name: str
    is_array_element: bool


def parse_path(path: str) -> List[PathSegment]:
    """Split *path* on ``.`` into segments.

    ``items[].id`` yields ``[("items", True), ("id", False)]``. There is no
    escaping, so a literal dot or ``[]`` cannot appear inside a name.
    """

    text = str(path or "").strip()
    if not text:
        raise ValueError("field path must not be empty")
    segments: List[PathSegment] = []
    for raw in text.split("."):
        if raw.endswith(ARRAY_SUFFIX):
            segments.append(PathSegment(raw[: -len(ARRAY_SUFFIX)], True))
        else:
            segments.append(PathSegment(raw, False))
    return segments


def prefix_paths(path: str) -> Iterator[Tuple[str, PathSegment]]:
    """Yield ``(prefix_key, segment)`` for each proper prefix, root first.

    The key joins the clean segment names, so ``data.items[].id`` yields
    ``data`` and then ``data.items``.
    """

    segments = parse_path(path)
    names: List[str] = []
    for segment in segments[:-1]:
        names.append(segment.name)
        yield ".".join(names), segment


def normalize_index_path(path: str) -> str:
    """Rewrite every ``[]`` as ``[0]`` to address the single synthesized element."""

    return str(path).replace(ARRAY_SUFFIX, "[0]")


__all__ = ["ARRAY_SUFFIX", "PathSegment", "normalize_index_path", "parse_path", "prefix_paths"]
