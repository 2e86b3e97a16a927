"""Resolve folder hierarchies over parent-linked project items.

The parent graph comes from the remote store and is not guaranteed to be
acyclic or connected, so every traversal here tracks the nodes it has visited.
A :class:`HierarchyResolver` owns its path cache; build a new one for every
node collection.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

logger = logging.getLogger("apipost.hierarchy")

ROOT_ID = "0"
ROOT_LABEL = "Root"
FOLDER = "folder"
API = "api"


def is_root_id(parent_id: object) -> bool:
    return parent_id is None or str(parent_id).strip() in {"", ROOT_ID}


def unknown_parent_label(parent_id: object) -> str:
    return f"Unknown folder ({parent_id})"


@dataclass(frozen=True, slots=True)
class HierarchyNode:
    id: str
    parent_id: str
    name: str
    kind: str = API
    method: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None

    @property
    def is_container(self) -> bool:
        return self.kind == FOLDER

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "HierarchyNode":
        """Build a node from an ApiPost list item (``target_id``/``parent_id``/...)."""

        parent = record.get("parent_id")
        return cls(
            id=str(record.get("target_id", "")),
            parent_id=ROOT_ID if is_root_id(parent) else str(parent),
            name=str(record.get("name") or ""),
            kind=str(record.get("target_type") or API),
            method=record.get("method") or None,
            url=record.get("url") or None,
            description=record.get("description") or None,
        )


class HierarchyResolver:
    """Per-collection resolver holding the path cache and cycle diagnostics."""

    def __init__(self, nodes: Iterable[HierarchyNode]) -> None:
        self._nodes: Dict[str, HierarchyNode] = {}
        self._children: Dict[str, List[HierarchyNode]] = {}
        for node in nodes:
            self._nodes[node.id] = node
            self._children.setdefault(node.parent_id, []).append(node)
        self._paths: Dict[str, List[str]] = {}
        self._broken: Set[str] = set()
        self.cycles: List[Tuple[str, ...]] = []

    @property
    def nodes(self) -> List[HierarchyNode]:
        return list(self._nodes.values())

    def get(self, node_id: str) -> Optional[HierarchyNode]:
        return self._nodes.get(node_id)

    def _record_cycle(self, members: Sequence[str]) -> None:
        cycle = tuple(members)
        if cycle not in self.cycles:
            self.cycles.append(cycle)
        logger.warning("hierarchy.cycle", extra={"cycle": list(cycle)})

    def path_of(self, node_id: str) -> List[str]:
        """Return the root-to-node names for *node_id*; ``[]`` on cycles or unknown ids."""

        if node_id in self._paths:
            return list(self._paths[node_id])
        chain: List[HierarchyNode] = []
        on_stack: Dict[str, int] = {}
        base: List[str] = []
        broken = False
        current = node_id
        while True:
            if current in self._paths:
                base = self._paths[current]
                broken = current in self._broken
                break
            if current in on_stack:
                self._record_cycle([node.id for node in chain[on_stack[current]:]])
                broken = True
                break
            node = self._nodes.get(current)
            if node is None:
                break
            on_stack[current] = len(chain)
            chain.append(node)
            if is_root_id(node.parent_id):
                break
            current = node.parent_id

        path = list(base)
        for node in reversed(chain):
            if broken:
                self._broken.add(node.id)
                self._paths[node.id] = []
            else:
                path = [*path, node.name]
                self._paths[node.id] = path
        return list(self._paths.get(node_id, []))

    def build_path_map(self) -> Dict[str, List[str]]:
        return {node_id: self.path_of(node_id) for node_id in self._nodes}

    def collect_descendants(
        self, root_id: str, max_depth: Optional[int] = None
    ) -> List[HierarchyNode]:
        """Pre-order descendants of *root_id*, descending into folders only.

        Direct children are depth 1; nothing deeper than *max_depth* is
        returned. Each node is visited at most once.
        """

        collected: List[HierarchyNode] = []
        visited: Set[str] = {str(root_id)}
        self._collect(str(root_id), max_depth, 0, visited, collected)
        return collected

    def _collect(
        self,
        parent_id: str,
        max_depth: Optional[int],
        depth: int,
        visited: Set[str],
        out: List[HierarchyNode],
    ) -> None:
        if max_depth is not None and depth >= max_depth:
            return
        for child in self._children.get(parent_id, ()):
            if child.id in visited:
                self._record_cycle([parent_id, child.id])
                continue
            visited.add(child.id)
            out.append(child)
            if child.is_container:
                self._collect(child.id, max_depth, depth + 1, visited, out)

    def parent_label(self, node: HierarchyNode) -> str:
        if is_root_id(node.parent_id):
            return ROOT_LABEL
        parent = self._nodes.get(node.parent_id)
        if parent is None or not parent.is_container:
            return unknown_parent_label(node.parent_id)
        return parent.name

    def group_by_parent(self, nodes: Iterable[HierarchyNode]) -> Dict[str, List[HierarchyNode]]:
        groups: Dict[str, List[HierarchyNode]] = {}
        for node in nodes:
            groups.setdefault(self.parent_label(node), []).append(node)
        return groups


def build_path_map(nodes: Iterable[HierarchyNode]) -> Dict[str, List[str]]:
    return HierarchyResolver(nodes).build_path_map()


def collect_descendants(
    nodes: Iterable[HierarchyNode], root_id: str, max_depth: Optional[int] = None
) -> List[HierarchyNode]:
    return HierarchyResolver(nodes).collect_descendants(root_id, max_depth)


def group_by_parent(
    nodes: Iterable[HierarchyNode], all_nodes: Iterable[HierarchyNode]
) -> Dict[str, List[HierarchyNode]]:
    return HierarchyResolver(all_nodes).group_by_parent(nodes)


__all__ = [
    "API",
    "FOLDER",
    "HierarchyNode",
    "HierarchyResolver",
    "ROOT_ID",
    "ROOT_LABEL",
    "build_path_map",
    "collect_descendants",
    "group_by_parent",
    "is_root_id",
    "unknown_parent_label",
]
