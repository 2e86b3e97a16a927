"""Filter project items and render them as tree, flat, or grouped text."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from ..utils.config import LIST_DEFAULT_LIMIT, LIST_MAX_LIMIT
from .hierarchy import API, FOLDER, HierarchyNode, HierarchyResolver, ROOT_LABEL, is_root_id

TARGET_TYPES = ("all", FOLDER, API)

_USAGE_HINTS = (
    "Use parent_id to list the contents of one folder",
    'Use target_type="folder" or target_type="api" to narrow the listing',
    "Use show_structure=true for the tree view",
    "Use show_path=true to show full folder paths",
    "Use recursive=true to include nested folders",
    "Use group_by_folder=true to group items by parent folder",
)

_EMPTY_HINTS = (
    "Try a different search keyword",
    "Check that the parent folder id is correct",
    "Try another target_type",
    "Try recursive=true to search nested folders",
)


@dataclass(slots=True)
class ListingOptions:
    search: Optional[str] = None
    parent_id: Optional[str] = None
    target_type: str = "all"
    show_structure: bool = False
    show_path: bool = False
    recursive: bool = False
    depth: Optional[int] = None
    group_by_folder: bool = False
    limit: int = LIST_DEFAULT_LIMIT
    show_all: bool = False

    def effective_limit(self) -> Optional[int]:
        if self.show_all:
            return None
        limit = self.limit if self.limit and self.limit > 0 else LIST_DEFAULT_LIMIT
        return min(limit, LIST_MAX_LIMIT)

    def filter_summary(self) -> List[str]:
        parts: List[str] = []
        if self.search:
            parts.append(f'search: "{self.search}"')
        if self.parent_id is not None:
            parts.append(f"parent: {ROOT_LABEL if is_root_id(self.parent_id) else self.parent_id}")
        if self.target_type and self.target_type != "all":
            parts.append(f"type: {self.target_type}")
        if self.recursive:
            parts.append("recursive")
        if self.depth is not None:
            parts.append(f"depth: {self.depth}")
        return parts


def _matches(node: HierarchyNode, keyword: str) -> bool:
    haystack = (node.name, node.url, node.method, node.id, node.description)
    return any(keyword in value.lower() for value in haystack if value)


def filter_items(
    resolver: HierarchyResolver,
    *,
    parent_id: Optional[str] = None,
    recursive: bool = False,
    depth: Optional[int] = None,
    target_type: str = "all",
    search: Optional[str] = None,
) -> List[HierarchyNode]:
    """Apply the folder, type, and keyword filters in that order."""

    if parent_id is not None and recursive:
        items = resolver.collect_descendants(str(parent_id), depth)
    elif parent_id is not None:
        wanted = str(parent_id)
        items = [node for node in resolver.nodes if node.parent_id == wanted]
    else:
        items = resolver.nodes
    if target_type and target_type != "all":
        items = [node for node in items if node.kind == target_type]
    if search:
        keyword = search.lower()
        items = [node for node in items if _matches(node, keyword)]
    return items


def _path_line(paths: Optional[Dict[str, List[str]]], node: HierarchyNode) -> Optional[str]:
    if paths is None or node.id not in paths:
        return None
    return " / ".join(paths[node.id])


def render_tree(items: Sequence[HierarchyNode], paths: Optional[Dict[str, List[str]]] = None) -> str:
    folders = [node for node in items if node.kind == FOLDER]
    apis = [node for node in items if node.kind != FOLDER]
    lines: List[str] = ["Tree view:", ""]
    if folders:
        lines.append("Folders:")
        for index, folder in enumerate(folders):
            last = index == len(folders) - 1 and not apis
            lines.append(f"{'└── ' if last else '├── '}{folder.name}")
            lines.append(f"    ID: {folder.id}")
            path = _path_line(paths, folder)
            if path is not None:
                lines.append(f"    Path: {path}")
            if folder.description:
                lines.append(f"    Description: {folder.description}")
            lines.append("")
    if apis:
        lines.append("APIs:")
        for index, api in enumerate(apis):
            label = f"{api.name} [{api.method}]" if api.method else api.name
            lines.append(f"{'└── ' if index == len(apis) - 1 else '├── '}{label}")
            lines.append(f"    URL: {api.url or 'not set'}")
            lines.append(f"    ID: {api.id}")
            path = _path_line(paths, api)
            if path is not None:
                lines.append(f"    Path: {path}")
            if api.description:
                lines.append(f"    Description: {api.description}")
            lines.append("")
    return "\n".join(lines)


def render_flat(items: Sequence[HierarchyNode], paths: Optional[Dict[str, List[str]]] = None) -> str:
    lines: List[str] = ["Items:", ""]
    for index, node in enumerate(items, start=1):
        parent = ROOT_LABEL if is_root_id(node.parent_id) else node.parent_id
        if node.kind == FOLDER:
            lines.append(f"{index:2d}. [folder] {node.name}")
        else:
            label = f"{node.name} [{node.method}]" if node.method else node.name
            lines.append(f"{index:2d}. [api] {label}")
            lines.append(f"     URL: {node.url or 'not set'}")
        lines.append(f"     ID: {node.id}")
        lines.append(f"     Parent: {parent}")
        path = _path_line(paths, node)
        if path is not None:
            lines.append(f"     Path: {path}")
        if node.description:
            lines.append(f"     Description: {node.description}")
        lines.append("")
    return "\n".join(lines)


def render_grouped(
    items: Sequence[HierarchyNode],
    resolver: HierarchyResolver,
    paths: Optional[Dict[str, List[str]]] = None,
) -> str:
    groups = resolver.group_by_parent(items)
    names = sorted(groups)
    lines: List[str] = ["Grouped by folder:", ""]
    for group_index, name in enumerate(names):
        members = groups[name]
        last_group = group_index == len(names) - 1
        rail = "   " if last_group else "│  "
        lines.append(f"{name} ({len(members)} items)")
        for index, node in enumerate(members):
            branch = "└── " if index == len(members) - 1 else "├── "
            if node.kind == FOLDER:
                lines.append(f"{rail}{branch}[folder] {node.name}")
            else:
                label = f"{node.name} [{node.method}]" if node.method else node.name
                lines.append(f"{rail}{branch}[api] {label}")
            lines.append(f"{rail}    ID: {node.id}")
            if node.kind != FOLDER:
                lines.append(f"{rail}    URL: {node.url or 'not set'}")
            path = _path_line(paths, node)
            if path is not None:
                lines.append(f"{rail}    Path: {path}")
        lines.append("")
    return "\n".join(lines)


def render_listing(
    resolver: HierarchyResolver,
    options: ListingOptions,
    *,
    project_name: Optional[str] = None,
) -> Dict[str, object]:
    """Filter and render a listing; returns the text plus counts."""

    total = len(resolver.nodes)
    items = filter_items(
        resolver,
        parent_id=options.parent_id,
        recursive=options.recursive,
        depth=options.depth,
        target_type=options.target_type,
        search=options.search,
    )
    filtered = len(items)
    limit = options.effective_limit()
    truncated = limit is not None and filtered > limit
    shown = items[:limit] if truncated else items

    folders = sum(1 for node in resolver.nodes if node.kind == FOLDER)
    header = f"Project: {project_name}" if project_name else "Project items"
    lines: List[str] = [
        header,
        f"Total: {total} items ({folders} folders, {total - folders} APIs)",
        "",
    ]
    summary = options.filter_summary()
    if summary:
        lines.append(f"Filters: {' | '.join(summary)}")
        lines.append(f"Matched: {filtered} items")
        lines.append("")
    if truncated:
        lines.append(f"Showing the first {limit} items; narrow the search to see more.")
        lines.append("")

    if not shown:
        lines.append("No matching items.")
        lines.append("")
        lines.append("Hints:")
        lines.extend(f"- {hint}" for hint in _EMPTY_HINTS)
    else:
        paths = resolver.build_path_map() if options.show_path else None
        if options.group_by_folder:
            lines.append(render_grouped(shown, resolver, paths))
        elif options.show_structure:
            lines.append(render_tree(shown, paths))
        else:
            lines.append(render_flat(shown, paths))
        lines.append("Hints:")
        lines.extend(f"- {hint}" for hint in _USAGE_HINTS)

    return {
        "text": "\n".join(lines),
        "total": total,
        "matched": filtered,
        "returned": len(shown),
        "truncated": truncated,
        "items": [
            {
                "target_id": node.id,
                "parent_id": node.parent_id,
                "target_type": node.kind,
                "name": node.name,
                "method": node.method,
                "url": node.url,
            }
            for node in shown
        ],
        "cycles": [list(cycle) for cycle in resolver.cycles],
    }


__all__ = [
    "ListingOptions",
    "TARGET_TYPES",
    "filter_items",
    "render_flat",
    "render_grouped",
    "render_listing",
    "render_tree",
]
