"""Lightweight type hints for ApiPost open API payloads."""
from __future__ import annotations

from typing import Any, Dict, List, NotRequired, TypedDict


class Team(TypedDict, total=False):
    team_id: str
    name: str
    created_at: NotRequired[str]
    creator_name: NotRequired[str]
    description: NotRequired[str]


class Project(TypedDict, total=False):
    project_id: str
    name: str
    created_at: NotRequired[str]
    creator_name: NotRequired[str]
    description: NotRequired[str]
    is_public: NotRequired[int]


class TargetItem(TypedDict, total=False):
    target_id: str
    parent_id: str
    target_type: str
    name: str
    method: NotRequired[str]
    url: NotRequired[str]
    description: NotRequired[str]


class ApiDocument(TargetItem, total=False):
    project_id: str
    version: int
    request: Dict[str, Any]
    response: Dict[str, Any]
    tags: List[Any]
