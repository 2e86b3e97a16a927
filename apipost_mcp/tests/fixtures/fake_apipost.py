from __future__ import annotations

import copy
from typing import Any, Dict, List, Mapping, Optional, Sequence

from apipost_mcp.apipost.client import RequestError


def sample_items() -> List[Dict[str, Any]]:
    return [
        {"target_id": "f-users", "parent_id": "0", "target_type": "folder", "name": "Users"},
        {"target_id": "f-admin", "parent_id": "f-users", "target_type": "folder", "name": "Admin"},
        {
            "target_id": "a-list",
            "parent_id": "f-users",
            "target_type": "api",
            "name": "List users",
            "method": "GET",
            "url": "/users",
        },
        {
            "target_id": "a-ban",
            "parent_id": "f-admin",
            "target_type": "api",
            "name": "Ban user",
            "method": "POST",
            "url": "/admin/ban",
            "description": "Suspend an account",
        },
        {
            "target_id": "a-ping",
            "parent_id": "0",
            "target_type": "api",
            "name": "Ping",
            "method": "GET",
            "url": "/ping",
        },
    ]


def sample_detail() -> Dict[str, Any]:
    return {
        "target_id": "a-list",
        "parent_id": "f-users",
        "target_type": "api",
        "name": "List users",
        "method": "GET",
        "url": "/users",
        "version": 2,
        "description": "Paged user listing",
        "request": {
            "auth": {"type": "bearer", "bearer": {"key": "abcdefghijklmnopqrstuvwxyz"}},
            "header": {"parameter": [{"key": "X-Trace", "description": "trace id", "field_type": "string"}]},
            "query": {
                "query_add_equal": 1,
                "parameter": [
                    {"key": "page", "description": "page number", "field_type": "integer", "not_null": 1, "value": 1}
                ],
            },
            "body": {"mode": "none", "raw": "", "raw_parameter": []},
            "cookie": {"cookie_encode": 1, "parameter": []},
        },
        "response": {
            "is_check_result": 0,
            "example": [
                {"example_id": "1", "raw": '{"code": 0}', "expect": {"name": "Success", "code": "200"}}
            ],
        },
        "tags": ["users"],
    }


class FakeApiPostClient:
    """In-memory stand-in for :class:`ApiPostClient` that records writes."""

    base_url = "https://fake.apipost.test/"

    def __init__(self) -> None:
        self.teams: List[Dict[str, Any]] = [
            {"team_id": "t1", "name": "Core"},
            {"team_id": "t2", "name": "Labs"},
        ]
        self.projects: Dict[str, List[Dict[str, Any]]] = {
            "t1": [{"project_id": "p1", "name": "Shop"}, {"project_id": "p2", "name": "Billing"}],
            "t2": [{"project_id": "p3", "name": "Sandbox"}],
        }
        self.items = sample_items()
        self.details: Dict[str, Dict[str, Any]] = {"a-list": sample_detail()}
        self.created: List[Dict[str, Any]] = []
        self.updated: List[Dict[str, Any]] = []
        self.deleted: List[List[str]] = []
        self.fail_with: Optional[RequestError] = None
        self.last_error: Optional[RequestError] = None
        self.closed = 0

    def _check(self) -> bool:
        self.last_error = self.fail_with
        return self.fail_with is None

    def list_teams(self) -> Optional[List[Dict[str, Any]]]:
        return copy.deepcopy(self.teams) if self._check() else None

    def list_projects(self, team_id: str) -> Optional[List[Dict[str, Any]]]:
        return copy.deepcopy(self.projects.get(team_id, [])) if self._check() else None

    def list_items(self, project_id: str) -> Optional[List[Dict[str, Any]]]:
        return copy.deepcopy(self.items) if self._check() else None

    def get_detail(self, project_id: str, target_id: str) -> Optional[Dict[str, Any]]:
        if not self._check():
            return None
        detail = self.details.get(target_id)
        return copy.deepcopy(detail) if detail is not None else None

    def create(self, document: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        if not self._check():
            return None
        self.created.append(dict(document))
        return {"target_id": document.get("target_id")}

    def update(self, document: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        if not self._check():
            return None
        self.updated.append(dict(document))
        return {}

    def delete(self, project_id: str, target_ids: Sequence[str]) -> bool:
        if not self._check():
            return False
        self.deleted.append(list(target_ids))
        return True

    def ping(self, *, timeout: float = 2.0) -> Optional[RequestError]:
        return self.fail_with

    def close(self) -> None:
        self.closed += 1
