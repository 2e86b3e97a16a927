"""HTTP client wrapper around the ApiPost open API."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Dict, List, Mapping, Optional, Sequence
from urllib.parse import urljoin

import httpx

from .models import ApiDocument, Project, TargetItem, Team
from ..utils.logging import current_request, increment_counter

logger = logging.getLogger("apipost.client")


TEAM_LIST = "open/team/list"
PROJECT_LIST = "open/project/list"
API_LIST = "open/apis/list"
API_DETAILS = "open/apis/details"
API_CREATE = "open/apis/create"
API_UPDATE = "open/apis/update"
API_DELETE = "open/apis/delete"


@dataclass(slots=True)
class RequestError:
    """Structured error returned when an upstream call fails."""

    status: Optional[int]
    reason: str
    retryable: bool
    path: Optional[str] = None

    def as_dict(self) -> Dict[str, object]:
        return {
            "status": self.status,
            "reason": self.reason,
            "retryable": self.retryable,
            "path": self.path,
        }


def _as_list(value: object) -> List[Any]:
    return list(value) if isinstance(value, list) else []


class ApiPostClient:
    """Small wrapper that handles authentication, envelopes, and error capture.

    Methods return ``None`` when the call fails; the reason is kept in
    :attr:`last_error`.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str],
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not token:
            raise ValueError("APIPOST_TOKEN is not configured")
        self.base_url = base_url if base_url.endswith("/") else f"{base_url}/"
        self.timeout = timeout
        self._session = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={"Api-Token": token, "Content-Type": "application/json"},
        )
        self._last_error: Optional[RequestError] = None

    # ------------------------------------------------------------------
    # low level
    # ------------------------------------------------------------------

    @property
    def last_error(self) -> Optional[RequestError]:
        """Return the most recent upstream error, if any."""

        return self._last_error

    def close(self) -> None:
        self._session.close()

    def _fail(self, path: str, status: Optional[int], reason: str, retryable: bool) -> None:
        self._last_error = RequestError(status=status, reason=reason, retryable=retryable, path=path)
        logger.warning(
            "apipost.request_failed",
            extra={"path": path, "status_code": status, "error": reason},
        )

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        body: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Any]:
        """Perform a call and return the ``data`` member of the envelope."""

        self._last_error = None
        url = urljoin(self.base_url, path)
        increment_counter(f"apipost.{method.lower()}")
        start = perf_counter()
        try:
            response = self._session.request(
                method, url, params=dict(params) if params else None, json=body
            )
        except httpx.HTTPError as exc:
            self._fail(path, None, str(exc), True)
            return None
        context = current_request()
        details = {
            "method": method,
            "path": path,
            "status_code": response.status_code,
            "duration_ms": (perf_counter() - start) * 1000.0,
        }
        logger.info("apipost.request", extra=context.extra(**details) if context else details)
        if response.is_error:
            status = int(response.status_code)
            self._fail(path, status, response.text.strip(), status >= 500)
            return None
        try:
            payload = response.json()
        except json.JSONDecodeError:
            self._fail(path, int(response.status_code), "response was not valid JSON", False)
            return None
        if not isinstance(payload, Mapping):
            self._fail(path, int(response.status_code), "response was not an object", False)
            return None
        code = payload.get("code")
        if code not in (0, "0"):
            message = str(payload.get("msg") or payload.get("message") or f"code {code}")
            self._fail(path, int(response.status_code), message, False)
            return None
        return payload.get("data")

    # ------------------------------------------------------------------
    # workspace
    # ------------------------------------------------------------------

    def list_teams(self) -> Optional[List[Team]]:
        data = self._request("GET", TEAM_LIST)
        if data is None and self._last_error is not None:
            return None
        return _as_list(data)

    def list_projects(self, team_id: str) -> Optional[List[Project]]:
        data = self._request("GET", PROJECT_LIST, params={"team_id": team_id, "action": 0})
        if data is None and self._last_error is not None:
            return None
        return _as_list(data)

    # ------------------------------------------------------------------
    # documents
    # ------------------------------------------------------------------

    def list_items(self, project_id: str) -> Optional[List[TargetItem]]:
        data = self._request("GET", API_LIST, params={"project_id": project_id})
        if data is None and self._last_error is not None:
            return None
        if isinstance(data, Mapping):
            return _as_list(data.get("list"))
        return _as_list(data)

    def get_details(self, project_id: str, target_ids: Sequence[str]) -> Optional[List[ApiDocument]]:
        data = self._request(
            "POST",
            API_DETAILS,
            body={"project_id": project_id, "target_ids": list(target_ids)},
        )
        if data is None and self._last_error is not None:
            return None
        if isinstance(data, Mapping):
            return _as_list(data.get("list"))
        return _as_list(data)

    def get_detail(self, project_id: str, target_id: str) -> Optional[ApiDocument]:
        """Return one document, or ``None`` when missing or on failure."""

        details = self.get_details(project_id, [target_id])
        if not details:
            return None
        return details[0]

    def create(self, document: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        increment_counter("apipost.write")
        data = self._request("POST", API_CREATE, body=document)
        if data is None and self._last_error is not None:
            return None
        return dict(data) if isinstance(data, Mapping) else {}

    def update(self, document: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        increment_counter("apipost.write")
        data = self._request("POST", API_UPDATE, body=document)
        if data is None and self._last_error is not None:
            return None
        return dict(data) if isinstance(data, Mapping) else {}

    def delete(self, project_id: str, target_ids: Sequence[str]) -> bool:
        increment_counter("apipost.delete", len(target_ids))
        self._request(
            "POST",
            API_DELETE,
            body={"project_id": project_id, "target_ids": list(target_ids)},
        )
        return self._last_error is None

    def ping(self, *, timeout: float = 2.0) -> Optional[RequestError]:
        """Check that the host answers at all; return the error if it does not."""

        try:
            self._session.get(self.base_url, timeout=timeout)
        except httpx.HTTPError as exc:
            return RequestError(status=None, reason=str(exc), retryable=True, path="/")
        return None


__all__ = ["ApiPostClient", "RequestError"]
