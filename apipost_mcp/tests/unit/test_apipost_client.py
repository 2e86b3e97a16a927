"""Tests for the ApiPost HTTP client using an in-memory transport."""
from __future__ import annotations

import json

import httpx
import pytest

from apipost_mcp.apipost.client import ApiPostClient


def _client(handler) -> ApiPostClient:
    return ApiPostClient(
        "https://apipost.test",
        "secret-token",
        transport=httpx.MockTransport(handler),
    )


def test_missing_token_is_rejected():
    with pytest.raises(ValueError):
        ApiPostClient("https://apipost.test", "")


def test_list_teams_sends_token_and_unwraps_envelope():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["token"] = request.headers.get("Api-Token")
        seen["url"] = str(request.url)
        return httpx.Response(200, json={"code": 0, "data": [{"team_id": "t1", "name": "Core"}]})

    client = _client(handler)
    teams = client.list_teams()

    assert teams == [{"team_id": "t1", "name": "Core"}]
    assert seen["token"] == "secret-token"
    assert seen["url"] == "https://apipost.test/open/team/list"
    assert client.last_error is None


def test_list_items_extracts_nested_list():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["project_id"] == "p1"
        return httpx.Response(
            200, json={"code": 0, "data": {"list": [{"target_id": "a", "target_type": "api"}]}}
        )

    items = _client(handler).list_items("p1")
    assert items == [{"target_id": "a", "target_type": "api"}]


def test_nonzero_envelope_code_records_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"code": 10001, "msg": "token expired"})

    client = _client(handler)
    assert client.list_projects("t1") is None
    error = client.last_error
    assert error is not None
    assert error.status == 200
    assert error.reason == "token expired"
    assert not error.retryable


def test_http_error_status_is_captured():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="maintenance")

    client = _client(handler)
    assert client.get_detail("p1", "a-1") is None
    assert client.last_error.as_dict() == {
        "status": 503,
        "reason": "maintenance",
        "retryable": True,
        "path": "open/apis/details",
    }


def test_transport_failure_has_no_status():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)
    assert client.create({"name": "x"}) is None
    assert client.last_error.status is None
    assert client.last_error.retryable


def test_delete_posts_ids_and_reports_success():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured.update(json.loads(request.content))
        return httpx.Response(200, json={"code": 0, "data": None})

    client = _client(handler)
    assert client.delete("p1", ["a", "b"]) is True
    assert captured == {"project_id": "p1", "target_ids": ["a", "b"]}


def test_empty_data_is_not_an_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"code": 0})

    client = _client(handler)
    assert client.list_teams() == []
    assert client.update({"target_id": "a"}) == {}
    assert client.last_error is None


def test_ping_reports_transport_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    failure = _client(handler).ping()
    assert failure is not None
    assert failure.status is None
