"""HTTP contract for the health and preview routes."""
from __future__ import annotations

import json

import pytest
from starlette.applications import Starlette
from starlette.testclient import TestClient

from apipost_mcp.api.routes import make_routes
from apipost_mcp.apipost.client import RequestError
from apipost_mcp.error_handlers import install_error_handlers
from apipost_mcp.tests.fixtures.fake_apipost import FakeApiPostClient


def _client(factory, *, security_mode: str = "limited") -> TestClient:
    app = Starlette(routes=make_routes(factory, security_mode=security_mode))
    install_error_handlers(app)
    return TestClient(app)


@pytest.fixture()
def http() -> TestClient:
    return _client(FakeApiPostClient)


def test_health_reports_configuration(http):
    response = http.get("/api/health.json")
    assert response.status_code == 200
    payload = response.json()
    assert payload["ok"] is True
    data = payload["data"]
    assert data["service"] == "apipost-mcp"
    assert data["security_mode"] == "limited"
    assert data["allowed_operations"] == ["read", "write"]
    assert data["token_configured"] is True
    assert data["apipost"]["reachable"] is True


def test_health_without_token():
    def factory():
        raise ValueError("APIPOST_TOKEN is not configured")

    data = _client(factory).get("/api/health.json").json()["data"]
    assert data["token_configured"] is False
    assert data["apipost"]["reachable"] is False
    assert "APIPOST_TOKEN" in data["apipost"]["error"]


def test_health_with_unreachable_host():
    def factory():
        client = FakeApiPostClient()
        client.fail_with = RequestError(status=None, reason="connection refused", retryable=True)
        return client

    data = _client(factory).get("/api/health.json").json()["data"]
    assert data["apipost"] == {
        "reachable": False,
        "base_url": FakeApiPostClient.base_url,
        "error": "connection refused",
    }


def test_preview_builds_sections(http):
    response = http.post(
        "/api/preview.json",
        json={
            "body": [{"key": "id", "type": "integer", "desc": "identifier", "example": "7"}],
            "headers": [{"key": "X-Trace", "type": "string", "desc": "trace"}],
            "responses": [
                {"name": "OK", "status": 201, "fields": [{"key": "ok", "type": "boolean", "desc": "result flag", "example": "true"}]}
            ],
        },
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["body"]["mode"] == "json"
    assert json.loads(data["body"]["raw"]) == {"id": 7}
    assert data["headers"][0]["key"] == "X-Trace"
    assert data["query"] == []
    assert data["response_state"] == "provided_simplified"
    example = data["response"]["example"][0]
    assert example["expect"]["code"] == "201"
    assert json.loads(example["raw"]) == {"ok": True}


def test_preview_defaults_response_when_missing(http):
    data = http.post("/api/preview.json", json={}).json()["data"]
    assert data["response_state"] == "absent_default"
    assert len(data["response"]["example"]) == 1
    assert data["body"]["mode"] == "none"


def test_preview_keeps_explicit_empty_responses(http):
    data = http.post("/api/preview.json", json={"responses": []}).json()["data"]
    assert data["response_state"] == "explicit_empty"
    assert data["response"]["example"] == []


def test_preview_rejects_invalid_json(http):
    response = http.post(
        "/api/preview.json",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "INVALID_REQUEST"


def test_preview_rejects_schema_violations(http):
    response = http.post("/api/preview.json", json={"body": [{"key": "x", "required": "yes"}]})
    assert response.status_code == 400
    response = http.post("/api/preview.json", json={"unexpected": True})
    assert response.status_code == 400


def test_preview_response_without_fields_fails_synthesis(http):
    response = http.post("/api/preview.json", json={"responses": [{"name": "OK"}]})
    assert response.status_code == 422
    assert response.json()["errors"][0]["code"] == "SYNTHESIS_FAILED"


def test_preview_rejects_non_object_response(http):
    response = http.post("/api/preview.json", json={"responses": ["OK"]})
    assert response.status_code == 400


def test_preview_response_with_only_keyless_fields_fails_synthesis(http):
    response = http.post(
        "/api/preview.json",
        json={"responses": [{"name": "OK", "fields": [{"desc": "no key"}]}]},
    )
    assert response.status_code == 422
    assert response.json()["errors"][0]["code"] == "SYNTHESIS_FAILED"
