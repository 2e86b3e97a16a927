"""Application wiring for the ApiPost MCP server."""
from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources

from mcp.server.fastmcp import FastMCP
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from .api.routes import make_routes
from .api.tools import SERVER_VERSION, register_tools
from .apipost.client import ApiPostClient
from .error_handlers import install_error_handlers
from .features.workspace import WorkspaceContext
from .utils import config
from .utils.logging import configure_root

MCP_SERVER = FastMCP("apipost-mcp")
WORKSPACE = WorkspaceContext(
    team_name=config.DEFAULT_TEAM_NAME,
    project_name=config.DEFAULT_PROJECT_NAME,
)
_apipost_host = config.APIPOST_HOST
_CONFIGURED = False

_REQUEST_SCHEMA_MAP = {
    "/api/preview.json": "preview.request.v1.json",
}


@lru_cache(maxsize=None)
def _load_schema(name: str) -> dict[str, object]:
    with resources.files("apipost_mcp.api.schemas").joinpath(name).open("r", encoding="utf-8") as handle:
        return json.load(handle)


def _build_openapi_schema(routes: list[Route]) -> dict[str, object]:
    paths: dict[str, dict[str, object]] = {}
    for route in routes:
        if route.path == "/openapi.json":
            continue
        operations = paths.setdefault(route.path, {})
        for method in sorted(route.methods or set()):
            if method == "HEAD":
                continue
            operation: dict[str, object] = {
                "summary": route.name or getattr(route.endpoint, "__name__", "handler"),
            }
            request_schema_name = _REQUEST_SCHEMA_MAP.get(route.path)
            if method == "POST" and request_schema_name is not None:
                operation["requestBody"] = {
                    "required": True,
                    "content": {
                        "application/json": {"schema": _load_schema(request_schema_name)}
                    },
                }
            operations[method.lower()] = operation
    return {
        "openapi": "3.1.0",
        "info": {"title": "ApiPost MCP API", "version": SERVER_VERSION},
        "paths": paths,
    }


def set_apipost_host(url: str) -> None:
    """Override the ApiPost host used by client factories."""

    global _apipost_host
    _apipost_host = url


def _client_factory() -> ApiPostClient:
    return ApiPostClient(
        _apipost_host,
        config.APIPOST_TOKEN,
        timeout=config.REQUEST_TIMEOUT,
    )


def configure() -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return
    configure_root()
    register_tools(MCP_SERVER, client_factory=_client_factory, workspace=WORKSPACE)
    _CONFIGURED = True


def build_api_app() -> Starlette:
    configure()
    routes = list(make_routes(_client_factory))
    schema = _build_openapi_schema(routes)

    async def openapi(_: Request) -> JSONResponse:
        return JSONResponse(schema)

    routes.append(Route("/openapi.json", openapi, methods=["GET"], name="openapi"))
    app = Starlette(routes=routes)
    install_error_handlers(app)
    return app


def create_app() -> Starlette:
    """Factory compatible with ``uvicorn --factory``."""

    api_app = build_api_app()
    sse_app = MCP_SERVER.sse_app()
    api_app.router.routes.extend(sse_app.routes)
    return api_app


__all__ = [
    "MCP_SERVER",
    "WORKSPACE",
    "build_api_app",
    "configure",
    "create_app",
    "set_apipost_host",
]
