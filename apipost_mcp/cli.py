"""Reusable CLI helpers for the ApiPost MCP entry points."""
from __future__ import annotations

import argparse
import logging
import os
from typing import Callable, Sequence

import uvicorn
from starlette.applications import Starlette

AppFactory = Callable[[], Starlette]
RunStdIO = Callable[[], None]
SetHost = Callable[[str], None]


def build_parser(default_host: str) -> argparse.ArgumentParser:
    """Create the argument parser shared by the server entry points."""
    parser = argparse.ArgumentParser(description="ApiPost MCP server (stdio or SSE)")
    parser.add_argument(
        "--apipost-host",
        type=str,
        default=default_host,
        help=f"ApiPost open API host, default: {default_host}",
    )
    parser.add_argument(
        "--transport",
        type=str,
        default="stdio",
        choices=["stdio", "sse"],
        help="MCP transport; stdio for desktop clients, sse for HTTP clients.",
    )
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Bind host for the SSE server, default: 127.0.0.1",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8099,
        help="Bind port for the SSE server, default: 8099",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def run(
    args: argparse.Namespace,
    *,
    logger: logging.Logger,
    default_host: str,
    set_host: SetHost,
    app_factory: AppFactory,
    run_stdio: RunStdIO,
) -> None:
    """Execute the CLI behaviour shared by the entry points."""
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)

    host = os.getenv("APIPOST_HOST") or args.apipost_host or default_host
    set_host(host)
    logger.info("[ApiPost] Using open API host %s", host)

    if args.transport == "sse":
        app = app_factory()
        logger.info("[MCP] SSE endpoint on http://%s:%s/sse", args.host, args.port)
        uvicorn.run(app, host=args.host, port=int(args.port))
    else:
        logger.info("[MCP] Running in stdio mode.")
        run_stdio()


def main(argv: Sequence[str] | None = None) -> None:
    """Console entry point: parse flags and start the selected transport."""

    from .app import MCP_SERVER, configure, create_app, set_apipost_host
    from .utils.config import DEFAULT_HOST

    def _run_stdio() -> None:
        configure()
        MCP_SERVER.run(transport="stdio")

    args = build_parser(DEFAULT_HOST).parse_args(argv)
    run(
        args,
        logger=logging.getLogger("apipost.entry"),
        default_host=DEFAULT_HOST,
        set_host=set_apipost_host,
        app_factory=create_app,
        run_stdio=_run_stdio,
    )


__all__ = ["build_parser", "main", "run"]
