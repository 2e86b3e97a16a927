"""MCP tool surface for managing ApiPost API documentation."""
from __future__ import annotations

import logging
import platform
import sys
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from mcp.server.fastmcp import FastMCP

from ..apipost.client import ApiPostClient
from ..features import detail as detail_features
from ..features import listing
from ..features import workspace as workspace_features
from ..features.documents import (
    ApiChanges,
    build_api_document,
    build_folder_document,
    merge_api_update,
)
from ..features.fields import FieldListError
from ..features.hierarchy import HierarchyNode, HierarchyResolver
from ..features.responses import ResponseSynthesisError
from ..features.workspace import Workspace, WorkspaceContext, WorkspaceError
from ..utils.config import (
    APIPOST_HOST,
    APIPOST_TOKEN,
    INLINE_COMMENTS,
    LIST_DEFAULT_LIMIT,
    MAX_DELETE_BATCH,
    SECURITY_MODE,
    URL_PREFIX,
)
from ..utils.errors import ErrorCode
from ..utils.logging import SafetyLimitExceeded, enforce_batch_limit, request_scope
from ..utils.security import DELETE, READ, WRITE, PermissionDenied, ensure_permission, is_allowed
from ._shared import envelope_error, envelope_ok, inject_client, upstream_envelope
from .validators import validate_payload

SERVER_VERSION = "1.0.0"


def _workspace_failure(exc: WorkspaceError) -> Dict[str, object]:
    if exc.upstream is not None:
        return upstream_envelope(exc.upstream, str(exc))
    return envelope_error(ErrorCode.NOT_FOUND, str(exc))


def _nodes(items: List[Any]) -> List[HierarchyNode]:
    return [HierarchyNode.from_record(item) for item in items if isinstance(item, Mapping)]


def register_tools(
    server: FastMCP,
    *,
    client_factory: Callable[[], ApiPostClient],
    workspace: WorkspaceContext,
    security_mode: str = SECURITY_MODE,
    inline_comments: bool = INLINE_COMMENTS,
    url_prefix: str = URL_PREFIX,
    max_delete_batch: int = MAX_DELETE_BATCH,
) -> None:
    tool_client = inject_client(client_factory)
    logger = logging.getLogger("apipost.mcp.tools")

    def _permission(operation: str) -> Optional[Dict[str, object]]:
        try:
            ensure_permission(operation, security_mode)
        except PermissionDenied as exc:
            return envelope_error(ErrorCode.FORBIDDEN, str(exc))
        return None

    def _active(client: ApiPostClient) -> Tuple[Optional[Workspace], Optional[Dict[str, object]]]:
        try:
            return workspace.ensure(client), None
        except WorkspaceError as exc:
            return None, _workspace_failure(exc)

    @server.tool()
    @tool_client
    def apipost_test_connection(client) -> Dict[str, object]:
        """Check the token, reach ApiPost, and report the active workspace."""

        with request_scope(
            "apipost_test_connection",
            logger=logger,
            extra={"tool": "apipost_test_connection"},
        ):
            active, failure = _active(client)
            if failure is not None:
                return failure

        operations = {
            "create_api": is_allowed(WRITE, security_mode),
            "update_api": is_allowed(WRITE, security_mode),
            "delete_api": is_allowed(DELETE, security_mode),
            "read_api": is_allowed(READ, security_mode),
        }
        environment = {
            "token_configured": bool(APIPOST_TOKEN),
            "url_prefix": url_prefix,
            "python_version": platform.python_version(),
            "platform": sys.platform,
        }
        lines = [
            "ApiPost connection OK",
            "",
            f"Server version: {SERVER_VERSION}",
            f"API host: {APIPOST_HOST}",
            f"Security mode: {security_mode}",
            "",
            "Workspace:",
            f"- Team: {active.team_name}",
            f"- Project: {active.project_name} ({active.project_id})",
            "",
            "Environment:",
            f"- Token configured: {'yes' if environment['token_configured'] else 'no'}",
            f"- URL prefix: {url_prefix or '(not set)'}",
            f"- Python: {environment['python_version']} on {environment['platform']}",
            "",
            "Allowed operations:",
        ]
        lines.extend(
            f"- {name}: {'allowed' if allowed else 'denied'}" for name, allowed in operations.items()
        )
        return envelope_ok(
            {
                "text": "\n".join(lines),
                "version": SERVER_VERSION,
                "api_host": APIPOST_HOST,
                "security_mode": security_mode,
                "workspace": active.as_dict(),
                "environment": environment,
                "available_operations": operations,
            }
        )

    @server.tool()
    @tool_client
    def apipost_workspace(
        client,
        action: str,
        team_id: str | None = None,
        project_id: str | None = None,
        team_name: str | None = None,
        project_name: str | None = None,
        show_details: bool = False,
        show_all: bool = False,
    ) -> Dict[str, object]:
        """Show, list, or switch the active team and project.

        ``action`` is one of ``current``, ``list_teams``, ``list_projects``
        or ``switch``. Switching accepts ids or names.
        """

        request_payload = {
            "action": action,
            "team_id": team_id,
            "team_name": team_name,
            "project_id": project_id,
            "project_name": project_name,
        }
        valid, errors = validate_payload("workspace.request.v1.json", request_payload)
        if not valid:
            return envelope_error(ErrorCode.INVALID_REQUEST, "; ".join(errors))
        denied = _permission(READ)
        if denied is not None:
            return denied

        with request_scope(
            "apipost_workspace",
            logger=logger,
            extra={"tool": "apipost_workspace", "action": action},
        ):
            if action == "current":
                active, failure = _active(client)
                if failure is not None:
                    return failure
                catalog = None
                if show_all:
                    teams = client.list_teams()
                    if teams is None:
                        return upstream_envelope(client.last_error)
                    catalog = [(team, client.list_projects(str(team.get("team_id")))) for team in teams]
                text = workspace_features.render_current(
                    active, security_mode=security_mode, catalog=catalog
                )
                return envelope_ok({"text": text, "workspace": active.as_dict()})

            if action == "list_teams":
                teams = client.list_teams()
                if teams is None:
                    return upstream_envelope(client.last_error)
                text = workspace_features.render_teams(
                    teams, workspace.current, show_details=show_details
                )
                return envelope_ok({"text": text, "teams": teams})

            if action == "list_projects":
                target_team = team_id
                if not target_team:
                    active, failure = _active(client)
                    if failure is not None:
                        return failure
                    target_team = active.team_id
                projects = client.list_projects(target_team)
                if projects is None:
                    return upstream_envelope(client.last_error)
                teams = client.list_teams() or []
                team_label = next(
                    (str(team.get("name")) for team in teams if str(team.get("team_id")) == target_team),
                    target_team,
                )
                text = workspace_features.render_projects(
                    projects,
                    team_id=target_team,
                    team_name=team_label,
                    current=workspace.current,
                    show_details=show_details,
                )
                return envelope_ok({"text": text, "team_id": target_team, "projects": projects})

            if not (team_id or team_name) or not (project_id or project_name):
                return envelope_error(
                    ErrorCode.INVALID_REQUEST,
                    "switch needs a team (team_id or team_name) and a project (project_id or project_name)",
                )
            try:
                previous, current = workspace.switch(
                    client,
                    team_id=team_id,
                    team_name=team_name,
                    project_id=project_id,
                    project_name=project_name,
                )
            except WorkspaceError as exc:
                return _workspace_failure(exc)
            return envelope_ok(
                {
                    "text": workspace_features.render_switch(previous, current),
                    "previous": previous.as_dict() if previous else None,
                    "workspace": current.as_dict(),
                }
            )

    @server.tool()
    @tool_client
    def apipost_create_folder(
        client,
        name: str,
        parent_id: str = "0",
        description: str = "",
    ) -> Dict[str, object]:
        """Create a folder under ``parent_id`` (``"0"`` is the project root)."""

        denied = _permission(WRITE)
        if denied is not None:
            return denied
        with request_scope(
            "apipost_create_folder",
            logger=logger,
            extra={"tool": "apipost_create_folder"},
        ):
            active, failure = _active(client)
            if failure is not None:
                return failure
            try:
                document = build_folder_document(
                    name=name,
                    project_id=active.project_id,
                    parent_id=parent_id,
                    description=description,
                )
            except ValueError as exc:
                return envelope_error(ErrorCode.INVALID_REQUEST, str(exc))
            if client.create(document) is None:
                return upstream_envelope(client.last_error)

        lines = [
            "Folder created.",
            f"Name: {name}",
            f"Folder ID: {document['target_id']}",
            f"Parent ID: {document['parent_id']}",
        ]
        if description:
            lines.append(f"Description: {description}")
        return envelope_ok(
            {
                "text": "\n".join(lines),
                "target_id": document["target_id"],
                "parent_id": document["parent_id"],
                "name": name,
            }
        )

    @server.tool()
    @tool_client
    def apipost_smart_create(
        client,
        method: str,
        url: str,
        name: str,
        parent_id: str | None = None,
        description: str | None = None,
        headers: str | None = None,
        query: str | None = None,
        body: str | None = None,
        cookies: str | None = None,
        auth: str | None = None,
        responses: str | None = None,
    ) -> Dict[str, object]:
        """Create an API document from flat field lists.

        ``headers``, ``query``, ``body`` and ``cookies`` are JSON arrays of
        ``{key, type, required, desc, example}``; nested body keys use dotted
        paths with ``[]`` for array elements (``items[].id``). ``responses`` is
        a JSON array of ``{name, status, fields}``.
        """

        request_payload = {"method": method, "url": url, "name": name, "parent_id": parent_id}
        valid, errors = validate_payload("create.request.v1.json", request_payload)
        if not valid:
            return envelope_error(ErrorCode.INVALID_REQUEST, "; ".join(errors))
        denied = _permission(WRITE)
        if denied is not None:
            return denied
        try:
            changes = ApiChanges.from_arguments(
                description=description,
                headers=headers,
                query=query,
                body=body,
                cookies=cookies,
                auth=auth,
                responses=responses,
            )
        except FieldListError as exc:
            return envelope_error(ErrorCode.INVALID_REQUEST, str(exc))

        with request_scope(
            "apipost_smart_create",
            logger=logger,
            extra={"tool": "apipost_smart_create", "method": method},
        ):
            active, failure = _active(client)
            if failure is not None:
                return failure
            try:
                document = build_api_document(
                    method=method,
                    url=url,
                    name=name,
                    changes=changes,
                    project_id=active.project_id,
                    parent_id=parent_id or "0",
                    url_prefix=url_prefix,
                    inline_comments=inline_comments,
                )
            except ResponseSynthesisError as exc:
                return envelope_error(ErrorCode.SYNTHESIS_FAILED, str(exc))
            result = client.create(document)
            if result is None:
                return upstream_envelope(client.last_error)

        target_id = str(result.get("target_id") or document["target_id"])
        counts = changes.counts()
        lines = [
            "API created.",
            f"Name: {name}",
            f"Method: {method}",
            f"URL: {document['url']}",
            f"ID: {target_id}",
            "",
            "Fields:",
            f"- Headers: {counts['headers']}",
            f"- Query: {counts['query']}",
            f"- Body: {counts['body']}",
            f"- Cookies: {counts['cookies']}",
            f"- Responses: {counts['responses']}",
        ]
        return envelope_ok(
            {
                "text": "\n".join(lines),
                "target_id": target_id,
                "url": document["url"],
                "counts": counts,
            }
        )

    @server.tool()
    @tool_client
    def apipost_list(
        client,
        search: str | None = None,
        parent_id: str | None = None,
        target_type: str = "all",
        show_structure: bool = False,
        show_path: bool = False,
        recursive: bool = False,
        depth: int | None = None,
        group_by_folder: bool = False,
        limit: int = LIST_DEFAULT_LIMIT,
        show_all: bool = False,
    ) -> Dict[str, object]:
        """List folders and APIs in the current project."""

        request_payload = {
            "search": search,
            "parent_id": parent_id,
            "target_type": target_type,
            "depth": depth,
            "limit": limit,
        }
        valid, errors = validate_payload("list.request.v1.json", request_payload)
        if not valid:
            return envelope_error(ErrorCode.INVALID_REQUEST, "; ".join(errors))
        denied = _permission(READ)
        if denied is not None:
            return denied

        with request_scope(
            "apipost_list",
            logger=logger,
            extra={"tool": "apipost_list"},
        ):
            active, failure = _active(client)
            if failure is not None:
                return failure
            items = client.list_items(active.project_id)
            if items is None:
                return upstream_envelope(client.last_error)
            resolver = HierarchyResolver(_nodes(items))
            options = listing.ListingOptions(
                search=search,
                parent_id=parent_id,
                target_type=target_type,
                show_structure=show_structure,
                show_path=show_path,
                recursive=recursive,
                depth=depth,
                group_by_folder=group_by_folder,
                limit=limit,
                show_all=show_all,
            )
            payload = listing.render_listing(resolver, options, project_name=active.project_name)
        return envelope_ok(payload)

    @server.tool()
    @tool_client
    def apipost_update(
        client,
        target_id: str,
        name: str | None = None,
        method: str | None = None,
        url: str | None = None,
        description: str | None = None,
        headers: str | None = None,
        query: str | None = None,
        body: str | None = None,
        cookies: str | None = None,
        auth: str | None = None,
        responses: str | None = None,
    ) -> Dict[str, object]:
        """Incrementally update an API document.

        Omitted sections keep their stored values; an empty list (``"[]"``)
        clears a section.
        """

        if not str(target_id or "").strip():
            return envelope_error(ErrorCode.INVALID_REQUEST, "target_id is required")
        denied = _permission(WRITE)
        if denied is not None:
            return denied
        try:
            changes = ApiChanges.from_arguments(
                description=description,
                headers=headers,
                query=query,
                body=body,
                cookies=cookies,
                auth=auth,
                responses=responses,
            )
        except FieldListError as exc:
            return envelope_error(ErrorCode.INVALID_REQUEST, str(exc))

        with request_scope(
            "apipost_update",
            logger=logger,
            extra={"tool": "apipost_update", "target_id": target_id},
        ):
            active, failure = _active(client)
            if failure is not None:
                return failure
            original = client.get_detail(active.project_id, target_id)
            if original is None:
                if client.last_error is not None:
                    return upstream_envelope(client.last_error)
                return envelope_error(ErrorCode.NOT_FOUND, f"API {target_id} was not found")
            try:
                document, changed = merge_api_update(
                    original,
                    changes=changes,
                    project_id=active.project_id,
                    name=name,
                    method=method,
                    url=url,
                    url_prefix=url_prefix,
                    inline_comments=inline_comments,
                )
            except ResponseSynthesisError as exc:
                return envelope_error(ErrorCode.SYNTHESIS_FAILED, str(exc))
            if client.update(document) is None:
                return upstream_envelope(client.last_error)

        lines = ["API updated.", f"ID: {target_id}"]
        if name:
            lines.append(f"Name: {name}")
        if method:
            lines.append(f"Method: {method}")
        if url:
            lines.append(f"URL: {document['url']}")
        lines.append(f"Version: v{document['version']}")
        lines.append(f"Changed: {', '.join(changed) if changed else 'version only'}")
        return envelope_ok(
            {
                "text": "\n".join(lines),
                "target_id": target_id,
                "version": document["version"],
                "changed": changed,
                "sections": sorted(changes.provided),
            }
        )

    @server.tool()
    @tool_client
    def apipost_detail(client, target_id: str) -> Dict[str, object]:
        """Show one API document with its parameters and response examples."""

        if not str(target_id or "").strip():
            return envelope_error(ErrorCode.INVALID_REQUEST, "target_id is required")
        denied = _permission(READ)
        if denied is not None:
            return denied
        with request_scope(
            "apipost_detail",
            logger=logger,
            extra={"tool": "apipost_detail", "target_id": target_id},
        ):
            active, failure = _active(client)
            if failure is not None:
                return failure
            document = client.get_detail(active.project_id, target_id)
            if document is None:
                if client.last_error is not None:
                    return upstream_envelope(client.last_error)
                return envelope_error(
                    ErrorCode.NOT_FOUND,
                    f"API {target_id} was not found; it may not exist, be inaccessible, or be deleted",
                )
        return envelope_ok(
            {
                "text": detail_features.render_detail(document),
                "target_id": target_id,
                "name": document.get("name"),
                "method": document.get("method"),
                "url": document.get("url"),
                "version": document.get("version"),
            }
        )

    @server.tool()
    @tool_client
    def apipost_delete(client, api_ids: list[str]) -> Dict[str, object]:
        """Delete API documents by id; requires the ``full`` security mode."""

        valid, errors = validate_payload("delete.request.v1.json", {"api_ids": api_ids})
        if not valid:
            return envelope_error(ErrorCode.INVALID_REQUEST, "; ".join(errors))
        denied = _permission(DELETE)
        if denied is not None:
            return denied

        with request_scope(
            "apipost_delete",
            logger=logger,
            extra={"tool": "apipost_delete"},
            max_items=max_delete_batch,
        ):
            try:
                enforce_batch_limit(len(api_ids), counter="delete.ids")
            except SafetyLimitExceeded as exc:
                return envelope_error(ErrorCode.RESULT_TOO_LARGE, str(exc))
            active, failure = _active(client)
            if failure is not None:
                return failure
            if not client.delete(active.project_id, api_ids):
                return upstream_envelope(client.last_error)

        lines = ["Delete complete.", f"Deleted: {len(api_ids)} APIs", "IDs:"]
        lines.extend(f"{index}. {api_id}" for index, api_id in enumerate(api_ids, start=1))
        return envelope_ok({"text": "\n".join(lines), "deleted": list(api_ids)})


__all__ = ["SERVER_VERSION", "register_tools"]
