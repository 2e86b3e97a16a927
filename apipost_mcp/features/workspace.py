"""Track the active ApiPost team/project and render workspace summaries."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from ..apipost.client import RequestError

logger = logging.getLogger("apipost.workspace")

ACTIONS = ("current", "list_teams", "list_projects", "switch")


class _WorkspaceClient(Protocol):
    last_error: Optional[RequestError]

    def list_teams(self) -> Optional[List[Any]]: ...

    def list_projects(self, team_id: str) -> Optional[List[Any]]: ...


@dataclass(frozen=True, slots=True)
class Workspace:
    team_id: str
    team_name: str
    project_id: str
    project_name: str

    def as_dict(self) -> Dict[str, str]:
        return {
            "team_id": self.team_id,
            "team_name": self.team_name,
            "project_id": self.project_id,
            "project_name": self.project_name,
        }


class WorkspaceError(RuntimeError):
    """Raised when a team or project cannot be resolved.

    ``upstream`` is set when the failure came from the remote store rather
    than from the caller's arguments.
    """

    def __init__(self, message: str, *, upstream: Optional[RequestError] = None) -> None:
        super().__init__(message)
        self.upstream = upstream


def _teams(client: _WorkspaceClient) -> List[Mapping[str, Any]]:
    teams = client.list_teams()
    if teams is None:
        raise WorkspaceError("failed to list teams", upstream=client.last_error)
    return teams


def _projects(client: _WorkspaceClient, team_id: str) -> List[Mapping[str, Any]]:
    projects = client.list_projects(team_id)
    if projects is None:
        raise WorkspaceError("failed to list projects", upstream=client.last_error)
    return projects


def _pick(entries: Sequence[Mapping[str, Any]], name: Optional[str], kind: str) -> Mapping[str, Any]:
    if name:
        for entry in entries:
            if entry.get("name") == name:
                return entry
        logger.warning("workspace.default_not_found", extra={"kind": kind, "name_hint": name})
    return entries[0]


def _find(entries: Sequence[Mapping[str, Any]], key: str, value: str) -> Optional[Mapping[str, Any]]:
    for entry in entries:
        if str(entry.get(key)) == value:
            return entry
    return None


class WorkspaceContext:
    """Thread-safe holder for the active workspace."""

    def __init__(self, *, team_name: Optional[str] = None, project_name: Optional[str] = None) -> None:
        self._lock = threading.RLock()
        self._current: Optional[Workspace] = None
        self.default_team_name = team_name
        self.default_project_name = project_name

    @property
    def current(self) -> Optional[Workspace]:
        with self._lock:
            return self._current

    def reset(self) -> None:
        with self._lock:
            self._current = None

    def initialize(
        self,
        client: _WorkspaceClient,
        team_name: Optional[str] = None,
        project_name: Optional[str] = None,
    ) -> Workspace:
        """Select the named team/project, falling back to the first of each."""

        team_name = team_name or self.default_team_name
        project_name = project_name or self.default_project_name
        with self._lock:
            teams = _teams(client)
            if not teams:
                raise WorkspaceError("no teams are available for this token")
            team = _pick(teams, team_name, "team")
            team_id = str(team.get("team_id"))
            projects = _projects(client, team_id)
            if not projects:
                raise WorkspaceError(f"team {team.get('name')!r} has no projects")
            project = _pick(projects, project_name, "project")
            self._current = Workspace(
                team_id=team_id,
                team_name=str(team.get("name") or team_id),
                project_id=str(project.get("project_id")),
                project_name=str(project.get("name") or project.get("project_id")),
            )
            logger.info("workspace.initialized", extra=self._current.as_dict())
            return self._current

    def ensure(self, client: _WorkspaceClient) -> Workspace:
        with self._lock:
            if self._current is not None:
                return self._current
            return self.initialize(client)

    def switch(
        self,
        client: _WorkspaceClient,
        *,
        team_id: Optional[str] = None,
        team_name: Optional[str] = None,
        project_id: Optional[str] = None,
        project_name: Optional[str] = None,
    ) -> Tuple[Optional[Workspace], Workspace]:
        """Resolve ids from names, verify access, and return ``(previous, new)``."""

        with self._lock:
            teams = _teams(client)
            if not team_id and team_name:
                match = _find(teams, "name", team_name)
                if match is None:
                    raise WorkspaceError(f"team named {team_name!r} not found")
                team_id = str(match.get("team_id"))
            if not team_id:
                raise WorkspaceError("team_id or team_name is required")
            team = _find(teams, "team_id", str(team_id))
            if team is None:
                raise WorkspaceError(f"team {team_id!r} does not exist or is not accessible")

            projects = _projects(client, str(team_id))
            if not project_id and project_name:
                match = _find(projects, "name", project_name)
                if match is None:
                    raise WorkspaceError(f"project named {project_name!r} not found in team")
                project_id = str(match.get("project_id"))
            if not project_id:
                raise WorkspaceError("project_id or project_name is required")
            project = _find(projects, "project_id", str(project_id))
            if project is None:
                raise WorkspaceError(f"project {project_id!r} does not exist in team or is not accessible")

            previous = self._current
            self._current = Workspace(
                team_id=str(team_id),
                team_name=str(team.get("name") or team_id),
                project_id=str(project_id),
                project_name=str(project.get("name") or project_id),
            )
            logger.info("workspace.switched", extra=self._current.as_dict())
            return previous, self._current


def render_current(
    workspace: Optional[Workspace],
    *,
    security_mode: str,
    catalog: Optional[Sequence[Tuple[Mapping[str, Any], Optional[Sequence[Mapping[str, Any]]]]]] = None,
) -> str:
    """Describe the active workspace; *catalog* lists every team with its projects."""

    lines = ["Current workspace", ""]
    if workspace is None:
        lines.append("Workspace is not initialised.")
        lines.append('Use apipost_workspace with action="switch" to pick a team and project.')
    else:
        lines.append(f"Team: {workspace.team_name} ({workspace.team_id})")
        lines.append(f"Project: {workspace.project_name} ({workspace.project_id})")
        lines.append(f"Security mode: {security_mode}")
    if catalog is not None:
        lines.append("")
        lines.append("Available teams and projects:")
        for team, projects in catalog:
            lines.append(f"Team: {team.get('name')} ({team.get('team_id')})")
            if projects is None:
                lines.append("   failed to list projects")
            elif not projects:
                lines.append("   no projects")
            for project in projects or ():
                lines.append(f"   {project.get('name')} ({project.get('project_id')})")
    return "\n".join(lines)


def render_teams(
    teams: Sequence[Mapping[str, Any]], current: Optional[Workspace], *, show_details: bool = False
) -> str:
    lines = [f"Teams ({len(teams)})", ""]
    if not teams:
        lines.append("No teams available.")
    for index, team in enumerate(teams, start=1):
        marker = " (current)" if current and current.team_id == str(team.get("team_id")) else ""
        lines.append(f"{index:2d}. {team.get('name')}{marker}")
        lines.append(f"     ID: {team.get('team_id')}")
        if show_details:
            lines.append(f"     Created: {team.get('created_at') or 'unknown'}")
            lines.append(f"     Creator: {team.get('creator_name') or 'unknown'}")
            if team.get("description"):
                lines.append(f"     Description: {team.get('description')}")
    if current is not None:
        lines.append("")
        lines.append(f"Current team: {current.team_name} ({current.team_id})")
    return "\n".join(lines)


def render_projects(
    projects: Sequence[Mapping[str, Any]],
    *,
    team_id: str,
    team_name: str,
    current: Optional[Workspace],
    show_details: bool = False,
) -> str:
    lines = [f'Projects in team "{team_name}" ({len(projects)})', ""]
    if not projects:
        lines.append("No projects in this team.")
    for index, project in enumerate(projects, start=1):
        marker = " (current)" if current and current.project_id == str(project.get("project_id")) else ""
        lines.append(f"{index:2d}. {project.get('name')}{marker}")
        lines.append(f"     ID: {project.get('project_id')}")
        if show_details:
            lines.append(f"     Created: {project.get('created_at') or 'unknown'}")
            lines.append(f"     Creator: {project.get('creator_name') or 'unknown'}")
            if project.get("description"):
                lines.append(f"     Description: {project.get('description')}")
            lines.append(f"     Visibility: {'public' if project.get('is_public') else 'private'}")
    if current is not None and current.team_id == team_id:
        lines.append("")
        lines.append(f"Current project: {current.project_name} ({current.project_id})")
    return "\n".join(lines)


def render_switch(previous: Optional[Workspace], new: Workspace) -> str:
    lines = ["Workspace switched.", ""]
    if previous is not None:
        lines.append("Previous:")
        lines.append(f"   Team: {previous.team_name} ({previous.team_id})")
        lines.append(f"   Project: {previous.project_name} ({previous.project_id})")
        lines.append("")
    lines.append("Now:")
    lines.append(f"   Team: {new.team_name} ({new.team_id})")
    lines.append(f"   Project: {new.project_name} ({new.project_id})")
    return "\n".join(lines)


__all__ = [
    "ACTIONS",
    "Workspace",
    "WorkspaceContext",
    "WorkspaceError",
    "render_current",
    "render_projects",
    "render_switch",
    "render_teams",
]
