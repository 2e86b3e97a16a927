"""Human-readable rendering of a single API document."""
from __future__ import annotations

from typing import Any, List, Mapping, Sequence

TOKEN_PREVIEW = 20
RAW_PREVIEW = 200


def _truncate(text: str, size: int) -> str:
    return text if len(text) <= size else f"{text[:size]}..."


def _parameter_lines(title: str, params: Sequence[Mapping[str, Any]]) -> List[str]:
    lines = [f"{title} ({len(params)})"]
    if not params:
        lines.append("   (none)")
    for index, param in enumerate(params, start=1):
        lines.append(f"   {index}. {param.get('key')}: {param.get('description') or 'no description'}")
        required = "yes" if param.get("not_null") else "no"
        lines.append(f"      type: {param.get('field_type') or 'string'}, required: {required}")
        if param.get("value"):
            lines.append(f"      example: {param.get('value')}")
    lines.append("")
    return lines


def _section(request: Mapping[str, Any], name: str, key: str = "parameter") -> List[Mapping[str, Any]]:
    block = request.get(name) or {}
    return list(block.get(key) or [])


def render_detail(api: Mapping[str, Any]) -> str:
    """Summarise *api*; bearer tokens and raw examples are truncated."""

    request = api.get("request") or {}
    lines: List[str] = [
        "API detail",
        "",
        "Basic information",
        f"   Name: {api.get('name')}",
        f"   Method: {api.get('method')}",
        f"   URL: {api.get('url')}",
        f"   ID: {api.get('target_id')}",
        f"   Version: v{api.get('version') or 1}",
    ]
    if api.get("description"):
        lines.append(f"   Description: {api.get('description')}")
    lines.append("")

    lines += _parameter_lines("Headers", _section(request, "header"))
    lines += _parameter_lines("Query", _section(request, "query"))
    lines += _parameter_lines("Body", _section(request, "body", "raw_parameter"))
    lines += _parameter_lines("Cookies", _section(request, "cookie"))

    auth = request.get("auth") or {}
    lines.append("Auth")
    auth_type = auth.get("type")
    if auth_type and auth_type != "inherit":
        lines.append(f"   type: {auth_type}")
        token = (auth.get("bearer") or {}).get("key")
        if token:
            lines.append(f"   token: {_truncate(str(token), TOKEN_PREVIEW)}")
    else:
        lines.append("   (inherited or none)")
    lines.append("")

    examples = (api.get("response") or {}).get("example") or []
    lines.append(f"Response examples ({len(examples)})")
    if not examples:
        lines.append("   (none)")
    for index, example in enumerate(examples, start=1):
        expect = example.get("expect") or {}
        lines.append(f"   {index}. {expect.get('name') or f'Response {index}'}")
        lines.append(f"      status: {expect.get('code') or 200}")
        raw = example.get("raw")
        if raw:
            lines.append(f"      data: {_truncate(str(raw), RAW_PREVIEW)}")
    return "\n".join(lines)


__all__ = ["RAW_PREVIEW", "TOKEN_PREVIEW", "render_detail"]
