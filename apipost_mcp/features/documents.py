"""Assemble ApiPost API and folder documents from tool arguments."""
from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from ..api.validators import schema_validator
from .fields import FieldListError, FieldSpec, expand_with_parents, fields_from_mappings
from .parameters import generate_id, to_parameter_list
from .render import render_document
from .responses import ResponseOptions, ResponseSpec, normalize_responses

FIELD_LIST_SCHEMA = "field_list.v1.json"
RESPONSE_LIST_SCHEMA = "response_list.v1.json"

REQUEST_SECTIONS = ("headers", "query", "body", "cookies")

INHERITED_AUTH: Mapping[str, Any] = {
    "type": "inherit",
    "kv": {"key": "", "value": "", "in": "header"},
    "bearer": {"key": ""},
    "basic": {"username": "", "password": ""},
    "digest": {
        "username": "",
        "password": "",
        "realm": "",
        "nonce": "",
        "algorithm": "MD5",
        "qop": "",
        "nc": "",
        "cnonce": "",
        "opaque": "",
        "disableRetryRequest": False,
    },
    "oauth1": {
        "consumerKey": "",
        "consumerSecret": "",
        "signatureMethod": "HMAC-SHA1",
        "addEmptyParamsToSign": True,
        "includeBodyHash": True,
        "addParamsToHeader": False,
        "realm": "",
        "version": "1.0",
        "nonce": "",
        "timestamp": "",
        "verifier": "",
        "callback": "",
        "tokenSecret": "",
        "token": "",
        "disableHeaderEncoding": False,
    },
    "hawk": {
        "authId": "",
        "authKey": "",
        "algorithm": "",
        "user": "",
        "nonce": "",
        "extraData": "",
        "app": "",
        "delegation": "",
        "timestamp": "",
        "includePayloadHash": False,
    },
    "awsv4": {
        "accessKey": "",
        "secretKey": "",
        "region": "",
        "service": "",
        "sessionToken": "",
        "addAuthDataToQuery": False,
    },
    "ntlm": {
        "username": "",
        "password": "",
        "domain": "",
        "workstation": "",
        "disableRetryRequest": False,
    },
    "edgegrid": {
        "accessToken": "",
        "clientToken": "",
        "clientSecret": "",
        "nonce": "",
        "timestamp": "",
        "baseURi": "",
        "headersToSign": "",
    },
    "noauth": {},
    "jwt": {
        "addTokenTo": "header",
        "algorithm": "HS256",
        "secret": "",
        "isSecretBase64Encoded": False,
        "payload": "",
        "headerPrefix": "Bearer",
        "queryParamKey": "token",
        "header": "",
    },
    "asap": {
        "alg": "HS256",
        "iss": "",
        "aud": "",
        "kid": "",
        "privateKey": "",
        "sub": "",
        "claims": "",
        "exp": "",
    },
}


def _reject_constant(token: str) -> Any:
    raise ValueError(f"{token} is not a JSON value")


def _load_json(value: Any, *, context: str) -> Any:
    if not isinstance(value, str):
        return value
    text = value.strip()
    if not text:
        return None
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise FieldListError(f"{context} is not valid JSON: {exc.msg}") from None
    except ValueError as exc:
        raise FieldListError(f"{context} is not valid JSON: {exc}") from None


def _validate(schema: str, payload: Any, *, context: str) -> None:
    errors = sorted(schema_validator(schema).iter_errors(payload), key=lambda err: list(err.path))
    if errors:
        first = errors[0]
        location = "".join(f"[{part}]" for part in first.path)
        raise FieldListError(f"{context}{location}: {first.message}")


def parse_field_list(value: Any, *, context: str) -> List[FieldSpec]:
    """Parse a JSON field list (text or already-decoded) into field specs.

    Blank input is an empty list; entries without a key are ignored.
    """

    payload = _load_json(value, context=context)
    if payload is None:
        return []
    _validate(FIELD_LIST_SCHEMA, payload, context=context)
    return fields_from_mappings(payload, context=context)


def parse_response_list(value: Any) -> List[ResponseSpec]:
    """Parse the simplified response list.

    An item without usable fields is kept with an empty field tuple; the
    response normaliser rejects it with ResponseSynthesisError.
    """

    payload = _load_json(value, context="responses")
    if payload is None:
        return []
    _validate(RESPONSE_LIST_SCHEMA, payload, context="responses")
    specs: List[ResponseSpec] = []
    for position, item in enumerate(payload):
        fields = fields_from_mappings(item.get("fields") or [], context=f"responses[{position}].fields")
        specs.append(
            ResponseSpec(
                fields=tuple(fields),
                name=item.get("name"),
                status=item.get("status"),
                schema=item.get("schema"),
            )
        )
    return specs


def parse_auth(value: Any) -> Dict[str, Any]:
    payload = _load_json(value, context="auth")
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise FieldListError("auth must be a JSON object")
    return dict(payload)


def apply_url_prefix(url: Optional[str], prefix: Optional[str]) -> Optional[str]:
    """Prepend *prefix* (e.g. ``{{host}}``) to *url* with exactly one slash."""

    if not url or not prefix:
        return url
    if url.startswith(prefix):
        return url
    base = prefix[:-1] if prefix.endswith("/") else prefix
    path = url if url.startswith("/") else f"/{url}"
    return f"{base}{path}"


def build_body_section(fields: Sequence[FieldSpec], *, inline_comments: bool) -> Dict[str, Any]:
    """Body block: synthesized ``raw`` example plus its parameter table."""

    has_body = bool(fields)
    expanded = expand_with_parents(fields)
    return {
        "mode": "json" if has_body else "none",
        "parameter": [],
        "raw": render_document(fields, inline_comments=inline_comments) if has_body else "",
        "raw_parameter": to_parameter_list(expanded),
        "raw_schema": {"type": "object"},
        "binary": None,
    }


def build_parameter_block(fields: Sequence[FieldSpec]) -> List[Dict[str, Any]]:
    return to_parameter_list(expand_with_parents(fields))


@dataclass(slots=True)
class ApiChanges:
    """Parsed optional sections of a create/update call.

    ``provided`` records which sections the caller passed at all, so an
    update can tell "clear this section" (``[]``) from "leave it alone".
    """

    description: Optional[str] = None
    headers: List[FieldSpec] = field(default_factory=list)
    query: List[FieldSpec] = field(default_factory=list)
    body: List[FieldSpec] = field(default_factory=list)
    cookies: List[FieldSpec] = field(default_factory=list)
    auth: Dict[str, Any] = field(default_factory=dict)
    responses: Optional[List[ResponseSpec]] = None
    provided: FrozenSet[str] = frozenset()

    @classmethod
    def from_arguments(
        cls,
        *,
        description: Optional[str] = None,
        headers: Any = None,
        query: Any = None,
        body: Any = None,
        cookies: Any = None,
        auth: Any = None,
        responses: Any = None,
    ) -> "ApiChanges":
        changes = cls()
        provided = set()
        if description is not None:
            changes.description = description
            provided.add("description")
        for name, value in (("headers", headers), ("query", query), ("body", body), ("cookies", cookies)):
            if value is not None:
                setattr(changes, name, parse_field_list(value, context=name))
                provided.add(name)
        if auth is not None:
            changes.auth = parse_auth(auth)
            provided.add("auth")
        if responses is not None:
            changes.responses = parse_response_list(responses)
            provided.add("responses")
        changes.provided = frozenset(provided)
        return changes

    def counts(self) -> Dict[str, int]:
        return {
            "headers": len(self.headers),
            "query": len(self.query),
            "body": len(self.body),
            "cookies": len(self.cookies),
            "responses": len(self.responses or []),
        }


def build_api_document(
    *,
    method: str,
    url: str,
    name: str,
    changes: ApiChanges,
    project_id: str,
    parent_id: str = "0",
    url_prefix: str = "",
    inline_comments: bool = False,
) -> Dict[str, Any]:
    """Full create payload for a new API document."""

    response = normalize_responses(
        changes.responses,
        ResponseOptions(
            use_default_when_missing=True,
            keep_empty=True,
            is_check_result=1,
            inline_comments=inline_comments,
        ),
    )
    return {
        "project_id": project_id,
        "target_id": generate_id(),
        "target_type": "api",
        "parent_id": parent_id or "0",
        "name": name,
        "method": method,
        "url": apply_url_prefix(url, url_prefix),
        "protocol": "http/1.1",
        "description": changes.description or f"{name} - {method} {url}",
        "version": 3,
        "mark_id": 1,
        "is_force": -1,
        "request": {
            "auth": changes.auth or {"type": "inherit"},
            "pre_tasks": [],
            "post_tasks": [],
            "header": {"parameter": build_parameter_block(changes.headers)},
            "query": {"query_add_equal": 1, "parameter": build_parameter_block(changes.query)},
            "body": build_body_section(changes.body, inline_comments=inline_comments),
            "cookie": {"cookie_encode": 1, "parameter": build_parameter_block(changes.cookies)},
            "restful": {"parameter": []},
        },
        "response": response.as_dict(),
        "attribute_info": {},
        "tags": [],
    }


def build_folder_document(
    *, name: str, project_id: str, parent_id: str = "0", description: str = ""
) -> Dict[str, Any]:
    if not str(name or "").strip():
        raise ValueError("folder name is required")
    return {
        "project_id": project_id,
        "target_id": generate_id(),
        "parent_id": parent_id or "0",
        "target_type": "folder",
        "name": name,
        "sort": 0,
        "version": 0,
        "server_id": "0",
        "status": 1,
        "is_changed": 1,
        "is_create": 1,
        "description": description or "",
        "request": {
            "header": {"parameter": []},
            "query": {"parameter": []},
            "body": {"parameter": []},
            "cookie": {"parameter": []},
            "auth": copy.deepcopy(dict(INHERITED_AUTH)),
            "pre_tasks": [],
            "post_tasks": [],
        },
        "is_force": -1,
        "is_deleted": -1,
        "is_conflicted": -1,
        "mark_id": "1",
    }


def merge_api_update(
    original: Mapping[str, Any],
    *,
    changes: ApiChanges,
    project_id: str,
    name: Optional[str] = None,
    method: Optional[str] = None,
    url: Optional[str] = None,
    url_prefix: str = "",
    inline_comments: bool = False,
) -> Tuple[Dict[str, Any], List[str]]:
    """Apply an incremental update to *original*.

    Only sections named in ``changes.provided`` are replaced. Returns the
    update payload and the list of changed aspects for the summary.
    """

    request = original.get("request") or {}
    provided = changes.provided
    new_url = apply_url_prefix(url, url_prefix) if url else None

    def _params(section: str, attr: str) -> List[Dict[str, Any]]:
        if attr in provided:
            return build_parameter_block(getattr(changes, attr))
        return list((request.get(section) or {}).get("parameter") or [])

    if "body" in provided:
        body = build_body_section(changes.body, inline_comments=inline_comments)
    else:
        body = request.get("body") or build_body_section([], inline_comments=inline_comments)

    original_response = original.get("response") or {}
    check = original_response.get("is_check_result", 1)
    if "responses" in provided:
        response = normalize_responses(
            changes.responses,
            ResponseOptions(
                use_default_when_missing=False,
                keep_empty=True,
                is_check_result=check,
                inline_comments=inline_comments,
            ),
        ).as_dict()
    else:
        response = {"example": list(original_response.get("example") or []), "is_check_result": check}

    document: Dict[str, Any] = {
        "project_id": project_id,
        "target_id": original.get("target_id"),
        "parent_id": original.get("parent_id") or "0",
        "target_type": original.get("target_type") or "api",
        "name": name or original.get("name"),
        "method": method or original.get("method"),
        "url": new_url or original.get("url"),
        "protocol": original.get("protocol") or "http/1.1",
        "description": changes.description if "description" in provided else (original.get("description") or ""),
        "version": int(original.get("version") or 0) + 1,
        "mark_id": original.get("mark_id") or "1",
        "is_force": original.get("is_force", -1),
        "sort": original.get("sort", 0),
        "status": original.get("status", 1),
        "is_deleted": original.get("is_deleted", -1),
        "is_conflicted": original.get("is_conflicted", -1),
        "request": {
            "auth": (changes.auth or {"type": "inherit"}) if "auth" in provided else (request.get("auth") or {"type": "inherit"}),
            "pre_tasks": list(request.get("pre_tasks") or []),
            "post_tasks": list(request.get("post_tasks") or []),
            "header": {"parameter": _params("header", "headers")},
            "query": {
                "query_add_equal": (request.get("query") or {}).get("query_add_equal", 1),
                "parameter": _params("query", "query"),
            },
            "body": body,
            "cookie": {
                "cookie_encode": (request.get("cookie") or {}).get("cookie_encode", 1),
                "parameter": _params("cookie", "cookies"),
            },
            "restful": request.get("restful") or {"parameter": []},
        },
        "response": response,
        "attribute_info": original.get("attribute_info") or {},
        "tags": list(original.get("tags") or []),
    }

    changed: List[str] = []
    if name and name != original.get("name"):
        changed.append("name")
    if method and method != original.get("method"):
        changed.append("method")
    if new_url and new_url != original.get("url"):
        changed.append("url")
    if provided:
        changed.append("sections")
    return document, changed


__all__ = [
    "ApiChanges",
    "INHERITED_AUTH",
    "REQUEST_SECTIONS",
    "apply_url_prefix",
    "build_api_document",
    "build_body_section",
    "build_folder_document",
    "build_parameter_block",
    "merge_api_update",
    "parse_auth",
    "parse_field_list",
    "parse_response_list",
]
