import json

import pytest

from apipost_mcp.features.fields import FieldSpec
from apipost_mcp.features.responses import (
    ResponseOptions,
    ResponseSpec,
    ResponseSynthesisError,
    default_response,
    is_canonical_response,
    normalize_responses,
)


def _spec(*paths, **kwargs):
    fields = tuple(FieldSpec.declared(path, description=f"{path} desc", example=1, type="integer") for path in paths)
    return ResponseSpec(fields=fields, **kwargs)


def test_absent_uses_default_response():
    result = normalize_responses(None, ResponseOptions())
    assert result.state == "absent_default"
    assert result.examples == [default_response()]
    assert json.loads(result.examples[0]["raw"]) == {"code": 0, "message": "success", "data": {}}


def test_absent_without_default_is_empty():
    result = normalize_responses(None, ResponseOptions(use_default_when_missing=False))
    assert result.state == "absent_no_default"
    assert result.examples == []


def test_absent_prefers_fallback_examples():
    fallback = [{"example_id": "9", "raw": "{}"}]
    result = normalize_responses(None, ResponseOptions(fallback_examples=fallback))
    assert result.state == "absent_with_fallback"
    assert result.examples == fallback


def test_explicit_empty_list_clears():
    fallback = [{"example_id": "9", "raw": "{}"}]
    result = normalize_responses([], ResponseOptions(fallback_examples=fallback))
    assert result.state == "explicit_empty"
    assert result.examples == []


def test_explicit_empty_without_keep_falls_back():
    fallback = [{"example_id": "9", "raw": "{}"}]
    result = normalize_responses([], ResponseOptions(fallback_examples=fallback, keep_empty=False))
    assert result.examples == fallback


def test_canonical_items_pass_through():
    canonical = [{"example_id": "1", "raw": "{}", "expect": {"code": "200"}}]
    result = normalize_responses(canonical, ResponseOptions(is_check_result=0))
    assert result.state == "provided_canonical"
    assert result.examples == canonical
    assert result.as_dict() == {"example": canonical, "is_check_result": 0}


def test_simplified_items_are_synthesized():
    result = normalize_responses(
        [_spec("code"), _spec("error.code", name="Failure", status=400)],
        ResponseOptions(),
    )
    assert result.state == "provided_simplified"
    first, second = result.examples
    assert first["example_id"] == "1"
    assert first["expect"]["code"] == "200"
    assert first["expect"]["name"] == "Success"
    assert first["expect"]["is_default"] == 1
    assert json.loads(first["raw"]) == {"code": 1}
    assert second["expect"]["code"] == "400"
    assert second["expect"]["name"] == "Failure"
    assert second["expect"]["is_default"] == -1
    assert [param["key"] for param in second["raw_parameter"]] == ["error", "error.code"]


def test_mapping_items_with_field_dicts():
    result = normalize_responses(
        [{"name": "OK", "fields": [{"key": "id", "desc": "identifier", "example": 3, "type": "integer"}]}]
    )
    assert json.loads(result.examples[0]["raw"]) == {"id": 3}


def test_simplified_item_without_fields_fails():
    with pytest.raises(ResponseSynthesisError):
        normalize_responses([{"name": "Broken"}])


def test_mixed_items_are_treated_as_simplified():
    with pytest.raises(ResponseSynthesisError):
        normalize_responses([{"example_id": "1", "raw": "{}"}, {"name": "no fields"}])


def test_inline_comments_in_raw():
    result = normalize_responses([_spec("code")], ResponseOptions(inline_comments=True))
    assert "// code desc" in result.examples[0]["raw"]


def test_is_canonical_response():
    assert is_canonical_response({"raw": ""})
    assert not is_canonical_response({"fields": []})
    assert not is_canonical_response("raw")
