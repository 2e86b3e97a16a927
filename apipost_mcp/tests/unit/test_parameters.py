from apipost_mcp.features.fields import FieldSpec, expand_with_parents
from apipost_mcp.features.parameters import generate_id, to_parameter_list


def test_generate_id_is_unique():
    ids = {generate_id() for _ in range(500)}
    assert len(ids) == 500


def test_parameter_projection_follows_expansion_order():
    fields = expand_with_parents(
        [
            FieldSpec.declared("page.size", description="page size", type="integer", required=True, example=20),
            FieldSpec.declared("page.token", description="cursor"),
        ]
    )
    params = to_parameter_list(fields)
    assert [param["key"] for param in params] == ["page", "page.size", "page.token"]

    parent, size, token = params
    assert parent["field_type"] == "object"
    assert parent["is_checked"] == 0 and parent["not_null"] == 0
    assert parent["value"] == "" and parent["description"] == ""

    assert size["is_checked"] == 1 and size["not_null"] == 1
    assert size["value"] == 20
    assert size["schema"] == {"type": "integer"}

    assert token["value"] == ""
    assert token["is_checked"] == 0
    assert len({param["param_id"] for param in params}) == 3
