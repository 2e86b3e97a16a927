from apipost_mcp.features.hierarchy import HierarchyNode, HierarchyResolver
from apipost_mcp.features.listing import ListingOptions, filter_items, render_listing
from apipost_mcp.tests.fixtures.fake_apipost import sample_items


def _resolver(items=None):
    return HierarchyResolver(HierarchyNode.from_record(item) for item in items or sample_items())


def test_filter_direct_children():
    ids = [node.id for node in filter_items(_resolver(), parent_id="f-users")]
    assert ids == ["f-admin", "a-list"]


def test_filter_recursive_with_type():
    ids = [node.id for node in filter_items(_resolver(), parent_id="f-users", recursive=True, target_type="api")]
    assert ids == ["a-ban", "a-list"]


def test_filter_search_is_case_insensitive_across_fields():
    resolver = _resolver()
    assert [node.id for node in filter_items(resolver, search="SUSPEND")] == ["a-ban"]
    assert [node.id for node in filter_items(resolver, search="post")] == ["a-ban"]
    assert [node.id for node in filter_items(resolver, search="a-pi")] == ["a-ping"]


def test_effective_limit():
    assert ListingOptions().effective_limit() == 50
    assert ListingOptions(limit=500).effective_limit() == 200
    assert ListingOptions(limit=0).effective_limit() == 50
    assert ListingOptions(limit=5, show_all=True).effective_limit() is None


def test_render_flat_listing_with_counts():
    result = render_listing(_resolver(), ListingOptions(), project_name="Shop")
    assert result["total"] == 5
    assert result["matched"] == 5
    assert not result["truncated"]
    text = result["text"]
    assert text.startswith("Project: Shop")
    assert "Total: 5 items (2 folders, 3 APIs)" in text
    assert "[api] Ban user [POST]" in text
    assert "Parent: Root" in text


def test_render_listing_applies_limit():
    result = render_listing(_resolver(), ListingOptions(limit=2))
    assert result["returned"] == 2
    assert result["truncated"]
    assert "Showing the first 2 items" in result["text"]


def test_render_listing_tree_with_paths():
    result = render_listing(_resolver(), ListingOptions(show_structure=True, show_path=True))
    text = result["text"]
    assert "Tree view:" in text
    assert "Path: Users / Admin / Ban user" in text
    assert text.index("Folders:") < text.index("APIs:")


def test_render_listing_grouped_sorted():
    result = render_listing(_resolver(), ListingOptions(group_by_folder=True))
    text = result["text"]
    assert "Grouped by folder:" in text
    assert text.index("Admin (1 items)") < text.index("Root (2 items)") < text.index("Users (2 items)")


def test_render_listing_empty_result_has_hints():
    result = render_listing(_resolver(), ListingOptions(search="nothing-matches"))
    assert result["returned"] == 0
    assert "No matching items." in result["text"]
    assert 'Filters: search: "nothing-matches"' in result["text"]


def test_render_listing_reports_cycles():
    items = [
        {"target_id": "x", "parent_id": "y", "target_type": "folder", "name": "X"},
        {"target_id": "y", "parent_id": "x", "target_type": "folder", "name": "Y"},
    ]
    result = render_listing(_resolver(items), ListingOptions(parent_id="x", recursive=True))
    assert result["cycles"]
