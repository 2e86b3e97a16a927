import logging

from apipost_mcp.features.hierarchy import (
    ROOT_LABEL,
    HierarchyNode,
    HierarchyResolver,
    build_path_map,
    collect_descendants,
    group_by_parent,
)


def _folder(node_id, parent_id, name=None):
    return HierarchyNode(id=node_id, parent_id=parent_id, name=name or node_id, kind="folder")


def _api(node_id, parent_id, name=None):
    return HierarchyNode(id=node_id, parent_id=parent_id, name=name or node_id, kind="api")


def _tree():
    return [
        _folder("f1", "0", "Users"),
        _folder("f2", "f1", "Admin"),
        _folder("f3", "f2", "Audit"),
        _api("a1", "f1", "List"),
        _api("a2", "f2", "Ban"),
        _api("a3", "f3", "Trail"),
        _api("a4", "0", "Ping"),
    ]


def test_from_record_normalises_root_parent():
    node = HierarchyNode.from_record({"target_id": 7, "parent_id": "", "target_type": "folder", "name": "X"})
    assert node.id == "7"
    assert node.parent_id == "0"
    assert node.is_container


def test_path_map_walks_to_root():
    paths = build_path_map(_tree())
    assert paths["a3"] == ["Users", "Admin", "Audit", "Trail"]
    assert paths["a4"] == ["Ping"]
    assert paths["f1"] == ["Users"]


def test_dangling_parent_ends_chain():
    paths = build_path_map([_api("orphan", "missing", "Lost")])
    assert paths == {"orphan": ["Lost"]}


def test_cycle_resolves_to_empty_and_is_recorded(caplog):
    nodes = [_folder("x", "y"), _folder("y", "x"), _api("child", "x"), _api("ok", "0")]
    resolver = HierarchyResolver(nodes)
    with caplog.at_level(logging.WARNING, logger="apipost.hierarchy"):
        paths = resolver.build_path_map()
    assert paths["x"] == [] and paths["y"] == []
    assert paths["child"] == []
    assert paths["ok"] == ["ok"]
    assert len(resolver.cycles) == 1
    assert set(resolver.cycles[0]) == {"x", "y"}
    assert any(record.getMessage() == "hierarchy.cycle" for record in caplog.records)


def test_self_parent_is_a_cycle():
    resolver = HierarchyResolver([_folder("s", "s")])
    assert resolver.path_of("s") == []
    assert resolver.cycles == [("s",)]


def test_collect_descendants_pre_order():
    ids = [node.id for node in collect_descendants(_tree(), "f1")]
    assert ids == ["f2", "f3", "a3", "a2", "a1"]


def test_collect_descendants_depth_bound():
    assert [node.id for node in collect_descendants(_tree(), "f1", 1)] == ["f2", "a1"]
    assert [node.id for node in collect_descendants(_tree(), "f1", 2)] == ["f2", "f3", "a2", "a1"]


def test_collect_descendants_terminates_on_cycle():
    nodes = [_folder("x", "y"), _folder("y", "x")]
    resolver = HierarchyResolver(nodes)
    ids = [node.id for node in resolver.collect_descendants("x")]
    assert ids == ["y"]
    assert resolver.cycles


def test_collect_descendants_does_not_enter_apis():
    nodes = [_api("a", "0"), _api("b", "a")]
    assert [node.id for node in collect_descendants(nodes, "0")] == ["a"]


def test_group_by_parent_labels():
    tree = _tree()
    orphan = _api("lost", "nowhere")
    groups = group_by_parent([tree[3], tree[6], orphan], [*tree, orphan])
    assert [node.id for node in groups["Users"]] == ["a1"]
    assert [node.id for node in groups[ROOT_LABEL]] == ["a4"]
    assert [node.id for node in groups["Unknown folder (nowhere)"]] == ["lost"]
