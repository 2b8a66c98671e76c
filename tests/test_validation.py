"""Structural validation of trees: arity, dangling, shared children, cycles, names."""

from __future__ import annotations

from visual_editor.tree.models import BindingBoxTree, TreeNode
from visual_editor.tree.validation import parent_table, roots, validate


def _box(*children: int) -> TreeNode:
    return TreeNode.make_box(children=list(children))


def test_valid_tree_has_no_issues(two_child_tree):
    result = validate(two_child_tree)
    assert result.ok
    assert result.first is None
    assert roots(two_child_tree) == [0]
    assert parent_table(two_child_tree) == (None, 0, 0)


def test_gate_arity_is_reported_not_truncated():
    tree = BindingBoxTree(nodes=[TreeNode.make_gate("NOT", 1, 2), _box(), _box()])
    result = validate(tree)
    assert [i.kind for i in result.of_kind("arity")] == ["arity"]
    assert result.first.node_index == 0
    assert tree.nodes[0].children == [1, 2]

    and_one = BindingBoxTree(nodes=[TreeNode.make_gate("AND", 1), _box()])
    assert validate(and_one).of_kind("arity")


def test_dangling_child_index():
    tree = BindingBoxTree(nodes=[_box(5)])
    issues = validate(tree).of_kind("dangling_child")
    assert len(issues) == 1
    assert issues[0].node_index == 0


def test_shared_child_is_reported():
    tree = BindingBoxTree(nodes=[_box(2), _box(2), _box()])
    issues = validate(tree).of_kind("shared_child")
    assert [i.node_index for i in issues] == [2]
    # first parent wins in the parent table
    assert parent_table(tree)[2] == 0


def test_cycle_is_reported():
    tree = BindingBoxTree(nodes=[_box(1), _box(0)])
    result = validate(tree)
    assert result.of_kind("cycle")
    assert roots(tree) == []


def test_duplicate_sibling_edge_name():
    tree = BindingBoxTree(nodes=[_box(1, 2), _box(), _box()], edge_names={(0, 1): "A", (0, 2): "A"})
    issues = validate(tree).of_kind("duplicate_edge_name")
    assert len(issues) == 1
    assert issues[0].node_index == 0


def test_same_name_under_different_parents_is_fine():
    tree = BindingBoxTree(
        nodes=[_box(1), _box(2), _box()],
        edge_names={(0, 1): "A", (1, 2): "A"},
    )
    assert validate(tree).ok


def test_name_on_missing_edge():
    tree = BindingBoxTree(nodes=[_box(), _box()], edge_names={(0, 1): "A"})
    assert validate(tree).of_kind("unknown_edge")


def test_issue_as_dict():
    tree = BindingBoxTree(nodes=[TreeNode.make_gate("OR")])
    d = validate(tree).first.as_dict()
    assert d["kind"] == "arity"
    assert d["node_index"] == 0
    assert "OR" in d["detail"]
