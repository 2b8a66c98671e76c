"""Tree <-> graph conversion: layout, ids, handles, names, round trip."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from visual_editor.sync.convert import Layout, canonicalize, forest_to_graph, graph_to_tree, tree_to_graph
from visual_editor.sync.graph import DEFAULT_EDGE_COLOR, EdgeData, FlowSnapshot, GraphEdge, GraphNode
from visual_editor.tree.filters import (
    AdvancedCEL,
    AndConstraint,
    AnyConstraint,
    AtEventTimepoint,
    BasicFilterCEL,
    BindingSetEqualFilter,
    BindingSetProjectionEqualFilter,
    BooleanValueFilter,
    EventAttributeValueFilter,
    FilterConstraint,
    FilterLabel,
    FloatValueFilter,
    IntegerValueFilter,
    NotConstraint,
    NotEqualFilter,
    NumChildsFilter,
    NumChildsProjFilter,
    O2EFilter,
    O2OFilter,
    ObjectAttributeValueFilter,
    OrConstraint,
    SatConstraint,
    SizeFilterConstraint,
    SometimeTimepoint,
    StringValueFilter,
    TimeBetweenEventsFilter,
    TimeValueFilter,
)
from visual_editor.tree.models import BindingBox, BindingBoxTree, TreeNode
from visual_editor.tree.variables import Variable

LAYOUT = Layout()


def _by_id(items):
    return {x.id: x for x in items}


def test_two_children_sit_left_and_right_at_same_depth(two_child_tree):
    nodes, edges = tree_to_graph(two_child_tree, 0, 100.0, 50.0, "q", LAYOUT)
    pos = {n.id: n.position for n in nodes}
    root, b1, b2 = pos["q-node-0"], pos["q-node-1"], pos["q-node-2"]
    assert b1.x < root.x < b2.x
    assert b1.y == b2.y == pytest.approx(root.y + 0.333 * 600)
    assert root.x - b1.x == pytest.approx(b2.x - root.x)

    assert {e.id: e.data.name for e in edges} == {"q-edge-0-to-1": "A", "q-edge-0-to-2": "B"}
    assert all(e.data.color == DEFAULT_EDGE_COLOR for e in edges)


def test_unmodified_graph_reduces_to_the_same_tree(two_child_tree):
    nodes, edges = tree_to_graph(two_child_tree, layout=LAYOUT)
    red = graph_to_tree(nodes, edges)
    assert red.ok
    assert red.tree == two_child_tree
    assert red.node_id_to_index == {"q-node-0": 0, "q-node-1": 1, "q-node-2": 2}


def test_gate_handles_and_offsets():
    tree = BindingBoxTree(
        nodes=[
            TreeNode.make_box(children=[1]),
            TreeNode.make_gate("OR", 2, 3),
            TreeNode.make_box(),
            TreeNode.make_gate("NOT", 4),
            TreeNode.make_box(),
        ],
        edge_names={(0, 1): "A", (1, 2): "A", (1, 3): "B", (3, 4): "A"},
    )
    nodes, edges = tree_to_graph(tree, layout=LAYOUT)
    e = _by_id(edges)
    assert e["q-edge-1-to-2"].source_handle == "q-node-1-left-source"
    assert e["q-edge-1-to-3"].source_handle == "q-node-1-right-source"
    assert e["q-edge-3-to-4"].source_handle == "q-node-3-source"
    assert e["q-edge-0-to-1"].target_handle == "q-node-1-target"
    n = _by_id(nodes)
    assert n["q-node-1"].type == "gate-or"
    assert n["q-node-2"].position.x == pytest.approx(n["q-node-1"].position.x - 0.333 * 400)
    assert n["q-node-3"].position.x == pytest.approx(n["q-node-1"].position.x + 0.333 * 400)
    assert n["q-node-4"].position.x == pytest.approx(n["q-node-3"].position.x)
    assert n["q-node-1"].data.box is None

    red = graph_to_tree(nodes, edges)
    assert red.tree == tree


def test_left_right_handles_decide_gate_child_order():
    nodes = [
        GraphNode(id="g", type="gate-and"),
        GraphNode(id="x", type="box"),
        GraphNode(id="y", type="box"),
    ]
    edges = [
        GraphEdge(id="e1", source="g", target="x", source_handle="g-right-source", data=EdgeData(name="A")),
        GraphEdge(id="e2", source="g", target="y", source_handle="g-left-source", data=EdgeData(name="B")),
    ]
    red = graph_to_tree(nodes, edges)
    assert red.ok
    assert red.tree.nodes[0].children == [red.node_id_to_index["y"], red.node_id_to_index["x"]]


def test_unnamed_edges_get_first_free_letter():
    tree = BindingBoxTree(
        nodes=[TreeNode.make_box(children=[1, 2]), TreeNode.make_box(), TreeNode.make_box()],
        edge_names={(0, 2): "A"},
    )
    _, edges = tree_to_graph(tree, layout=LAYOUT)
    assert {e.target: e.data.name for e in edges} == {"q-node-1": "B", "q-node-2": "A"}


def test_reduction_is_independent_of_node_order(two_child_tree):
    nodes, edges = tree_to_graph(two_child_tree, layout=LAYOUT)
    red = graph_to_tree(list(reversed(nodes)), edges)
    assert red.tree == two_child_tree


def test_not_with_two_edges_is_reported_not_truncated():
    nodes = [GraphNode(id="n", type="gate-not"), GraphNode(id="a", type="box"), GraphNode(id="b", type="box")]
    edges = [
        GraphEdge(id="e1", source="n", target="a", data=EdgeData(name="A")),
        GraphEdge(id="e2", source="n", target="b", data=EdgeData(name="B")),
    ]
    red = graph_to_tree(nodes, edges)
    assert not red.ok
    assert red.issues[0].kind == "arity"
    assert len(red.tree.nodes[0].children) == 2


def test_edge_to_missing_node_is_dangling():
    nodes = [GraphNode(id="a", type="box")]
    edges = [GraphEdge(id="e1", source="a", target="ghost")]
    red = graph_to_tree(nodes, edges)
    assert [i.kind for i in red.issues] == ["dangling_child"]
    assert red.tree.nodes[0].children == []


def test_box_payload_is_preserved():
    box = BindingBox(new_object_vars={0: ["order"]}, labels=[{"label": "n", "cel": "1"}])
    tree = BindingBoxTree(nodes=[TreeNode.make_box(box)])
    nodes, edges = tree_to_graph(tree, layout=LAYOUT)
    assert graph_to_tree(nodes, edges).tree.nodes[0].box == box


def test_canonicalize_renumbers_in_pre_order():
    tree = BindingBoxTree(
        nodes=[TreeNode.make_box(), TreeNode.make_box(children=[0])],
        edge_names={(1, 0): "A"},
    )
    canon = canonicalize(tree)
    assert canon.nodes[0].children == [1]
    assert canon.edge_names == {(0, 1): "A"}
    nodes, edges = tree_to_graph(canon, layout=LAYOUT)
    assert graph_to_tree(nodes, edges).tree == canon


def _rich_box() -> BindingBox:
    o0, o1, e0 = Variable.object(0), Variable.object(1), Variable.event(0)
    return BindingBox(
        new_object_vars={0: ["order"], 1: ["item", "package"]},
        new_event_vars={0: ["pay order"]},
        filters=[
            O2EFilter(object=0, event=0, qualifier="paid", filter_label=FilterLabel.INCLUDED),
            O2OFilter(object=0, other_object=1),
            TimeBetweenEventsFilter(from_event=0, to_event=0, min_seconds=0.5, max_seconds=3600),
            NotEqualFilter(var_1=o0, var_2=o1),
            EventAttributeValueFilter(
                event=0,
                attribute_name="amount",
                value_filter=FloatValueFilter(min=1.5),
            ),
            EventAttributeValueFilter(
                event=0,
                attribute_name="when",
                value_filter=TimeValueFilter(from_=datetime(2024, 1, 1, tzinfo=timezone.utc)),
            ),
            ObjectAttributeValueFilter(
                object=1,
                attribute_name="weight",
                at_time=AtEventTimepoint(event=0),
                value_filter=IntegerValueFilter(max=10),
            ),
            ObjectAttributeValueFilter(
                object=0,
                attribute_name="express",
                at_time=SometimeTimepoint(),
                value_filter=BooleanValueFilter(is_true=True),
            ),
            ObjectAttributeValueFilter(
                object=0,
                attribute_name="status",
                value_filter=StringValueFilter(is_in=("open", "late")),
            ),
            BasicFilterCEL(cel="o1 != o2"),
        ],
        size_filters=[
            NumChildsFilter(child_name="A", min=1),
            BindingSetEqualFilter(child_names=("A", "B")),
            BindingSetProjectionEqualFilter(child_name_with_var_name=(("A", o0), ("B", e0))),
            NumChildsProjFilter(child_name="B", var_name=o1, max=2),
            AdvancedCEL(cel="size(A) > 0"),
        ],
        constraints=[
            FilterConstraint(filter=BasicFilterCEL(cel="true")),
            SizeFilterConstraint(filter=NumChildsFilter(child_name="B", max=0)),
            SatConstraint(child_names=("A",)),
            AnyConstraint(child_names=("A", "B")),
            NotConstraint(child_names=("B",)),
            OrConstraint(child_names=("A", "B")),
            AndConstraint(child_names=("A", "B")),
        ],
        ev_var_labels={0: FilterLabel.EXCLUDED},
        ob_var_labels={0: FilterLabel.INCLUDED, 1: FilterLabel.IGNORED},
        labels=[{"label": "amount", "cel": "e1.attr('amount')"}],
    )


def test_rich_box_survives_graph_and_json_round_trips():
    box = _rich_box()
    tree = BindingBoxTree(
        nodes=[TreeNode.make_box(box, [1, 2]), TreeNode.make_box(), TreeNode.make_box()],
        edge_names={(0, 1): "A", (0, 2): "B"},
    )
    nodes, edges = tree_to_graph(tree, layout=LAYOUT)
    assert graph_to_tree(nodes, edges).tree.nodes[0].box == box

    # through the canvas JSON form
    wire = json.loads(json.dumps(FlowSnapshot(nodes=nodes, edges=edges).to_wire()))
    snap = FlowSnapshot.model_validate(wire)
    red = graph_to_tree(snap.nodes, snap.edges)
    assert red.tree == tree

    # through the engine JSON form
    assert BindingBoxTree.from_wire(json.loads(json.dumps(tree.to_wire()))) == tree


def test_multi_root_mixed_gate_forest_round_trips():
    tree = BindingBoxTree(
        nodes=[
            TreeNode.make_box(_rich_box(), [1]),
            TreeNode.make_gate("AND", 2, 3),
            TreeNode.make_box(BindingBox(new_event_vars={1: ["ship"]})),
            TreeNode.make_gate("NOT", 4),
            TreeNode.make_box(),
            TreeNode.make_gate("OR", 6, 7),
            TreeNode.make_box(BindingBox(new_object_vars={2: ["customer"]})),
            TreeNode.make_box(),
        ],
        edge_names={(0, 1): "A", (1, 2): "A", (1, 3): "B", (3, 4): "A", (5, 6): "A", (5, 7): "B"},
    )
    nodes, edges = forest_to_graph(tree, layout=LAYOUT)
    assert len(nodes) == 8
    n = _by_id(nodes)
    assert n["q-node-5"].position.x == pytest.approx(n["q-node-0"].position.x + LAYOUT.root_gap)

    red = graph_to_tree(nodes, edges)
    assert red.ok
    assert red.tree == tree
    assert red.node_id_to_index == {f"q-node-{i}": i for i in range(8)}
