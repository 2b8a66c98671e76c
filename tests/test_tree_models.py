"""Wire format of the canonical tree: tagged nodes, edge names, camelCase boxes."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from visual_editor.tree.filters import (
    FilterConstraint,
    NumChildsFilter,
    O2EFilter,
    SatConstraint,
    involved_variables,
    referenced_child_names,
)
from visual_editor.tree.models import BindingBox, BindingBoxTree, TreeNode
from visual_editor.tree.variables import Variable, variables_in_cel

WIRE = {
    "nodes": [
        {"Box": [{"newObjectVars": {"0": ["order"]}, "newEventVars": {}}, [1]]},
        {"NOT": 2},
        {"AND": [3, 4]},
        {"Box": [{"newEventVars": {"0": ["pay", "pay", "approve"]}}, []]},
        {"Box": [{}, []]},
    ],
    "edgeNames": [[[0, 1], "A"], [[2, 3], "A"], [[2, 4], "B"]],
}


def test_tree_parses_externally_tagged_nodes():
    tree = BindingBoxTree.from_wire(WIRE)
    assert [n.kind for n in tree.nodes] == ["Box", "NOT", "AND", "Box", "Box"]
    assert tree.nodes[1].children == [2]
    assert tree.nodes[2].children == [3, 4]
    assert tree.edge_names == {(0, 1): "A", (2, 3): "A", (2, 4): "B"}
    # types are de-duplicated and sorted
    assert tree.nodes[3].box.new_event_vars == {0: ["approve", "pay"]}


def test_tree_serializes_back_to_wire_shape():
    out = BindingBoxTree.from_wire(WIRE).to_wire()
    assert out["nodes"][1] == {"NOT": 2}
    assert out["nodes"][2] == {"AND": [3, 4]}
    box, children = out["nodes"][0]["Box"]
    assert children == [1]
    assert box["newObjectVars"] == {"0": ["order"]}
    assert "sizeFilters" in box and "evVarLabels" in box
    assert out["edgeNames"] == [[[0, 1], "A"], [[2, 3], "A"], [[2, 4], "B"]]


def test_box_payload_required_iff_box():
    with pytest.raises(ValidationError):
        TreeNode(kind="Box")
    with pytest.raises(ValidationError):
        TreeNode(kind="AND", box=BindingBox(), children=[1, 2])


def test_empty_tree_is_single_root_box():
    tree = BindingBoxTree.empty()
    assert len(tree.nodes) == 1
    assert tree.nodes[0].kind == "Box"
    assert tree.nodes[0].children == []


def test_variable_wire_form():
    assert Variable.model_validate({"Event": 2}) == Variable.event(2)
    assert Variable.object(0).model_dump() == {"Object": 0}
    assert Variable.event(2).label == "e3"


def test_constraint_union_dispatches_on_type():
    box = BindingBox.model_validate(
        {
            "constraints": [
                {"type": "Filter", "filter": {"type": "O2E", "object": 0, "event": 1, "qualifier": None}},
                {"type": "SAT", "child_names": ["A"]},
            ],
            "sizeFilters": [{"type": "NumChilds", "child_name": "A", "min": 1, "max": None}],
        }
    )
    assert isinstance(box.constraints[0], FilterConstraint)
    assert isinstance(box.constraints[0].filter, O2EFilter)
    assert isinstance(box.constraints[1], SatConstraint)
    assert isinstance(box.size_filters[0], NumChildsFilter)


def test_unknown_filter_type_is_rejected():
    with pytest.raises(ValidationError):
        BindingBox.model_validate({"filters": [{"type": "Teleport", "object": 0}]})


def test_involved_variables_and_child_names():
    o2e = O2EFilter(object=0, event=1)
    assert involved_variables(o2e) == {Variable.object(0), Variable.event(1)}
    wrapped = FilterConstraint(filter=o2e)
    assert involved_variables(wrapped) == {Variable.object(0), Variable.event(1)}
    assert referenced_child_names(SatConstraint(child_names=("A", "B"))) == ["A", "B"]
    assert referenced_child_names(o2e) == []


def test_variables_in_cel():
    assert variables_in_cel("o1.type == 'order' && e2.time > e1.time") == {
        Variable.object(0),
        Variable.event(1),
        Variable.event(0),
    }
