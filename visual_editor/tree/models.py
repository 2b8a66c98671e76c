# ------------------------------------------------------------
# Module: visual_editor/tree/models.py
# Purpose: Canonical binding box tree (array of nodes + symbolic edge names).
# ------------------------------------------------------------

"""Canonical, order-independent representation of a query.

Responsibilities
----------------
- Define `BindingBox` (variables, filters, size filters, constraints, labels).
- Define `TreeNode` (Box / AND / OR / NOT) addressed by array index.
- Define `BindingBoxTree` with per-edge symbolic child-set names.
- Read and write the engine's wire format.

Notes
-----
- Wire nodes are externally tagged: `{"Box": [box, [children]]}`,
  `{"AND": [l, r]}`, `{"OR": [l, r]}`, `{"NOT": c}`.
- `edgeNames` travels as `[[[from, to], name], ...]`.
- All node kinds keep their children in a plain list so that a malformed
  reduction (e.g. a NOT with two outgoing edges) stays representable and is
  reported by `tree.validation` instead of being silently truncated.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_serializer,
    model_validator,
)

from visual_editor.tree.filters import Constraint, Filter, FilterLabel, SizeFilter
from visual_editor.tree.variables import VarKind

NodeKind = Literal["Box", "AND", "OR", "NOT"]

# Required number of children per gate kind. Boxes take any number.
GATE_ARITY: dict[str, int] = {"AND": 2, "OR": 2, "NOT": 1}


class LabelFunction(BaseModel):
    """Named scalar derived per situation from a CEL expression."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    label: str
    cel: str


class BindingBox(BaseModel):
    """Payload of a Box node: variable declarations and predicates."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    # variable index -> allowed object/event types (sorted, de-duplicated)
    new_event_vars: dict[int, list[str]] = Field(default_factory=dict, alias="newEventVars")
    new_object_vars: dict[int, list[str]] = Field(default_factory=dict, alias="newObjectVars")
    filters: list[Filter] = Field(default_factory=list)
    size_filters: list[SizeFilter] = Field(default_factory=list, alias="sizeFilters")
    constraints: list[Constraint] = Field(default_factory=list)
    ev_var_labels: dict[int, FilterLabel] = Field(default_factory=dict, alias="evVarLabels")
    ob_var_labels: dict[int, FilterLabel] = Field(default_factory=dict, alias="obVarLabels")
    labels: list[LabelFunction] = Field(default_factory=list)

    # HashSet<String> on the engine side; keep a stable order here.
    @field_validator("new_event_vars", "new_object_vars", mode="after")
    @classmethod
    def _sorted_types(cls, v: dict[int, list[str]]):
        return {k: sorted(set(types)) for k, types in v.items()}

    def declared(self, kind: VarKind) -> list[int]:
        """Variable indices this box introduces, ascending."""
        table = self.new_object_vars if kind == "object" else self.new_event_vars
        return sorted(table)

    def declared_types(self, kind: VarKind, index: int) -> list[str] | None:
        table = self.new_object_vars if kind == "object" else self.new_event_vars
        return table.get(index)


class TreeNode(BaseModel):
    """One node of the tree; `box` is set iff `kind == "Box"`."""

    model_config = ConfigDict(extra="forbid")

    kind: NodeKind
    box: BindingBox | None = None
    children: list[int] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _from_wire(cls, v: Any):
        if not isinstance(v, dict) or "kind" in v or len(v) != 1:
            return v
        (tag, payload), = v.items()
        if tag == "Box":
            box, children = payload
            return {"kind": "Box", "box": box, "children": list(children)}
        if tag in ("AND", "OR"):
            return {"kind": tag, "children": list(payload)}
        if tag == "NOT":
            children = list(payload) if isinstance(payload, (list, tuple)) else [payload]
            return {"kind": "NOT", "children": children}
        return v

    @model_validator(mode="after")
    def _box_iff_box_kind(self):
        if self.kind == "Box" and self.box is None:
            raise ValueError("Box node requires a box payload")
        if self.kind != "Box" and self.box is not None:
            raise ValueError(f"{self.kind} node must not carry a box payload")
        return self

    @model_serializer(mode="wrap")
    def _to_wire(self, handler) -> dict[str, Any]:
        data = handler(self)
        if self.kind == "Box":
            return {"Box": [data["box"], data["children"]]}
        if self.kind == "NOT" and len(self.children) == 1:
            return {"NOT": self.children[0]}
        return {self.kind: data["children"]}

    @classmethod
    def make_box(cls, box: BindingBox | None = None, children: list[int] | None = None) -> "TreeNode":
        return cls(kind="Box", box=box or BindingBox(), children=list(children or []))

    @classmethod
    def make_gate(cls, kind: NodeKind, *children: int) -> "TreeNode":
        return cls(kind=kind, children=list(children))

    @property
    def is_gate(self) -> bool:
        return self.kind != "Box"


class BindingBoxTree(BaseModel):
    """Array of nodes plus symbolic names for parent->child edges."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    nodes: list[TreeNode] = Field(default_factory=list)
    edge_names: dict[tuple[int, int], str] = Field(default_factory=dict, alias="edgeNames")

    @field_validator("edge_names", mode="before")
    @classmethod
    def _edge_names_from_wire(cls, v: Any):
        # [[[from, to], name], ...] -> {(from, to): name}
        if isinstance(v, list):
            out: dict[tuple[int, int], str] = {}
            for (a, b), name in v:
                out[(int(a), int(b))] = name
            return out
        return v

    @field_serializer("edge_names")
    def _edge_names_to_wire(self, v: dict[tuple[int, int], str]):
        return [[[a, b], name] for (a, b), name in sorted(v.items())]

    def children_of(self, index: int) -> list[int]:
        return list(self.nodes[index].children)

    def edge_name(self, parent: int, child: int) -> str | None:
        return self.edge_names.get((parent, child))

    def names_under(self, parent: int) -> list[str]:
        """Edge names of `parent`'s direct children, in child order."""
        out: list[str] = []
        for c in self.nodes[parent].children:
            name = self.edge_names.get((parent, c))
            if name is not None:
                out.append(name)
        return out

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_wire(cls, data: Any) -> "BindingBoxTree":
        return cls.model_validate(data)

    @classmethod
    def empty(cls) -> "BindingBoxTree":
        """Default document content: a single root box with no predicates."""
        return cls(nodes=[TreeNode.make_box()])


__all__ = [
    "GATE_ARITY",
    "BindingBox",
    "BindingBoxTree",
    "LabelFunction",
    "NodeKind",
    "TreeNode",
]
