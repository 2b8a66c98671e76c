# ------------------------------------------------------------
# Module: visual_editor/sync/graph.py
# Purpose: Editor-facing node/edge graph (the canvas's working representation).
# ------------------------------------------------------------

"""Positioned, editable graph shown on the canvas.

Responsibilities
----------------
- Define node/edge/viewport shapes exchanged with the canvas.
- Map tree node kinds to rendering types and back.

Notes
-----
- Field aliases follow the canvas (camelCase); Python code uses snake_case.
- The graph carries presentation data only; semantics live in the tree.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from visual_editor.tree.models import BindingBox

NodeType = Literal["box", "gate-and", "gate-or", "gate-not"]

DEFAULT_EDGE_COLOR = "#969696"

NODE_TYPE_BY_KIND: dict[str, NodeType] = {
    "Box": "box",
    "AND": "gate-and",
    "OR": "gate-or",
    "NOT": "gate-not",
}
KIND_BY_NODE_TYPE: dict[str, str] = {v: k for k, v in NODE_TYPE_BY_KIND.items()}


class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Position(_Wire):
    x: float = 0.0
    y: float = 0.0


class EvalBadge(_Wire):
    """Live evaluation numbers attached to a node or edge for display."""

    situation_count: int = Field(alias="situationCount")
    situation_violated_count: int = Field(alias="situationViolatedCount")


class NodeData(_Wire):
    box: BindingBox | None = None
    hide_violations: bool = Field(default=False, alias="hideViolations")
    evaluation: EvalBadge | None = None


class GraphNode(_Wire):
    id: str
    type: NodeType
    position: Position = Field(default_factory=Position)
    data: NodeData = Field(default_factory=NodeData)

    @model_validator(mode="after")
    def _box_payload_matches_type(self):
        if self.type == "box" and self.data.box is None:
            self.data.box = BindingBox()
        if self.type != "box" and self.data.box is not None:
            raise ValueError(f"{self.type} node must not carry a box payload")
        return self

    @property
    def kind(self) -> str:
        return KIND_BY_NODE_TYPE[self.type]


class EdgeData(_Wire):
    name: str | None = None
    color: str = DEFAULT_EDGE_COLOR
    min_count: int | None = Field(default=None, alias="minCount")
    max_count: int | None = Field(default=None, alias="maxCount")
    evaluation: EvalBadge | None = None


class GraphEdge(_Wire):
    id: str
    source: str
    target: str
    source_handle: str | None = Field(default=None, alias="sourceHandle")
    target_handle: str | None = Field(default=None, alias="targetHandle")
    data: EdgeData = Field(default_factory=EdgeData)


class Viewport(_Wire):
    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0


class FlowSnapshot(_Wire):
    """What the canvas persists per document."""

    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)
    viewport: Viewport = Field(default_factory=Viewport)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = [
    "DEFAULT_EDGE_COLOR",
    "EdgeData",
    "EvalBadge",
    "FlowSnapshot",
    "GraphEdge",
    "GraphNode",
    "KIND_BY_NODE_TYPE",
    "NODE_TYPE_BY_KIND",
    "NodeData",
    "NodeType",
    "Position",
    "Viewport",
]
