# ------------------------------------------------------------
# Module: visual_editor/api/v1/schemas.py
# Purpose: Request bodies for the v1 routes.
# ------------------------------------------------------------

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from visual_editor.sync.graph import GraphEdge, GraphNode
from visual_editor.tree.models import BindingBox


class DocumentCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""


class GraphPayload(BaseModel):
    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)


class NodeCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["box", "gate-and", "gate-or", "gate-not"] = "box"
    x: float = 0.0
    y: float = 0.0
    box: BindingBox | None = None
    id: str | None = None


class EdgeCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source: str
    target: str
    name: str | None = None
    source_handle: str | None = Field(default=None, alias="sourceHandle")


class EdgePatch(BaseModel):
    """Partial edge update; only the fields present in the body change."""

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    color: str | None = None
    min_count: int | None = Field(default=None, alias="minCount", ge=0)
    max_count: int | None = Field(default=None, alias="maxCount", ge=0)

    def meta_changes(self) -> dict:
        return {f: getattr(self, f) for f in ("color", "min_count", "max_count") if f in self.model_fields_set}


class BoxUpdate(BaseModel):
    box: BindingBox
