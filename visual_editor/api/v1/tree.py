# ------------------------------------------------------------
# Module: visual_editor/api/v1/tree.py
# Purpose: Stateless tree validation and tree <-> graph conversion endpoints.
# ------------------------------------------------------------

"""Document-independent conversion endpoints.

Summary:
    `POST /v1/tree/validate` and `POST /v1/tree/graph` take a tree in the
    engine's wire format; `POST /v1/graph/tree` takes canvas nodes/edges.
    Nothing is stored.

Details:
    - Structural problems come back as `issues` with HTTP 200; only a body
      that does not parse as a tree/graph is a 422.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query

from visual_editor.api.v1.schemas import GraphPayload
from visual_editor.sync.convert import graph_to_tree, tree_to_graph
from visual_editor.sync.graph import FlowSnapshot
from visual_editor.tree.models import BindingBoxTree
from visual_editor.tree.validation import roots, validate

router: APIRouter = APIRouter()
graph_router: APIRouter = APIRouter()
log = logging.getLogger("visual_editor.api.tree")


@router.post("/validate")
def validate_tree(tree: BindingBoxTree) -> dict:
    result = validate(tree)
    return {
        "ok": result.ok,
        "issues": [i.as_dict() for i in result.issues],
        "roots": roots(tree),
    }


@router.post("/graph")
def tree_to_graph_route(
    tree: BindingBoxTree,
    root: int = Query(0, ge=0),
    x: float = 0.0,
    y: float = 0.0,
    id_prefix: str = "q",
) -> dict:
    nodes, edges = tree_to_graph(tree, root, x, y, id_prefix)
    wire = FlowSnapshot(nodes=nodes, edges=edges).to_wire()
    return {"nodes": wire["nodes"], "edges": wire["edges"]}


@graph_router.post("/tree")
def graph_to_tree_route(graph: GraphPayload) -> dict:
    red = graph_to_tree(graph.nodes, graph.edges)
    return {
        "tree": red.tree.to_wire(),
        "node_id_to_index": red.node_id_to_index,
        "issues": [i.as_dict() for i in red.issues],
    }
