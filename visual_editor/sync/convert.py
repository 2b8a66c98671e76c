# ------------------------------------------------------------
# Module: visual_editor/sync/convert.py
# Purpose: Tree <-> graph conversion with deterministic layout.
# ------------------------------------------------------------

"""Bidirectional conversion between the canonical tree and the canvas graph.

Summary:
    `tree_to_graph` expands one root of a tree into positioned nodes and
    named edges. `graph_to_tree` reduces an edited graph back to a tree,
    numbering nodes in pre-order from the roots so the result does not
    depend on the canvas's node ordering.

Details:
    - Layout: a box spreads its children evenly across a fixed width one
      vertical step below it; AND/OR place their two children at a fixed
      ±dx; NOT places its child straight below.
    - Ids are derived from (prefix, index) and (prefix, parent, child), so
      the same tree always produces the same graph.
    - Edges without a name in the tree get the first free letter among the
      parent's names.
    - Round trip: `graph_to_tree(tree_to_graph(t))` equals `canonicalize(t)`,
      which is `t` itself for trees already numbered in pre-order.
    - A reduction never truncates: a NOT with three outgoing edges becomes a
      NOT node with three children and an `arity` issue.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from visual_editor.core.config import settings
from visual_editor.sync.edge_names import next_edge_name
from visual_editor.sync.graph import (
    NODE_TYPE_BY_KIND,
    EdgeData,
    GraphEdge,
    GraphNode,
    NodeData,
    Position,
)
from visual_editor.tree.models import BindingBoxTree, TreeNode
from visual_editor.tree.validation import ValidationIssue, roots, validate

log = logging.getLogger("visual_editor.sync")


@dataclass(frozen=True)
class Layout:
    pos_scale: float = 0.333
    box_spread: float = 500.0
    box_step_y: float = 600.0
    gate_offset_x: float = 400.0
    gate_step_y: float = 500.0
    root_gap: float = 800.0

    @classmethod
    def from_settings(cls) -> "Layout":
        return cls(
            pos_scale=settings.LAYOUT_POS_SCALE,
            box_spread=settings.LAYOUT_BOX_SPREAD,
            box_step_y=settings.LAYOUT_BOX_STEP_Y,
            gate_offset_x=settings.LAYOUT_GATE_OFFSET_X,
            gate_step_y=settings.LAYOUT_GATE_STEP_Y,
        )


def node_id(prefix: str, index: int) -> str:
    return f"{prefix}-node-{index}"


def edge_id(prefix: str, parent: int, child: int) -> str:
    return f"{prefix}-edge-{parent}-to-{child}"


def _child_offsets(node: TreeNode, layout: Layout) -> list[tuple[float, float]]:
    """(dx, dy) for each child of `node`, in child order."""
    n = len(node.children)
    if node.kind == "Box":
        dy = layout.pos_scale * layout.box_step_y
        if n <= 1:
            return [(0.0, dy)] * n
        spacing = layout.box_spread / n
        left = -layout.box_spread / 2
        return [(left + spacing * (i + 0.5), dy) for i in range(n)]
    dy = layout.pos_scale * layout.gate_step_y
    if node.kind == "NOT":
        return [(0.0, dy)] * n
    dx = layout.pos_scale * layout.gate_offset_x
    # AND/OR: left/right; extra children (invalid) stack on the right.
    return [(-dx if i == 0 else dx, dy) for i in range(n)]


def _source_handle(node: TreeNode, nid: str, position: int) -> str:
    if node.kind in ("AND", "OR"):
        return f"{nid}-{'left' if position == 0 else 'right'}-source"
    return f"{nid}-source"


def tree_to_graph(
    tree: BindingBoxTree,
    root_index: int = 0,
    origin_x: float = 0.0,
    origin_y: float = 0.0,
    id_prefix: str = "q",
    layout: Layout | None = None,
    fill_names: bool = True,
) -> tuple[list[GraphNode], list[GraphEdge]]:
    """Expand the subtree under `root_index` into positioned nodes and edges."""
    layout = layout or Layout.from_settings()
    nodes: list[GraphNode] = []
    edges: list[GraphEdge] = []
    if not 0 <= root_index < len(tree.nodes):
        return nodes, edges

    visited: set[int] = set()
    # explicit stack keeps deep trees off the recursion limit; pre-order
    stack: list[tuple[int, float, float]] = [(root_index, origin_x, origin_y)]
    while stack:
        index, x, y = stack.pop()
        if index in visited:
            continue
        visited.add(index)
        tnode = tree.nodes[index]
        nid = node_id(id_prefix, index)
        nodes.append(
            GraphNode(
                id=nid,
                type=NODE_TYPE_BY_KIND[tnode.kind],
                position=Position(x=x, y=y),
                data=NodeData(box=tnode.box.model_copy(deep=True) if tnode.box else None),
            )
        )
        used = [tree.edge_names[(index, c)] for c in tnode.children if (index, c) in tree.edge_names]
        pending: list[tuple[int, float, float]] = []
        for pos, (child, (dx, dy)) in enumerate(zip(tnode.children, _child_offsets(tnode, layout))):
            if not 0 <= child < len(tree.nodes):
                log.warning("skip dangling child parent=%s child=%s", index, child)
                continue
            name = tree.edge_names.get((index, child))
            if name is None and fill_names:
                name = next_edge_name(used)
                if name is not None:
                    used.append(name)
            edges.append(
                GraphEdge(
                    id=edge_id(id_prefix, index, child),
                    source=nid,
                    target=node_id(id_prefix, child),
                    source_handle=_source_handle(tnode, nid, pos),
                    target_handle=f"{node_id(id_prefix, child)}-target",
                    data=EdgeData(name=name),
                )
            )
            pending.append((child, x + dx, y + dy))
        stack.extend(reversed(pending))
    return nodes, edges


def forest_to_graph(
    tree: BindingBoxTree,
    id_prefix: str = "q",
    layout: Layout | None = None,
) -> tuple[list[GraphNode], list[GraphEdge]]:
    """Lay out every root of `tree` side by side."""
    layout = layout or Layout.from_settings()
    nodes: list[GraphNode] = []
    edges: list[GraphEdge] = []
    for k, r in enumerate(roots(tree)):
        n, e = tree_to_graph(tree, r, k * layout.root_gap, 0.0, id_prefix, layout)
        nodes.extend(n)
        edges.extend(e)
    return nodes, edges


@dataclass(frozen=True)
class Reduction:
    """Result of reducing a graph: the tree, id mapping and structural issues."""

    tree: BindingBoxTree
    node_id_to_index: dict[str, int]
    issues: tuple[ValidationIssue, ...]

    @property
    def ok(self) -> bool:
        return not self.issues

    @property
    def index_to_node_id(self) -> dict[int, str]:
        return {i: nid for nid, i in self.node_id_to_index.items()}


def _ordered_out_edges(node: GraphNode, out: list[GraphEdge]) -> list[GraphEdge]:
    """Outgoing edges in creation order; AND/OR honour left/right handles."""
    if node.kind not in ("AND", "OR") or len(out) != 2:
        return out

    def side(e: GraphEdge) -> int | None:
        h = e.source_handle or ""
        if h.endswith("-left-source"):
            return 0
        if h.endswith("-right-source"):
            return 1
        return None

    sides = [side(e) for e in out]
    if None in sides or sides[0] == sides[1]:
        return out
    return sorted(out, key=side)


def graph_to_tree(nodes: list[GraphNode], edges: list[GraphEdge]) -> Reduction:
    """Reduce an edited graph to a canonical tree plus validation issues."""
    by_id = {n.id: n for n in nodes}
    out_edges: dict[str, list[GraphEdge]] = {n.id: [] for n in nodes}
    has_incoming: set[str] = set()
    dangling: list[tuple[str, GraphEdge]] = []
    for e in edges:
        if e.source not in by_id or e.target not in by_id:
            dangling.append((e.source, e))
            continue
        out_edges[e.source].append(e)
        has_incoming.add(e.target)

    for nid in out_edges:
        out_edges[nid] = _ordered_out_edges(by_id[nid], out_edges[nid])

    # Pre-order numbering from the roots; unreachable nodes (cycles) follow.
    order: list[str] = []
    seen: set[str] = set()
    starts = [n.id for n in nodes if n.id not in has_incoming] + [n.id for n in nodes]
    for start in starts:
        stack = [start]
        while stack:
            nid = stack.pop()
            if nid in seen:
                continue
            seen.add(nid)
            order.append(nid)
            stack.extend(reversed([e.target for e in out_edges[nid]]))

    index = {nid: i for i, nid in enumerate(order)}
    tree_nodes: list[TreeNode] = []
    edge_names: dict[tuple[int, int], str] = {}
    for nid in order:
        gnode = by_id[nid]
        children = [index[e.target] for e in out_edges[nid]]
        if gnode.kind == "Box":
            box = gnode.data.box.model_copy(deep=True) if gnode.data.box else None
            tree_nodes.append(TreeNode.make_box(box, children))
        else:
            tree_nodes.append(TreeNode.make_gate(gnode.kind, *children))
        for e in out_edges[nid]:
            if e.data.name is not None:
                edge_names[(index[nid], index[e.target])] = e.data.name

    tree = BindingBoxTree(nodes=tree_nodes, edge_names=edge_names)
    issues: list[ValidationIssue] = [
        ValidationIssue(
            "dangling_child",
            index.get(src, -1),
            f"edge {e.id} references a missing node",
        )
        for src, e in dangling
    ]
    issues.extend(validate(tree).issues)
    if issues:
        log.info("graph reduction issues count=%d first=%s", len(issues), issues[0].kind)
    return Reduction(tree=tree, node_id_to_index=index, issues=tuple(issues))


def canonicalize(tree: BindingBoxTree) -> BindingBoxTree:
    """Renumber `tree` in pre-order from its roots (the order `graph_to_tree` produces)."""
    nodes, edges = [], []
    for r in roots(tree):
        n, e = tree_to_graph(tree, r, id_prefix="c", layout=Layout(), fill_names=False)
        nodes.extend(n)
        edges.extend(e)
    return graph_to_tree(nodes, edges).tree


__all__ = [
    "Layout",
    "Reduction",
    "canonicalize",
    "edge_id",
    "forest_to_graph",
    "graph_to_tree",
    "node_id",
    "tree_to_graph",
]
