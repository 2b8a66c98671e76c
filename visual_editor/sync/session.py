# ------------------------------------------------------------
# Module: visual_editor/sync/session.py
# Purpose: Per-document editing session: working graph + versioned commits.
# ------------------------------------------------------------

"""Editing session for one query document.

Summary:
    The graph is the working representation while editing. Every structural
    edit bumps `version`; `commit()` reduces the graph to a canonical tree
    once per version and caches it together with a `ScopeResolver`, so scope
    queries and evaluation always see the same immutable tree.

Responsibilities
----------------
- Node edits: add box/gate, move, update box payload, remove (with incident edges).
- Edge edits: add (auto-named A..Z among siblings), rename, update metadata, remove.
- Commit: graph -> tree reduction, cached per version.
- Scope/editor context for a graph node id, resolved against the last commit.
- Change notification for persistence (listeners get the session).

Notes
-----
- Moving nodes or changing the viewport does not bump `version`; neither
  changes the tree, so a running evaluation stays valid.
- Edge-name conflicts raise `EdgeNameError` and leave the graph unchanged.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass

from visual_editor.core.errors import EdgeNameError, NotFoundError
from visual_editor.registry.protocols import EditorContext
from visual_editor.scope.resolver import ScopeIssue, ScopeResolver
from visual_editor.sync.convert import forest_to_graph, graph_to_tree
from visual_editor.sync.edge_names import assign_edge_name
from visual_editor.sync.graph import (
    NODE_TYPE_BY_KIND,
    EdgeData,
    FlowSnapshot,
    GraphEdge,
    GraphNode,
    NodeData,
    Position,
    Viewport,
)
from visual_editor.tree.models import BindingBox, BindingBoxTree, NodeKind
from visual_editor.tree.validation import ValidationIssue

log = logging.getLogger("visual_editor.sync")

_EDGE_META_FIELDS = frozenset({"color", "min_count", "max_count"})

Listener = Callable[["EditingSession"], None]


@dataclass(frozen=True)
class CommittedTree:
    """Immutable tree produced from one graph version."""

    tree: BindingBoxTree
    version: int
    node_id_to_index: dict[str, int]
    issues: tuple[ValidationIssue, ...]
    resolver: ScopeResolver

    @property
    def ok(self) -> bool:
        return not self.issues

    @property
    def index_to_node_id(self) -> dict[int, str]:
        return {i: nid for nid, i in self.node_id_to_index.items()}

    def root_node_ids(self) -> list[str]:
        has_parent = {c for node in self.tree.nodes for c in node.children}
        back = self.index_to_node_id
        return [back[i] for i in range(len(self.tree.nodes)) if i not in has_parent]

    def index_of(self, node_id: str) -> int:
        try:
            return self.node_id_to_index[node_id]
        except KeyError:
            raise NotFoundError(f"unknown node id: {node_id}") from None


def empty_snapshot() -> FlowSnapshot:
    """Graph of the default document: one root box."""
    nodes, edges = forest_to_graph(BindingBoxTree.empty(), id_prefix=_new_prefix())
    return FlowSnapshot(nodes=nodes, edges=edges)


def _new_prefix() -> str:
    return uuid.uuid4().hex[:8]


class EditingSession:
    def __init__(self, snapshot: FlowSnapshot | None = None, document_id: str = ""):
        self.document_id = document_id
        self._lock = threading.RLock()
        self._nodes: dict[str, GraphNode] = {}
        self._edges: dict[str, GraphEdge] = {}
        self.viewport = Viewport()
        self.version = 0
        self._commit: CommittedTree | None = None
        self._listeners: list[Listener] = []
        self._install(snapshot if snapshot is not None else empty_snapshot())

    @classmethod
    def from_tree(cls, tree: BindingBoxTree, document_id: str = "") -> "EditingSession":
        nodes, edges = forest_to_graph(tree, id_prefix=_new_prefix())
        return cls(FlowSnapshot(nodes=nodes, edges=edges), document_id=document_id)

    # ---- change tracking -------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _changed(self, structural: bool) -> None:
        if structural:
            self.version += 1
        for listener in list(self._listeners):
            listener(self)

    def _install(self, snapshot: FlowSnapshot) -> None:
        self._nodes = {n.id: n.model_copy(deep=True) for n in snapshot.nodes}
        self._edges = {e.id: e.model_copy(deep=True) for e in snapshot.edges}
        self.viewport = snapshot.viewport.model_copy()

    # ---- reads -----------------------------------------------------------

    @property
    def nodes(self) -> list[GraphNode]:
        return list(self._nodes.values())

    @property
    def edges(self) -> list[GraphEdge]:
        return list(self._edges.values())

    def snapshot(self) -> FlowSnapshot:
        with self._lock:
            return FlowSnapshot(
                nodes=[n.model_copy(deep=True) for n in self._nodes.values()],
                edges=[e.model_copy(deep=True) for e in self._edges.values()],
                viewport=self.viewport.model_copy(),
            )

    def node(self, node_id: str) -> GraphNode:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise NotFoundError(f"unknown node id: {node_id}") from None

    def edge(self, edge_id: str) -> GraphEdge:
        try:
            return self._edges[edge_id]
        except KeyError:
            raise NotFoundError(f"unknown edge id: {edge_id}") from None

    def out_edges(self, node_id: str) -> list[GraphEdge]:
        return [e for e in self._edges.values() if e.source == node_id]

    def child_set_names(self, node_id: str) -> list[str]:
        """Names of the named outgoing edges of `node_id`, in edge order."""
        return [e.data.name for e in self.out_edges(node_id) if e.data.name]

    # ---- whole-graph replacement ----------------------------------------

    def replace(self, snapshot: FlowSnapshot) -> None:
        with self._lock:
            self._install(snapshot)
            self._changed(structural=True)

    def set_viewport(self, viewport: Viewport) -> None:
        with self._lock:
            self.viewport = viewport.model_copy()
            self._changed(structural=False)

    # ---- node edits ------------------------------------------------------

    def add_box(
        self,
        x: float = 0.0,
        y: float = 0.0,
        box: BindingBox | None = None,
        node_id: str | None = None,
    ) -> GraphNode:
        return self._add_node("Box", x, y, box or BindingBox(), node_id)

    def add_gate(self, kind: NodeKind, x: float = 0.0, y: float = 0.0, node_id: str | None = None) -> GraphNode:
        if kind == "Box":
            raise ValueError("use add_box for box nodes")
        return self._add_node(kind, x, y, None, node_id)

    def _add_node(self, kind: str, x: float, y: float, box: BindingBox | None, node_id: str | None) -> GraphNode:
        with self._lock:
            nid = node_id or f"n-{uuid.uuid4().hex[:12]}"
            if nid in self._nodes:
                raise ValueError(f"node id already exists: {nid}")
            node = GraphNode(
                id=nid,
                type=NODE_TYPE_BY_KIND[kind],
                position=Position(x=x, y=y),
                data=NodeData(box=box),
            )
            self._nodes[nid] = node
            self._changed(structural=True)
            return node

    def move_node(self, node_id: str, x: float, y: float) -> None:
        with self._lock:
            node = self.node(node_id)
            node.position = Position(x=x, y=y)
            self._changed(structural=False)

    def update_box(self, node_id: str, box: BindingBox) -> None:
        with self._lock:
            node = self.node(node_id)
            if node.type != "box":
                raise ValueError(f"node {node_id} is a {node.type}, not a box")
            node.data = node.data.model_copy(update={"box": box.model_copy(deep=True)})
            self._changed(structural=True)

    def remove_node(self, node_id: str) -> None:
        with self._lock:
            self.node(node_id)
            del self._nodes[node_id]
            for eid in [e.id for e in self._edges.values() if node_id in (e.source, e.target)]:
                del self._edges[eid]
            self._changed(structural=True)

    # ---- edge edits ------------------------------------------------------

    def _free_gate_handle(self, source: GraphNode) -> str:
        if source.kind not in ("AND", "OR"):
            return f"{source.id}-source"
        taken = {e.source_handle for e in self.out_edges(source.id)}
        left = f"{source.id}-left-source"
        return left if left not in taken else f"{source.id}-right-source"

    def add_edge(
        self,
        source: str,
        target: str,
        name: str | None = None,
        source_handle: str | None = None,
        edge_id: str | None = None,
    ) -> GraphEdge:
        """Connect `source` -> `target`; the edge is named among `source`'s children.

        Raises:
            NotFoundError: unknown source or target.
            EdgeNameError: `name` duplicates a sibling, A..Z is exhausted, or
                the pair is already connected under another name.
        """
        with self._lock:
            src = self.node(source)
            self.node(target)
            for e in self.out_edges(source):
                if e.target == target:
                    if name is not None and name != e.data.name:
                        raise EdgeNameError(
                            f"{source} -> {target} is already connected as {e.data.name!r}",
                            source=source,
                            name=name,
                        )
                    return e
            assigned = assign_edge_name(source, self.child_set_names(source), name)
            edge = GraphEdge(
                id=edge_id or f"e-{source}-{target}",
                source=source,
                target=target,
                source_handle=source_handle or self._free_gate_handle(src),
                target_handle=f"{target}-target",
                data=EdgeData(name=assigned),
            )
            self._edges[edge.id] = edge
            self._changed(structural=True)
            return edge

    def rename_edge(self, edge_id: str, name: str) -> None:
        with self._lock:
            edge = self.edge(edge_id)
            siblings = [e.data.name for e in self.out_edges(edge.source) if e.id != edge_id]
            assigned = assign_edge_name(edge.source, siblings, name)
            edge.data = edge.data.model_copy(update={"name": assigned})
            self._changed(structural=True)

    def update_edge_meta(self, edge_id: str, **changes) -> GraphEdge:
        """Set `color`, `min_count` and/or `max_count`; keys not passed stay as they are.

        Presentation metadata only; does not change the tree or the version.
        """
        unknown = set(changes) - _EDGE_META_FIELDS
        if unknown:
            raise ValueError(f"not edge metadata: {sorted(unknown)}")
        with self._lock:
            edge = self.edge(edge_id)
            if changes.get("color", "") is None:
                changes.pop("color")
            edge.data = edge.data.model_copy(update=changes)
            self._changed(structural=False)
            return edge

    def remove_edge(self, edge_id: str) -> None:
        with self._lock:
            self.edge(edge_id)
            del self._edges[edge_id]
            self._changed(structural=True)

    # ---- commit / scope --------------------------------------------------

    def commit(self) -> CommittedTree:
        """Canonical tree for the current version (computed at most once per version)."""
        with self._lock:
            if self._commit is not None and self._commit.version == self.version:
                return self._commit
            red = graph_to_tree(self.nodes, self.edges)
            self._commit = CommittedTree(
                tree=red.tree,
                version=self.version,
                node_id_to_index=red.node_id_to_index,
                issues=red.issues,
                resolver=ScopeResolver(red.tree, version=self.version),
            )
            log.debug(
                "commit doc=%s version=%s nodes=%d issues=%d",
                self.document_id,
                self.version,
                len(red.tree.nodes),
                len(red.issues),
            )
            return self._commit

    def scope(self, node_id: str) -> dict:
        c = self.commit()
        out = c.resolver.describe(c.index_of(node_id))
        out["node_id"] = node_id
        return out

    def scope_issues(self, node_id: str) -> list[ScopeIssue]:
        c = self.commit()
        return c.resolver.check_scope(c.index_of(node_id))

    def editor_context(self, node_id: str) -> EditorContext:
        c = self.commit()
        idx = c.index_of(node_id)
        box = c.tree.nodes[idx].box
        return EditorContext(
            object_vars=tuple(c.resolver.available_variables(idx, "object")),
            event_vars=tuple(c.resolver.available_variables(idx, "event")),
            child_sets=tuple(c.resolver.available_child_set_names(idx)),
            labels=tuple(lf.label for lf in box.labels) if box else (),
            node_id=node_id,
        )


__all__ = ["CommittedTree", "EditingSession", "empty_snapshot"]
