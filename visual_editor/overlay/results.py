# ------------------------------------------------------------
# Module: visual_editor/overlay/results.py
# Purpose: Re-key per-node evaluation results onto graph nodes and summarize roots.
# ------------------------------------------------------------

"""Evaluation results overlay.

Summary:
    The engine answers per *tree index*; the canvas thinks in *graph node
    ids*. `attach()` re-keys one to the other, `aggregate_roots()` sums the
    root-level numbers into the document summary, and `annotate_graph()`
    copies the numbers onto nodes/edges for rendering.

Details:
    - Only root nodes count toward the summary: sibling queries in one
      document are counted once each, never again through nested boxes.
    - `RootAggregate.percentage` is NaN when there is no data; always branch
      on `has_data` (or use `display_text()`) before showing it.
    - Results are read-only; a new evaluation produces a new overlay.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from visual_editor.sync.graph import EvalBadge, GraphEdge, GraphNode


class EvaluationResult(BaseModel):
    """Per-node numbers plus a bounded sample of situations."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    situation_count: int = Field(alias="situationCount", ge=0)
    situation_violated_count: int = Field(alias="situationViolatedCount", ge=0)
    # [binding, violation reason | null] pairs as produced by the engine
    situations: tuple[Any, ...] = ()

    def badge(self) -> EvalBadge:
        return EvalBadge(
            situation_count=self.situation_count,
            situation_violated_count=self.situation_violated_count,
        )


def attach(
    results: Mapping[int, EvaluationResult],
    node_id_to_index: Mapping[str, int],
) -> dict[str, EvaluationResult]:
    """Re-key results from tree index to graph node id."""
    out: dict[str, EvaluationResult] = {}
    for nid, idx in node_id_to_index.items():
        res = results.get(idx)
        if res is not None:
            out[nid] = res
    return out


@dataclass(frozen=True)
class RootAggregate:
    violated: int
    total: int

    @property
    def has_data(self) -> bool:
        return self.total > 0

    @property
    def percentage(self) -> float:
        """100 * violated / total, or NaN when there is no data."""
        if not self.has_data:
            return math.nan
        return 100 * self.violated / self.total

    def display_text(self) -> str:
        if not self.has_data:
            return "No evaluation result available"
        pct = round(self.percentage, 2)
        return f"{pct:g}% ⌀ Violations ({self.violated} of {self.total})"

    def as_dict(self) -> dict[str, Any]:
        return {
            "violated": self.violated,
            "total": self.total,
            "has_data": self.has_data,
            # JSON has no NaN; the sentinel travels as null
            "percentage": self.percentage if self.has_data else None,
            "text": self.display_text(),
        }


def aggregate_roots(
    results: Mapping[str, EvaluationResult],
    root_node_ids: Iterable[str],
) -> RootAggregate:
    """Sum violated/total over root nodes only."""
    violated = total = 0
    for nid in dict.fromkeys(root_node_ids):
        res = results.get(nid)
        if res is None:
            continue
        violated += res.situation_violated_count
        total += res.situation_count
    return RootAggregate(violated=violated, total=total)


@dataclass(frozen=True)
class Overlay:
    """Results of one accepted evaluation, keyed by graph node id."""

    version: int
    results: dict[str, EvaluationResult]
    aggregate: RootAggregate
    object_ids: tuple[str, ...] = ()
    event_ids: tuple[str, ...] = ()

    def as_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "evalRes": {nid: r.model_dump(mode="json", by_alias=True) for nid, r in self.results.items()},
            "aggregate": self.aggregate.as_dict(),
            "objectIds": list(self.object_ids),
            "eventIds": list(self.event_ids),
        }


def build_overlay(
    version: int,
    results_by_index: Mapping[int, EvaluationResult],
    node_id_to_index: Mapping[str, int],
    root_node_ids: Iterable[str],
    object_ids: Iterable[str] = (),
    event_ids: Iterable[str] = (),
) -> Overlay:
    by_node = attach(results_by_index, node_id_to_index)
    return Overlay(
        version=version,
        results=by_node,
        aggregate=aggregate_roots(by_node, root_node_ids),
        object_ids=tuple(object_ids),
        event_ids=tuple(event_ids),
    )


def annotate_graph(
    nodes: list[GraphNode],
    edges: list[GraphEdge],
    results: Mapping[str, EvaluationResult],
) -> tuple[list[GraphNode], list[GraphEdge]]:
    """Copies of nodes/edges with evaluation badges set (edges show their target's numbers)."""
    out_nodes = []
    for n in nodes:
        res = results.get(n.id)
        data = n.data.model_copy(update={"evaluation": res.badge() if res else None})
        out_nodes.append(n.model_copy(update={"data": data}))
    out_edges = []
    for e in edges:
        res = results.get(e.target)
        data = e.data.model_copy(update={"evaluation": res.badge() if res else None})
        out_edges.append(e.model_copy(update={"data": data}))
    return out_nodes, out_edges


__all__ = [
    "EvaluationResult",
    "Overlay",
    "RootAggregate",
    "aggregate_roots",
    "annotate_graph",
    "attach",
    "build_overlay",
]
