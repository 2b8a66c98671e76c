"""Re-keying results onto graph nodes, root aggregation and stale-result handling."""

from __future__ import annotations

import math

from visual_editor.overlay.results import (
    EvaluationResult,
    RootAggregate,
    aggregate_roots,
    annotate_graph,
    attach,
    build_overlay,
)
from visual_editor.overlay.tracker import ResultTracker
from visual_editor.sync.graph import GraphEdge, GraphNode


def _res(total: int, violated: int) -> EvaluationResult:
    return EvaluationResult(situation_count=total, situation_violated_count=violated)


def test_attach_rekeys_by_node_id():
    results = {0: _res(10, 2), 1: _res(4, 1)}
    by_node = attach(results, {"root": 0, "child": 1, "orphan": 7})
    assert by_node == {"root": results[0], "child": results[1]}


def test_single_root_aggregate_is_twenty_percent():
    agg = aggregate_roots({"B0": _res(10, 2)}, ["B0"])
    assert agg == RootAggregate(violated=2, total=10)
    assert agg.percentage == 20
    assert agg.display_text() == "20% ⌀ Violations (2 of 10)"


def test_only_roots_are_summed():
    agg = aggregate_roots({"r1": _res(8, 2), "r2": _res(4, 1), "child": _res(100, 100)}, ["r1", "r2"])
    assert (agg.violated, agg.total) == (3, 12)
    assert agg.percentage == 25


def test_zero_total_is_no_data_not_nan_text():
    agg = aggregate_roots({}, ["root"])
    assert not agg.has_data
    assert math.isnan(agg.percentage)
    assert agg.display_text() == "No evaluation result available"
    assert agg.as_dict()["percentage"] is None


def test_percentage_text_is_rounded_to_two_decimals():
    assert RootAggregate(1, 3).display_text() == "33.33% ⌀ Violations (1 of 3)"


def test_build_overlay_and_wire_shape():
    overlay = build_overlay(4, {0: _res(10, 2)}, {"root": 0}, ["root"], ["o-1"], ["e-1"])
    wire = overlay.as_dict()
    assert wire["version"] == 4
    assert wire["evalRes"]["root"]["situationViolatedCount"] == 2
    assert wire["aggregate"]["percentage"] == 20
    assert wire["objectIds"] == ["o-1"]


def test_annotate_graph_sets_badges():
    nodes = [GraphNode(id="a", type="box"), GraphNode(id="b", type="box")]
    edges = [GraphEdge(id="e", source="a", target="b")]
    out_nodes, out_edges = annotate_graph(nodes, edges, {"b": _res(5, 1)})
    assert out_nodes[0].data.evaluation is None
    assert out_nodes[1].data.evaluation.situation_count == 5
    assert out_edges[0].data.evaluation.situation_violated_count == 1
    # inputs untouched
    assert nodes[1].data.evaluation is None


def test_tracker_keeps_only_latest_request_for_current_version():
    tracker: ResultTracker[str] = ResultTracker()
    first = tracker.begin(version=1)
    second = tracker.begin(version=1)
    assert not tracker.accept(first, 1, "old")
    assert tracker.accept(second, 1, "new")
    assert tracker.current(1) == "new"


def test_tracker_discards_results_for_edited_tree():
    tracker: ResultTracker[str] = ResultTracker()
    ticket = tracker.begin(version=1)
    # tree edited while the request was in flight
    assert not tracker.accept(ticket, 2, "stale")
    assert tracker.current(2) is None


def test_tracker_invalidate_hides_old_overlay():
    tracker: ResultTracker[str] = ResultTracker()
    ticket = tracker.begin(version=3)
    tracker.accept(ticket, 3, "r")
    tracker.invalidate(4)
    assert tracker.current(3) is None
    assert tracker.current(4) is None
