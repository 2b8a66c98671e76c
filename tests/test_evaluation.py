"""Engine client: request shape, coverage check, failure mapping, sampling."""

from __future__ import annotations

import pytest
import requests

from visual_editor.core.config import settings
from visual_editor.core.errors import EvaluationEngineError
from visual_editor.services.evaluation import evaluate_tree

from .conftest import FakeResponse


def test_posts_wire_tree_to_engine(fake_engine, two_child_tree):
    fake_engine.reply = fake_engine.uniform(10, 2)
    resp = evaluate_tree(two_child_tree)
    call = fake_engine.calls[0]
    assert call["url"] == "http://engine.test/ocel/check-constraints-box"
    assert call["json"]["tree"] == two_child_tree.to_wire()
    assert call["json"]["measurePerformance"] is False
    assert call["timeout"] == settings.EVAL_TIMEOUT_S
    assert [r.situation_count for r in resp.evaluation_results] == [10, 10, 10]
    assert resp.object_ids == ["o-1"]
    assert resp.results_by_index()[2].situation_violated_count == 2


def test_missing_indices_are_rejected(fake_engine, two_child_tree):
    fake_engine.reply = lambda tree: FakeResponse(
        {"evaluationResults": [{"situationCount": 1, "situationViolatedCount": 0, "situations": []}]}
    )
    with pytest.raises(EvaluationEngineError):
        evaluate_tree(two_child_tree)


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(None),
        FakeResponse({"unexpected": True}),
        FakeResponse(ValueError("not json")),
        FakeResponse({"detail": "boom"}, status_code=500),
    ],
)
def test_unusable_responses_raise(fake_engine, two_child_tree, response):
    fake_engine.reply = lambda tree: response
    with pytest.raises(EvaluationEngineError):
        evaluate_tree(two_child_tree)


def test_transport_errors_raise(monkeypatch, two_child_tree):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(requests, "post", boom)
    with pytest.raises(EvaluationEngineError):
        evaluate_tree(two_child_tree)


def test_timeout_raises(monkeypatch, two_child_tree):
    def slow(*args, **kwargs):
        raise requests.Timeout("too slow")

    monkeypatch.setattr(requests, "post", slow)
    with pytest.raises(EvaluationEngineError, match="timed out"):
        evaluate_tree(two_child_tree)


def test_situations_are_sampled(fake_engine, monkeypatch, two_child_tree):
    monkeypatch.setattr(settings, "EVAL_SITUATION_SAMPLE", 2)
    fake_engine.reply = lambda tree: FakeResponse(
        {
            "evaluationResults": [
                {"situationCount": 5, "situationViolatedCount": 1, "situations": [[{}, None]] * 5}
                for _ in tree["nodes"]
            ]
        }
    )
    resp = evaluate_tree(two_child_tree)
    assert all(len(r.situations) == 2 for r in resp.evaluation_results)
    assert all(r.situation_count == 5 for r in resp.evaluation_results)
