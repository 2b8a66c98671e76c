# ------------------------------------------------------------
# Module: visual_editor/services/evaluation.py
# Purpose: HTTP client for the external evaluation engine.
# ------------------------------------------------------------

"""Evaluate a committed tree against the event log via the engine's HTTP API.

Summary:
    POSTs `{tree, measurePerformance}` to `settings.eval_endpoint` and checks
    that the answer covers every tree index before anyone re-keys it onto
    graph nodes.

Details:
    - Transport errors, timeouts, non-2xx statuses, non-JSON bodies, a null
      body (engine has no log loaded), schema mismatches and index-coverage
      gaps all raise `EvaluationEngineError`.
    - Situations are truncated to `settings.EVAL_SITUATION_SAMPLE` per node;
      the counts are kept as reported.

Developer Guidance:
    - This module does no re-keying; see `overlay.results.attach`.
    - Never call it with a tree that failed validation; the API returns 422 first.
"""

from __future__ import annotations

import logging

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from visual_editor.core.config import settings
from visual_editor.core.errors import EvaluationEngineError
from visual_editor.overlay.results import EvaluationResult
from visual_editor.tree.models import BindingBoxTree
from visual_editor.utils.timing import log_timer

log = logging.getLogger("visual_editor.evaluation")


class EngineResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    evaluation_results: list[EvaluationResult] = Field(alias="evaluationResults")
    object_ids: list[str] = Field(default_factory=list, alias="objectIds")
    event_ids: list[str] = Field(default_factory=list, alias="eventIds")
    bindings_skipped: bool = Field(default=False, alias="bindingsSkipped")

    def results_by_index(self) -> dict[int, EvaluationResult]:
        return dict(enumerate(self.evaluation_results))


def _bounded(res: EvaluationResult, limit: int) -> EvaluationResult:
    if len(res.situations) <= limit:
        return res
    return res.model_copy(update={"situations": res.situations[:limit]})


def evaluate_tree(tree: BindingBoxTree, measure_performance: bool = False) -> EngineResponse:
    """Run the engine on `tree`; one result per tree index, in index order.

    Raises:
        EvaluationEngineError: the engine failed or answered with an unusable payload.
    """
    url = settings.eval_endpoint
    payload = {"tree": tree.to_wire(), "measurePerformance": measure_performance}
    with log_timer("engine.evaluate", log, expected=(EvaluationEngineError,), nodes=len(tree.nodes)) as t:
        try:
            r = requests.post(url, json=payload, timeout=settings.EVAL_TIMEOUT_S)
            r.raise_for_status()
        except requests.Timeout as e:
            raise EvaluationEngineError(f"evaluation timed out after {settings.EVAL_TIMEOUT_S}s") from e
        except requests.RequestException as e:
            raise EvaluationEngineError(f"evaluation request failed: {e}") from e

        try:
            data = r.json()
        except ValueError as e:
            raise EvaluationEngineError("engine returned a non-JSON body") from e
        if data is None:
            raise EvaluationEngineError("engine returned no result (no event log loaded?)")

        try:
            resp = EngineResponse.model_validate(data)
        except ValidationError as e:
            raise EvaluationEngineError(f"malformed engine response: {e.error_count()} error(s)") from e

        if len(resp.evaluation_results) != len(tree.nodes):
            raise EvaluationEngineError(
                f"engine answered {len(resp.evaluation_results)} node(s) for a tree of {len(tree.nodes)}"
            )

    if resp.bindings_skipped:
        log.warning("engine skipped bindings after %.1fms; counts are partial", t.ms)

    limit = settings.EVAL_SITUATION_SAMPLE
    return resp.model_copy(
        update={"evaluation_results": [_bounded(x, limit) for x in resp.evaluation_results]}
    )


__all__ = ["EngineResponse", "evaluate_tree"]
