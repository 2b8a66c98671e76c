# ------------------------------------------------------------
# Module: tests/conftest.py
# Purpose: Shared fixtures: isolated data dir, app client, fake evaluation engine.
# ------------------------------------------------------------
from __future__ import annotations

from typing import Any

import pytest
import requests
from fastapi.testclient import TestClient

from visual_editor.core.config import settings
from visual_editor.tree.models import BindingBox, BindingBoxTree, TreeNode


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Every test gets its own SQLite file and synchronous snapshot writes."""
    monkeypatch.setattr(settings, "DATA_DIR", tmp_path)
    monkeypatch.setattr(settings, "SAVE_DEBOUNCE_S", 0.0)
    monkeypatch.setattr(settings, "EVAL_ENGINE_URL", "http://engine.test")
    yield


@pytest.fixture
def client():
    from visual_editor.main import create_app

    with TestClient(create_app()) as c:
        yield c


class FakeResponse:
    def __init__(self, payload: Any, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeEngine:
    """Stands in for `requests.post`; `reply(tree_wire)` builds the response."""

    def __init__(self):
        self.calls: list[dict] = []
        self.reply = self.uniform(0, 0)

    @staticmethod
    def uniform(total: int, violated: int):
        def reply(tree_wire: dict) -> FakeResponse:
            n = len(tree_wire["nodes"])
            return FakeResponse(
                {
                    "evaluationResults": [
                        {"situationCount": total, "situationViolatedCount": violated, "situations": []}
                        for _ in range(n)
                    ],
                    "objectIds": ["o-1"],
                    "eventIds": ["e-1"],
                    "bindingsSkipped": False,
                }
            )

        return reply

    def __call__(self, url, json=None, timeout=None, **kwargs):
        self.calls.append({"url": url, "json": json, "timeout": timeout})
        return self.reply(json["tree"])


@pytest.fixture
def fake_engine(monkeypatch) -> FakeEngine:
    engine = FakeEngine()
    monkeypatch.setattr(requests, "post", engine)
    return engine


@pytest.fixture
def two_child_tree() -> BindingBoxTree:
    """Root box B0 with box children B1 (edge A) and B2 (edge B)."""
    return BindingBoxTree(
        nodes=[
            TreeNode.make_box(BindingBox(new_object_vars={0: ["order"]}), [1, 2]),
            TreeNode.make_box(BindingBox(new_event_vars={0: ["pay"]})),
            TreeNode.make_box(BindingBox(new_event_vars={1: ["ship"]})),
        ],
        edge_names={(0, 1): "A", (0, 2): "B"},
    )
