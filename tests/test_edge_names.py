from __future__ import annotations

import pytest

from visual_editor.core.errors import EdgeNameError
from visual_editor.sync.edge_names import EDGE_NAME_ALPHABET, assign_edge_name, next_edge_name


def test_next_edge_name_takes_first_free_letter():
    assert next_edge_name([]) == "A"
    assert next_edge_name(["A", "C"]) == "B"
    assert next_edge_name([None, "A"]) == "B"


def test_alphabet_exhaustion_returns_none():
    assert next_edge_name(EDGE_NAME_ALPHABET) is None
    with pytest.raises(EdgeNameError) as exc:
        assign_edge_name("n1", EDGE_NAME_ALPHABET)
    assert exc.value.source == "n1"


def test_explicit_name_must_be_unique_among_siblings():
    assert assign_edge_name("n1", ["A"], "B") == "B"
    with pytest.raises(EdgeNameError) as exc:
        assign_edge_name("n1", ["A", "B"], "B")
    assert exc.value.name == "B"


def test_blank_name_is_rejected():
    with pytest.raises(EdgeNameError):
        assign_edge_name("n1", [], "  ")
