from __future__ import annotations

import pytest

from visual_editor.scope.naming import display_name, string_color, string_hue, variable_label
from visual_editor.tree.variables import Variable


def test_labels_are_one_based():
    assert variable_label(0, "object") == "o1"
    assert variable_label(4, "event") == "e5"
    assert display_name(Variable.event(1)).name == "e2"
    assert display_name(2, "object").name == "o3"


def test_color_is_deterministic_hsl():
    # 31-multiplier hash seeded with 14: "o1" -> 16944 -> hue 24
    assert string_hue("o1") == 24
    assert string_color("o1") == "hsl(24,80%,50%)"
    assert display_name(Variable.object(0)).color == string_color("o1")


def test_hue_is_in_range_for_long_labels():
    hue = string_hue("a-rather-long-label-that-overflows-32-bits" * 4)
    assert 0 <= hue < 360


def test_bare_index_needs_kind():
    with pytest.raises(ValueError):
        display_name(3)
