# ------------------------------------------------------------
# Module: visual_editor/registry/core.py
# Purpose: Tag-keyed lookup table from predicate kinds to editor/display pairs.
# ------------------------------------------------------------

"""Editor/display registry for filters, size filters and constraints.

Summary:
    Dispatch is a dict lookup on the value's `type` tag. Leaf kinds live in
    the table; the two combinators that must call back into the dispatcher
    are handled here instead:

    - the wrapper constraints (`Filter` / `SizeFilter`) that lift a filter
      into a constraint and render by dispatching on the wrapped value;
    - `BindingSetProjectionEqual`, which renders one child-set/variable
      picker per entry by recursing into the shared picker builders.

Details:
    - Each tag may be registered exactly once per registry.
    - An unregistered tag never raises from `dispatch_*`: it resolves to an
      "unknown type: X" editor/display so one bad predicate cannot take the
      whole box down.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from visual_editor.registry.protocols import Display, Editor, EditorContext, EditorForm
from visual_editor.registry import widgets

log = logging.getLogger("visual_editor.registry")

WRAPPER_TAGS = frozenset({"Filter", "SizeFilter"})
PROJECTION_TAG = "BindingSetProjectionEqual"


def tag_of(value: Any) -> str | None:
    """The discriminant of a predicate model or its wire dict."""
    if isinstance(value, Mapping):
        tag = value.get("type")
    else:
        tag = getattr(value, "type", None)
    return tag if isinstance(tag, str) else None


def _inner(value: Any) -> Any:
    return value.get("filter") if isinstance(value, Mapping) else getattr(value, "filter", None)


def _unknown_editor(tag: str | None) -> Editor:
    def editor(value: Any, ctx: EditorContext) -> EditorForm:
        return {"type": tag, "unknown": True, "message": f"unknown type: {tag}", "fields": []}

    return editor


def _unknown_display(tag: str | None) -> Display:
    def display(value: Any, compact: bool = False) -> str:
        return f"unknown type: {tag}"

    return display


class PredicateRegistry:
    """Lookup table tag -> (editor, display)."""

    def __init__(self) -> None:
        self._editors: dict[str, Editor] = {}
        self._displays: dict[str, Display] = {}

    # ---- registration ----
    def register(self, tag: str, editor: Editor, display: Display) -> None:
        if tag in WRAPPER_TAGS or tag == PROJECTION_TAG:
            raise ValueError(f"{tag!r} is dispatched by the registry itself")
        if tag in self._editors:
            raise ValueError(f"{tag!r} is already registered")
        self._editors[tag] = editor
        self._displays[tag] = display

    def is_registered(self, tag: str) -> bool:
        return tag in self._editors or tag in WRAPPER_TAGS or tag == PROJECTION_TAG

    @property
    def tags(self) -> list[str]:
        return sorted(self._editors)

    # ---- dispatch ----
    def dispatch_editor(self, value: Any) -> Editor:
        tag = tag_of(value)
        if tag in WRAPPER_TAGS:
            return self._wrapper_editor
        if tag == PROJECTION_TAG:
            return self._projection_editor
        editor = self._editors.get(tag) if tag else None
        if editor is None:
            log.warning("no editor registered type=%s", tag)
            return _unknown_editor(tag)
        return editor

    def dispatch_display(self, value: Any) -> Display:
        tag = tag_of(value)
        if tag in WRAPPER_TAGS:
            return self._wrapper_display
        if tag == PROJECTION_TAG:
            return self._projection_display
        display = self._displays.get(tag) if tag else None
        if display is None:
            log.warning("no display registered type=%s", tag)
            return _unknown_display(tag)
        return display

    # Convenience: dispatch + call.
    def render_editor(self, value: Any, ctx: EditorContext) -> EditorForm:
        return self.dispatch_editor(value)(value, ctx)

    def render_display(self, value: Any, compact: bool = False) -> str:
        return self.dispatch_display(value)(value, compact)

    # ---- recursive combinators ----
    def _wrapper_editor(self, value: Any, ctx: EditorContext) -> EditorForm:
        inner = _inner(value)
        return {"type": tag_of(value), "wrapped": self.render_editor(inner, ctx)}

    def _wrapper_display(self, value: Any, compact: bool = False) -> str:
        return self.render_display(_inner(value), compact)

    def _projection_editor(self, value: Any, ctx: EditorContext) -> EditorForm:
        pairs = _projection_pairs(value)
        rows = [
            [
                widgets.child_set_field("child_name", name, ctx),
                widgets.var_field("var_name", var, ctx),
            ]
            for name, var in pairs
        ]
        return {"type": PROJECTION_TAG, "rows": rows, "can_add": bool(ctx.child_sets)}

    def _projection_display(self, value: Any, compact: bool = False) -> str:
        parts = [f"{name}[{widgets.var_label(var)}]" for name, var in _projection_pairs(value)]
        return " = ".join(parts)


def _projection_pairs(value: Any) -> list[tuple[str, Any]]:
    if isinstance(value, Mapping):
        return [(n, v) for n, v in value.get("child_name_with_var_name", [])]
    return list(getattr(value, "child_name_with_var_name", ()))


__all__ = ["PROJECTION_TAG", "WRAPPER_TAGS", "PredicateRegistry", "tag_of"]
