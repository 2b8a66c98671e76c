# ------------------------------------------------------------
# Module: visual_editor/registry/widgets.py
# Purpose: Shared field builders and text helpers for editors and displays.
# ------------------------------------------------------------

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from visual_editor.registry.protocols import EditorContext
from visual_editor.scope.naming import display_name
from visual_editor.tree.variables import Variable, VarKind

INF = "∞"


def _as_variable(var: Any) -> Variable | None:
    if isinstance(var, Variable):
        return var
    if isinstance(var, Mapping):
        try:
            return Variable.model_validate(var)
        except ValueError:
            return None
    return None


def var_label(var: Any, kind: VarKind | None = None) -> str:
    """`o1`/`e1` for a Variable, its wire dict, or a bare index plus kind."""
    if isinstance(var, int) and kind is not None:
        return display_name(var, kind).name
    v = _as_variable(var)
    return v.label if v is not None else "?"


def _option(v: Variable) -> dict[str, Any]:
    d = display_name(v)
    return {"kind": v.kind, "index": v.index, "name": d.name, "color": d.color}


def object_var_field(name: str, value: int | None, ctx: EditorContext) -> dict[str, Any]:
    return {
        "name": name,
        "widget": "object_var",
        "value": value,
        "options": [_option(v) for v in ctx.object_vars],
    }


def event_var_field(name: str, value: int | None, ctx: EditorContext) -> dict[str, Any]:
    return {
        "name": name,
        "widget": "event_var",
        "value": value,
        "options": [_option(v) for v in ctx.event_vars],
    }


def var_field(name: str, value: Any, ctx: EditorContext) -> dict[str, Any]:
    """Picker over object *and* event variables."""
    v = _as_variable(value)
    return {
        "name": name,
        "widget": "var",
        "value": v.model_dump() if v is not None else None,
        "options": [_option(x) for x in (*ctx.object_vars, *ctx.event_vars)],
    }


def child_set_field(name: str, value: str | None, ctx: EditorContext) -> dict[str, Any]:
    return {"name": name, "widget": "child_set", "value": value, "options": list(ctx.child_sets)}


def child_sets_field(name: str, values, ctx: EditorContext) -> dict[str, Any]:
    return {
        "name": name,
        "widget": "child_sets",
        "value": list(values),
        "options": list(ctx.child_sets),
        # New entries default to the first available name, "A" when there is none.
        "default_new": ctx.child_sets[0] if ctx.child_sets else "A",
    }


def plain_field(name: str, widget: str, value: Any, **extra) -> dict[str, Any]:
    out = {"name": name, "widget": widget, "value": value}
    out.update(extra)
    return out


# ---- text helpers ----
def format_seconds(seconds: float | None, *, negative_if_none: bool = False) -> str:
    """Compact duration: `1d 2h`, `30m`, `45s`; None/inf render as ±∞."""
    if seconds is None:
        return f"-{INF}" if negative_if_none else INF
    if math.isinf(seconds):
        return INF if seconds > 0 else f"-{INF}"
    sign = "-" if seconds < 0 else ""
    rest = abs(seconds)
    parts: list[str] = []
    for unit, size in (("d", 86400), ("h", 3600), ("m", 60)):
        if rest >= size:
            n = int(rest // size)
            rest -= n * size
            parts.append(f"{n}{unit}")
    if rest or not parts:
        parts.append(f"{rest:g}s")
    return sign + " ".join(parts)


def min_max_text(subject: str, lo: Any, hi: Any) -> str:
    """`lo ≤ subject ≤ hi` with the common special cases shortened."""
    if lo is not None and hi is not None and lo == hi:
        return f"{subject} = {lo}"
    if lo is None and hi is None:
        return f"{subject} any"
    if lo is None:
        return f"{subject} ≤ {hi}"
    if hi is None:
        return f"{subject} ≥ {lo}"
    return f"{lo} ≤ {subject} ≤ {hi}"


def truncate(text: str, compact: bool, limit: int = 40) -> str:
    if not compact or len(text) <= limit:
        return text
    return text[: limit - 1] + "…"
