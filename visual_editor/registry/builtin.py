# ------------------------------------------------------------
# Module: visual_editor/registry/builtin.py
# Purpose: Editor/display pairs for every built-in predicate kind.
# ------------------------------------------------------------

"""Built-in registrations.

One editor/display pair per leaf tag of `tree.filters`. The wrapper
constraints and `BindingSetProjectionEqual` are dispatched by the registry
itself (see `registry.core`).
"""

from __future__ import annotations

from visual_editor.registry import widgets as w
from visual_editor.registry.core import PredicateRegistry
from visual_editor.registry.protocols import EditorContext
from visual_editor.tree import filters as f


# ---- value filters / timepoints (shared by the attribute filters) ----
def value_filter_text(vf) -> str:
    match vf:
        case f.FloatValueFilter(min=lo, max=hi) | f.IntegerValueFilter(min=lo, max=hi):
            return w.min_max_text("value", lo, hi)
        case f.BooleanValueFilter(is_true=b):
            return f"= {'true' if b else 'false'}"
        case f.StringValueFilter(is_in=values):
            return "∈ {" + ", ".join(values) + "}"
        case f.TimeValueFilter(from_=lo, to=hi):
            left = lo.isoformat() if lo else f"-{w.INF}"
            right = hi.isoformat() if hi else w.INF
            return f"in [{left}, {right}]"
    return "?"


def timepoint_text(tp) -> str:
    match tp:
        case f.AlwaysTimepoint():
            return "always"
        case f.SometimeTimepoint():
            return "sometime"
        case f.AtEventTimepoint(event=e):
            return f"at {w.var_label(e, 'event')}"
    return "?"


def _value_filter_field(vf) -> dict:
    return w.plain_field("value_filter", "value_filter", vf.model_dump(mode="json", by_alias=True))


# ---- relational filters ----
def o2e_editor(value: f.O2EFilter, ctx: EditorContext) -> dict:
    return {
        "type": value.type,
        "fields": [
            w.event_var_field("event", value.event, ctx),
            w.object_var_field("object", value.object, ctx),
            w.plain_field("qualifier", "text", value.qualifier, placeholder="Qualifier"),
        ],
    }


def o2e_display(value: f.O2EFilter, compact: bool = False) -> str:
    q = f"@{value.qualifier}" if value.qualifier is not None else ""
    return f"{w.var_label(value.event, 'event')} ~ {w.var_label(value.object, 'object')}{q}"


def o2o_editor(value: f.O2OFilter, ctx: EditorContext) -> dict:
    return {
        "type": value.type,
        "fields": [
            w.object_var_field("object", value.object, ctx),
            w.object_var_field("other_object", value.other_object, ctx),
            w.plain_field("qualifier", "text", value.qualifier, placeholder="Qualifier"),
        ],
        "actions": ["swap"],
    }


def o2o_display(value: f.O2OFilter, compact: bool = False) -> str:
    q = f"@{value.qualifier}" if value.qualifier is not None else ""
    return f"{w.var_label(value.object, 'object')} ~ {w.var_label(value.other_object, 'object')}{q}"


def not_equal_editor(value: f.NotEqualFilter, ctx: EditorContext) -> dict:
    return {
        "type": value.type,
        "fields": [w.var_field("var_1", value.var_1, ctx), w.var_field("var_2", value.var_2, ctx)],
    }


def not_equal_display(value: f.NotEqualFilter, compact: bool = False) -> str:
    return f"{w.var_label(value.var_1)} ≠ {w.var_label(value.var_2)}"


def time_between_editor(value: f.TimeBetweenEventsFilter, ctx: EditorContext) -> dict:
    return {
        "type": value.type,
        "fields": [
            w.event_var_field("from_event", value.from_event, ctx),
            w.event_var_field("to_event", value.to_event, ctx),
            w.plain_field("min_seconds", "duration", value.min_seconds),
            w.plain_field("max_seconds", "duration", value.max_seconds),
        ],
    }


def time_between_display(value: f.TimeBetweenEventsFilter, compact: bool = False) -> str:
    lo = w.format_seconds(value.min_seconds, negative_if_none=True)
    hi = w.format_seconds(value.max_seconds)
    return (
        f"{w.var_label(value.from_event, 'event')} → {w.var_label(value.to_event, 'event')}"
        f" [{lo} - {hi}]"
    )


def event_attr_editor(value: f.EventAttributeValueFilter, ctx: EditorContext) -> dict:
    return {
        "type": value.type,
        "fields": [
            w.event_var_field("event", value.event, ctx),
            w.plain_field("attribute_name", "attribute", value.attribute_name),
            _value_filter_field(value.value_filter),
        ],
    }


def event_attr_display(value: f.EventAttributeValueFilter, compact: bool = False) -> str:
    subject = f"{w.var_label(value.event, 'event')}.{value.attribute_name}"
    return f"{subject} {value_filter_text(value.value_filter)}"


def object_attr_editor(value: f.ObjectAttributeValueFilter, ctx: EditorContext) -> dict:
    return {
        "type": value.type,
        "fields": [
            w.object_var_field("object", value.object, ctx),
            w.plain_field("attribute_name", "attribute", value.attribute_name),
            w.plain_field(
                "at_time",
                "timepoint",
                value.at_time.model_dump(mode="json"),
                options=["Always", "Sometime", "AtEvent"],
            ),
            _value_filter_field(value.value_filter),
        ],
    }


def object_attr_display(value: f.ObjectAttributeValueFilter, compact: bool = False) -> str:
    subject = f"{w.var_label(value.object, 'object')}.{value.attribute_name}"
    return f"{subject} {value_filter_text(value.value_filter)} ({timepoint_text(value.at_time)})"


# ---- CEL ----
def cel_editor(value, ctx: EditorContext) -> dict:
    return {
        "type": value.type,
        "fields": [
            w.plain_field(
                "cel",
                "cel",
                value.cel,
                advanced=value.type == "AdvancedCEL",
                variables=[w.var_label(v) for v in (*ctx.object_vars, *ctx.event_vars)],
                child_sets=list(ctx.child_sets),
                labels=list(ctx.labels),
            )
        ],
    }


def cel_display(value, compact: bool = False) -> str:
    return w.truncate(value.cel, compact)


# ---- size filters ----
def num_childs_editor(value: f.NumChildsFilter, ctx: EditorContext) -> dict:
    return {
        "type": value.type,
        "fields": [
            w.child_set_field("child_name", value.child_name, ctx),
            w.plain_field("min", "count", value.min),
            w.plain_field("max", "count", value.max),
        ],
    }


def num_childs_display(value: f.NumChildsFilter, compact: bool = False) -> str:
    return w.min_max_text(f"|{value.child_name}|", value.min, value.max)


def num_childs_proj_editor(value: f.NumChildsProjFilter, ctx: EditorContext) -> dict:
    return {
        "type": value.type,
        "fields": [
            w.child_set_field("child_name", value.child_name, ctx),
            w.var_field("var_name", value.var_name, ctx),
            w.plain_field("min", "count", value.min),
            w.plain_field("max", "count", value.max),
        ],
    }


def num_childs_proj_display(value: f.NumChildsProjFilter, compact: bool = False) -> str:
    return w.min_max_text(f"|{value.child_name}[{w.var_label(value.var_name)}]|", value.min, value.max)


def set_equal_editor(value: f.BindingSetEqualFilter, ctx: EditorContext) -> dict:
    return {"type": value.type, "fields": [w.child_sets_field("child_names", value.child_names, ctx)]}


def set_equal_display(value: f.BindingSetEqualFilter, compact: bool = False) -> str:
    return " = ".join(value.child_names)


# ---- child-set combinators (SAT, ANY, NOT, OR, AND) ----
def child_names_editor(value, ctx: EditorContext) -> dict:
    return {"type": value.type, "fields": [w.child_sets_field("child_names", value.child_names, ctx)]}


def child_names_display(value, compact: bool = False) -> str:
    return f"{value.type}({','.join(value.child_names)})"


def register_builtins(reg: PredicateRegistry) -> PredicateRegistry:
    reg.register("O2E", o2e_editor, o2e_display)
    reg.register("O2O", o2o_editor, o2o_display)
    reg.register("NotEqual", not_equal_editor, not_equal_display)
    reg.register("TimeBetweenEvents", time_between_editor, time_between_display)
    reg.register("EventAttributeValueFilter", event_attr_editor, event_attr_display)
    reg.register("ObjectAttributeValueFilter", object_attr_editor, object_attr_display)
    reg.register("BasicFilterCEL", cel_editor, cel_display)
    reg.register("AdvancedCEL", cel_editor, cel_display)
    reg.register("NumChilds", num_childs_editor, num_childs_display)
    reg.register("NumChildsProj", num_childs_proj_editor, num_childs_proj_display)
    reg.register("BindingSetEqual", set_equal_editor, set_equal_display)
    for tag in ("SAT", "ANY", "NOT", "OR", "AND"):
        reg.register(tag, child_names_editor, child_names_display)
    return reg
