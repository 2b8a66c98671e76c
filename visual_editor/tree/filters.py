# ------------------------------------------------------------
# Module: visual_editor/tree/filters.py
# Purpose: Closed tagged unions for filters, size filters and constraints.
# ------------------------------------------------------------

"""Filter, size filter and constraint variants of a binding box.

Summary:
    Every predicate kind is a self-contained, frozen pydantic model with a
    literal `type` tag. The unions below are discriminated on that tag, so
    parsing is exhaustive: an unknown tag fails validation instead of being
    carried around as an opaque dict.

Details:
    - `Filter`: relational predicates over the box's bound variables.
    - `SizeFilter`: predicates over named child result sets.
    - `Constraint`: logical combinators over named child result sets, plus
      the two wrappers `Filter` / `SizeFilter` that lift a predicate into a
      constraint.
    - `involved_variables()` and `referenced_child_names()` are matched
      exhaustively over the variants; the scope checker relies on them.

Developer Guidance:
    - Field names follow the engine's wire format (snake_case inside
      predicates, `filterLabel` being the one camelCase exception).
    - Adding a variant means: add the model, add it to the union, extend the
      two helpers, and register an editor/display pair in `visual_editor.registry`.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from visual_editor.tree.variables import Variable, variables_in_cel


class FilterLabel(str, Enum):
    """How a filter or variable participates in result labelling."""

    IGNORED = "IGNORED"
    INCLUDED = "INCLUDED"
    EXCLUDED = "EXCLUDED"


class _Variant(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


# -----------------------------------------------------------------------------
# Attribute value predicates
# -----------------------------------------------------------------------------
class FloatValueFilter(_Variant):
    type: Literal["Float"] = "Float"
    min: float | None = None
    max: float | None = None


class IntegerValueFilter(_Variant):
    type: Literal["Integer"] = "Integer"
    min: int | None = None
    max: int | None = None


class BooleanValueFilter(_Variant):
    type: Literal["Boolean"] = "Boolean"
    is_true: bool


class StringValueFilter(_Variant):
    type: Literal["String"] = "String"
    is_in: tuple[str, ...] = ()


class TimeValueFilter(_Variant):
    type: Literal["Time"] = "Time"
    from_: datetime | None = Field(default=None, alias="from")
    to: datetime | None = None


ValueFilter = Annotated[
    Union[
        FloatValueFilter,
        IntegerValueFilter,
        BooleanValueFilter,
        StringValueFilter,
        TimeValueFilter,
    ],
    Field(discriminator="type"),
]


class AlwaysTimepoint(_Variant):
    type: Literal["Always"] = "Always"


class SometimeTimepoint(_Variant):
    type: Literal["Sometime"] = "Sometime"


class AtEventTimepoint(_Variant):
    type: Literal["AtEvent"] = "AtEvent"
    event: int


ObjectValueFilterTimepoint = Annotated[
    Union[AlwaysTimepoint, SometimeTimepoint, AtEventTimepoint],
    Field(discriminator="type"),
]


# -----------------------------------------------------------------------------
# Filters
# -----------------------------------------------------------------------------
class O2EFilter(_Variant):
    """Object is associated with event, optionally through a qualifier."""

    type: Literal["O2E"] = "O2E"
    object: int
    event: int
    qualifier: str | None = None
    filter_label: FilterLabel | None = Field(default=None, alias="filterLabel")


class O2OFilter(_Variant):
    """Object is associated with another object, optionally through a qualifier."""

    type: Literal["O2O"] = "O2O"
    object: int
    other_object: int
    qualifier: str | None = None
    filter_label: FilterLabel | None = Field(default=None, alias="filterLabel")


class TimeBetweenEventsFilter(_Variant):
    """Seconds between two events lie in [min_seconds, max_seconds]; None is unbounded."""

    type: Literal["TimeBetweenEvents"] = "TimeBetweenEvents"
    from_event: int
    to_event: int
    min_seconds: float | None = None
    max_seconds: float | None = None


class NotEqualFilter(_Variant):
    type: Literal["NotEqual"] = "NotEqual"
    var_1: Variable
    var_2: Variable


class EventAttributeValueFilter(_Variant):
    type: Literal["EventAttributeValueFilter"] = "EventAttributeValueFilter"
    event: int
    attribute_name: str
    value_filter: ValueFilter


class ObjectAttributeValueFilter(_Variant):
    type: Literal["ObjectAttributeValueFilter"] = "ObjectAttributeValueFilter"
    object: int
    attribute_name: str
    at_time: ObjectValueFilterTimepoint = Field(default_factory=AlwaysTimepoint)
    value_filter: ValueFilter


class BasicFilterCEL(_Variant):
    type: Literal["BasicFilterCEL"] = "BasicFilterCEL"
    cel: str


Filter = Annotated[
    Union[
        O2EFilter,
        O2OFilter,
        TimeBetweenEventsFilter,
        NotEqualFilter,
        EventAttributeValueFilter,
        ObjectAttributeValueFilter,
        BasicFilterCEL,
    ],
    Field(discriminator="type"),
]


# -----------------------------------------------------------------------------
# Size filters (over named child result sets)
# -----------------------------------------------------------------------------
class NumChildsFilter(_Variant):
    type: Literal["NumChilds"] = "NumChilds"
    child_name: str
    min: int | None = None
    max: int | None = None


class BindingSetEqualFilter(_Variant):
    type: Literal["BindingSetEqual"] = "BindingSetEqual"
    child_names: tuple[str, ...] = ()


class BindingSetProjectionEqualFilter(_Variant):
    type: Literal["BindingSetProjectionEqual"] = "BindingSetProjectionEqual"
    child_name_with_var_name: tuple[tuple[str, Variable], ...] = ()


class NumChildsProjFilter(_Variant):
    type: Literal["NumChildsProj"] = "NumChildsProj"
    child_name: str
    var_name: Variable
    min: int | None = None
    max: int | None = None


class AdvancedCEL(_Variant):
    type: Literal["AdvancedCEL"] = "AdvancedCEL"
    cel: str


SizeFilter = Annotated[
    Union[
        NumChildsFilter,
        BindingSetEqualFilter,
        BindingSetProjectionEqualFilter,
        NumChildsProjFilter,
        AdvancedCEL,
    ],
    Field(discriminator="type"),
]


# -----------------------------------------------------------------------------
# Constraints
# -----------------------------------------------------------------------------
class FilterConstraint(_Variant):
    type: Literal["Filter"] = "Filter"
    filter: Filter


class SizeFilterConstraint(_Variant):
    type: Literal["SizeFilter"] = "SizeFilter"
    filter: SizeFilter


class SatConstraint(_Variant):
    type: Literal["SAT"] = "SAT"
    child_names: tuple[str, ...] = ()


class AnyConstraint(_Variant):
    type: Literal["ANY"] = "ANY"
    child_names: tuple[str, ...] = ()


class NotConstraint(_Variant):
    type: Literal["NOT"] = "NOT"
    child_names: tuple[str, ...] = ()


class OrConstraint(_Variant):
    type: Literal["OR"] = "OR"
    child_names: tuple[str, ...] = ()


class AndConstraint(_Variant):
    type: Literal["AND"] = "AND"
    child_names: tuple[str, ...] = ()


Constraint = Annotated[
    Union[
        FilterConstraint,
        SizeFilterConstraint,
        SatConstraint,
        AnyConstraint,
        NotConstraint,
        OrConstraint,
        AndConstraint,
    ],
    Field(discriminator="type"),
]

AnyPredicate = Union[Filter, SizeFilter, Constraint]


# -----------------------------------------------------------------------------
# Exhaustive helpers
# -----------------------------------------------------------------------------
def involved_variables(value) -> set[Variable]:
    """Variables a filter, size filter or constraint refers to."""
    match value:
        case O2EFilter(object=o, event=e):
            return {Variable.object(o), Variable.event(e)}
        case O2OFilter(object=o, other_object=o2):
            return {Variable.object(o), Variable.object(o2)}
        case TimeBetweenEventsFilter(from_event=e1, to_event=e2):
            return {Variable.event(e1), Variable.event(e2)}
        case NotEqualFilter(var_1=v1, var_2=v2):
            return {v1, v2}
        case EventAttributeValueFilter(event=e):
            return {Variable.event(e)}
        case ObjectAttributeValueFilter(object=o, at_time=at):
            out = {Variable.object(o)}
            if isinstance(at, AtEventTimepoint):
                out.add(Variable.event(at.event))
            return out
        case BasicFilterCEL(cel=cel) | AdvancedCEL(cel=cel):
            return variables_in_cel(cel)
        case NumChildsProjFilter(var_name=v):
            return {v}
        case BindingSetProjectionEqualFilter(child_name_with_var_name=pairs):
            return {v for _, v in pairs}
        case NumChildsFilter() | BindingSetEqualFilter():
            return set()
        case FilterConstraint(filter=f) | SizeFilterConstraint(filter=f):
            return involved_variables(f)
        case SatConstraint() | AnyConstraint() | NotConstraint() | OrConstraint() | AndConstraint():
            return set()
    raise TypeError(f"not a filter/size filter/constraint: {type(value).__name__}")


def referenced_child_names(value) -> list[str]:
    """Child-set names a predicate refers to, in declaration order."""
    match value:
        case NumChildsFilter(child_name=n) | NumChildsProjFilter(child_name=n):
            return [n]
        case BindingSetEqualFilter(child_names=names):
            return list(names)
        case BindingSetProjectionEqualFilter(child_name_with_var_name=pairs):
            return [n for n, _ in pairs]
        case SatConstraint(child_names=names) | AnyConstraint(child_names=names) | NotConstraint(
            child_names=names
        ) | OrConstraint(child_names=names) | AndConstraint(child_names=names):
            return list(names)
        case FilterConstraint(filter=f) | SizeFilterConstraint(filter=f):
            return referenced_child_names(f)
        case (
            O2EFilter()
            | O2OFilter()
            | TimeBetweenEventsFilter()
            | NotEqualFilter()
            | EventAttributeValueFilter()
            | ObjectAttributeValueFilter()
            | BasicFilterCEL()
            | AdvancedCEL()
        ):
            return []
    raise TypeError(f"not a filter/size filter/constraint: {type(value).__name__}")
