# ------------------------------------------------------------
# Module: visual_editor/tree/variables.py
# Purpose: Object/event query variables and their wire form.
# ------------------------------------------------------------

"""Query variables.

A variable is an index scoped to the box that introduces it. On the wire an
object variable inside a filter is a bare integer; where either kind is
allowed (e.g. `NotEqual`) it is tagged as `{"Object": 0}` / `{"Event": 0}`.
"""

from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, model_serializer, model_validator

VarKind = Literal["object", "event"]

# Wire tag per kind; changing these is a breaking change for the engine.
_WIRE_TAG: dict[str, str] = {"object": "Object", "event": "Event"}
_KIND_BY_TAG: dict[str, str] = {v: k for k, v in _WIRE_TAG.items()}

# CEL programs reference variables by display name (o1, e2, ...).
_CEL_VAR = re.compile(r"\b([oe])(\d+)\b")


class Variable(BaseModel):
    """An object or event variable, identified by (kind, index)."""

    model_config = ConfigDict(frozen=True)

    kind: VarKind
    index: int

    @model_validator(mode="before")
    @classmethod
    def _from_wire(cls, v: Any):
        # {"Event": 1} / {"Object": 0}
        if isinstance(v, dict) and len(v) == 1:
            (tag, idx), = v.items()
            if tag in _KIND_BY_TAG:
                return {"kind": _KIND_BY_TAG[tag], "index": idx}
        return v

    @model_serializer
    def _to_wire(self) -> dict[str, int]:
        return {_WIRE_TAG[self.kind]: self.index}

    @classmethod
    def object(cls, index: int) -> "Variable":
        return cls(kind="object", index=index)

    @classmethod
    def event(cls, index: int) -> "Variable":
        return cls(kind="event", index=index)

    @property
    def label(self) -> str:
        """Human-readable, 1-based name (`o1`, `e1`, ...)."""
        return f"{self.kind[0]}{self.index + 1}"


def variables_in_cel(cel: str) -> set[Variable]:
    """Variables a CEL expression refers to by display name."""
    out: set[Variable] = set()
    for prefix, num in _CEL_VAR.findall(cel or ""):
        n = int(num)
        if n < 1:
            continue
        out.add(Variable(kind="object" if prefix == "o" else "event", index=n - 1))
    return out


__all__ = ["Variable", "VarKind", "variables_in_cel"]
