# ------------------------------------------------------------
# Module: visual_editor/scope/naming.py
# Purpose: Stable display names and colors for query variables.
# ------------------------------------------------------------

"""Human-readable variable labels.

`o1`, `o2`, ... for object variables and `e1`, `e2`, ... for event
variables (1-based over the 0-based index), plus a color derived from a
hash of the label so the same variable renders identically everywhere.
"""

from __future__ import annotations

from dataclasses import dataclass

from visual_editor.tree.variables import Variable, VarKind

_HASH_SEED = 14


@dataclass(frozen=True)
class VarDisplay:
    name: str
    color: str


def _to_int32(x: int) -> int:
    x &= 0xFFFFFFFF
    return x - 0x1_0000_0000 if x & 0x8000_0000 else x


def string_hue(s: str) -> int:
    """Hue in [0, 360) from a 31-multiplier string hash with 32-bit wraparound."""
    h = _HASH_SEED
    for ch in s:
        h = _to_int32(31 * h + ord(ch))
    return h % 360


def string_color(s: str, saturation: int = 80, lightness: int = 50) -> str:
    return f"hsl({string_hue(s)},{saturation}%,{lightness}%)"


def variable_label(index: int, kind: VarKind) -> str:
    return f"{'o' if kind == 'object' else 'e'}{index + 1}"


def display_name(variable: Variable | int, kind: VarKind | None = None) -> VarDisplay:
    """Label and color for a variable (or a bare index plus its kind)."""
    if isinstance(variable, Variable):
        index, kind = variable.index, variable.kind
    else:
        if kind is None:
            raise ValueError("kind is required for a bare variable index")
        index = variable
    name = variable_label(index, kind)
    return VarDisplay(name=name, color=string_color(name))


__all__ = ["VarDisplay", "display_name", "string_color", "string_hue", "variable_label"]
