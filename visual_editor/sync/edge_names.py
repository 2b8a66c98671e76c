# ------------------------------------------------------------
# Module: visual_editor/sync/edge_names.py
# Purpose: Allocate and check single-letter child-set names.
# ------------------------------------------------------------

"""Child-set name allocation.

Names are single uppercase letters `A`..`Z`, unique among one parent's
direct children. The alphabet is a hard limit: once all 26 letters are
taken, `next_edge_name` returns None and callers decide what to do (the
editing session rejects the edit; tree->graph conversion leaves the edge
unnamed).
"""

from __future__ import annotations

import string
from collections.abc import Iterable

from visual_editor.core.errors import EdgeNameError

EDGE_NAME_ALPHABET: tuple[str, ...] = tuple(string.ascii_uppercase)


def next_edge_name(used: Iterable[str | None]) -> str | None:
    """First letter in A..Z not in `used`, or None when all are taken."""
    taken = {u for u in used if u}
    for letter in EDGE_NAME_ALPHABET:
        if letter not in taken:
            return letter
    return None


def assign_edge_name(source: str, used: Iterable[str | None], requested: str | None = None) -> str:
    """Validate an explicit name or allocate the next free one.

    Raises:
        EdgeNameError: `requested` is empty or already used by a sibling, or
            no letter is left to allocate.
    """
    taken = {u for u in used if u}
    if requested is not None:
        name = requested.strip()
        if not name:
            raise EdgeNameError("edge name must not be empty", source=source, name=requested)
        if name in taken:
            raise EdgeNameError(f"edge name {name!r} already used under {source}", source=source, name=name)
        return name
    name = next_edge_name(taken)
    if name is None:
        raise EdgeNameError(f"no free edge name left under {source}", source=source)
    return name


__all__ = ["EDGE_NAME_ALPHABET", "assign_edge_name", "next_edge_name"]
