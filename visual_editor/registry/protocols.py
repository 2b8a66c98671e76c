# ------------------------------------------------------------
# Module: visual_editor/registry/protocols.py
# Purpose: Editor/display interfaces and the context passed to editors.
# ------------------------------------------------------------

"""Editor and display interfaces for predicate kinds.

Summary:
    A *display* turns a filter/size filter/constraint into a short label for
    the canvas. An *editor* turns it into a form descriptor: a list of fields,
    each with its current value and the options the picker may offer (only
    what is in scope at the node being edited).

Developer Guidance:
    - Keep both callables pure: no I/O, no logging, no mutation of `value`.
    - Editors receive an `EditorContext`; never reach into the tree directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from visual_editor.tree.variables import Variable

# Form descriptor returned by editors (JSON-serializable).
EditorForm = dict[str, Any]


@dataclass(frozen=True)
class EditorContext:
    """What the predicate being edited may reference.

    Attributes:
        object_vars / event_vars: variables in scope at the node.
        child_sets: names of the node's direct child edges.
        labels: label names defined on the node's box.
        node_id: graph node id of the box being edited.
    """

    object_vars: tuple[Variable, ...] = ()
    event_vars: tuple[Variable, ...] = ()
    child_sets: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()
    node_id: str = ""


class Editor(Protocol):
    """(value, ctx) -> form descriptor."""

    def __call__(self, value: Any, ctx: EditorContext) -> EditorForm: ...


class Display(Protocol):
    """(value, compact) -> one-line label."""

    def __call__(self, value: Any, compact: bool = False) -> str: ...


__all__ = ["Display", "Editor", "EditorContext", "EditorForm"]
