# ------------------------------------------------------------
# Module: visual_editor/scope/resolver.py
# Purpose: Resolve which variables and child sets are visible at a tree node.
# ------------------------------------------------------------

"""Variable scope resolution over a binding box tree.

Summary:
    A node sees every variable declared by the boxes on its ancestor chain,
    root first, followed by its own declarations. Descendants may add but
    never hide variables. Only the names of a node's *direct* child edges
    are referenceable from its size filters and constraints.

Details:
    - The parent-index table is computed once per resolver (one resolver per
      tree version) and per-node answers are memoized, so repeated lookups
      while editing stay O(1) after the first walk.
    - The resolver never raises on bad input: an out-of-range node yields an
      empty scope, and predicates referencing out-of-scope names are reported
      by `check_scope()` as `ScopeIssue` values.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from visual_editor.scope.naming import display_name
from visual_editor.tree.filters import involved_variables, referenced_child_names
from visual_editor.tree.models import BindingBoxTree
from visual_editor.tree.validation import parent_table
from visual_editor.tree.variables import Variable, VarKind

log = logging.getLogger("visual_editor.scope")

PredicateSlot = Literal["filter", "size_filter", "constraint"]


@dataclass(frozen=True)
class ScopeIssue:
    """A predicate on a box refers to something not visible at that box."""

    node_index: int
    slot: PredicateSlot
    position: int
    detail: str
    variable: Variable | None = None
    child_name: str | None = None

    def as_dict(self) -> dict:
        return {
            "node_index": self.node_index,
            "slot": self.slot,
            "position": self.position,
            "detail": self.detail,
            "variable": self.variable.model_dump() if self.variable else None,
            "child_name": self.child_name,
        }


class ScopeResolver:
    """Scope queries against one immutable tree version."""

    def __init__(self, tree: BindingBoxTree, version: int = 0):
        self.tree = tree
        self.version = version
        self._parents = parent_table(tree)
        self._chains: dict[int, tuple[int, ...]] = {}
        self._vars: dict[tuple[int, str], tuple[Variable, ...]] = {}

    def _in_range(self, node_index: int) -> bool:
        return 0 <= node_index < len(self.tree.nodes)

    def chain(self, node_index: int) -> tuple[int, ...]:
        """Node indices from the root down to `node_index` (inclusive)."""
        if not self._in_range(node_index):
            return ()
        cached = self._chains.get(node_index)
        if cached is not None:
            return cached
        path: list[int] = []
        seen: set[int] = set()
        cur: int | None = node_index
        while cur is not None and cur not in seen:
            # seen-guard: a cyclic (invalid) tree must not loop forever
            seen.add(cur)
            path.append(cur)
            cur = self._parents[cur]
        out = tuple(reversed(path))
        self._chains[node_index] = out
        return out

    def available_variables(self, node_index: int, kind: VarKind) -> list[Variable]:
        """Variables of `kind` visible at `node_index`, root-to-node order."""
        key = (node_index, kind)
        cached = self._vars.get(key)
        if cached is None:
            seen: set[int] = set()
            out: list[Variable] = []
            for idx in self.chain(node_index):
                box = self.tree.nodes[idx].box
                if box is None:
                    continue
                for v in box.declared(kind):
                    if v not in seen:
                        seen.add(v)
                        out.append(Variable(kind=kind, index=v))
            cached = tuple(out)
            self._vars[key] = cached
        return list(cached)

    def available_child_set_names(self, node_index: int) -> list[str]:
        """Names of the direct child edges of `node_index`."""
        if not self._in_range(node_index):
            return []
        return self.tree.names_under(node_index)

    def types_for_variable(self, node_index: int, variable: Variable) -> list[str]:
        """Types declared for `variable` by the box on the chain that introduced it."""
        for idx in self.chain(node_index):
            box = self.tree.nodes[idx].box
            if box is None:
                continue
            types = box.declared_types(variable.kind, variable.index)
            if types is not None:
                return list(types)
        return []

    def describe(self, node_index: int) -> dict:
        """Scope summary for the editor: variables with display names, child sets."""
        out: dict = {"node_index": node_index}
        for kind, key in (("object", "object_vars"), ("event", "event_vars")):
            rows = []
            for v in self.available_variables(node_index, kind):
                d = display_name(v)
                rows.append(
                    {
                        "index": v.index,
                        "name": d.name,
                        "color": d.color,
                        "types": self.types_for_variable(node_index, v),
                    }
                )
            out[key] = rows
        out["child_sets"] = self.available_child_set_names(node_index)
        return out

    def check_scope(self, node_index: int) -> list[ScopeIssue]:
        """Scope errors of the predicates on one box (empty for gates)."""
        if not self._in_range(node_index):
            return []
        box = self.tree.nodes[node_index].box
        if box is None:
            return []
        visible = set(self.available_variables(node_index, "object")) | set(
            self.available_variables(node_index, "event")
        )
        names = set(self.available_child_set_names(node_index))
        issues: list[ScopeIssue] = []
        slots: tuple[tuple[PredicateSlot, list], ...] = (
            ("filter", box.filters),
            ("size_filter", box.size_filters),
            ("constraint", box.constraints),
        )
        for slot, values in slots:
            for pos, value in enumerate(values):
                for var in sorted(involved_variables(value), key=lambda v: (v.kind, v.index)):
                    if var not in visible:
                        issues.append(
                            ScopeIssue(
                                node_index, slot, pos, f"variable {var.label} not in scope", variable=var
                            )
                        )
                for name in referenced_child_names(value):
                    if name not in names:
                        issues.append(
                            ScopeIssue(
                                node_index, slot, pos, f"unknown child set {name!r}", child_name=name
                            )
                        )
        if issues:
            log.debug("scope issues node=%s count=%d", node_index, len(issues))
        return issues

    def check_all(self) -> list[ScopeIssue]:
        out: list[ScopeIssue] = []
        for i in range(len(self.tree.nodes)):
            out.extend(self.check_scope(i))
        return out


__all__ = ["PredicateSlot", "ScopeIssue", "ScopeResolver"]
