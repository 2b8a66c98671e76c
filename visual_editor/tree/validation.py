# ------------------------------------------------------------
# Module: visual_editor/tree/validation.py
# Purpose: Pure structural checks over a binding box tree.
# ------------------------------------------------------------

"""Structural validation of a `BindingBoxTree`.

Summary:
    A well-formed tree is a forest of out-trees over the node array: every
    child index is in range, no node has more than one parent, there are no
    cycles, gates have their fixed arity and sibling edge names are unique.

Details:
    - `validate()` never raises; it returns a `ValidationResult` listing every
      issue found, each tagged with a kind and the offending node index.
    - `roots()` returns nodes without an incoming edge; a document may hold
      several independent queries side by side.
    - `parent_table()` is the explicit parent-index table the scope resolver
      walks. It is computed once per tree version.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Literal

from visual_editor.tree.models import GATE_ARITY, BindingBoxTree

IssueKind = Literal[
    "arity",
    "dangling_child",
    "shared_child",
    "cycle",
    "duplicate_edge_name",
    "unknown_edge",
]


@dataclass(frozen=True)
class ValidationIssue:
    """One structural problem, anchored at a node index."""

    kind: IssueKind
    node_index: int
    detail: str = ""

    def as_dict(self) -> dict:
        return {"kind": self.kind, "node_index": self.node_index, "detail": self.detail}


@dataclass(frozen=True)
class ValidationResult:
    issues: tuple[ValidationIssue, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.issues

    @property
    def first(self) -> ValidationIssue | None:
        return self.issues[0] if self.issues else None

    def of_kind(self, kind: IssueKind) -> list[ValidationIssue]:
        return [i for i in self.issues if i.kind == kind]


def _edges(tree: BindingBoxTree) -> Iterable[tuple[int, int]]:
    for parent, node in enumerate(tree.nodes):
        for child in node.children:
            yield parent, child


def roots(tree: BindingBoxTree) -> list[int]:
    """Indices of nodes with no incoming edge, ascending."""
    has_parent = {c for _, c in _edges(tree) if 0 <= c < len(tree.nodes)}
    return [i for i in range(len(tree.nodes)) if i not in has_parent]


def parent_table(tree: BindingBoxTree) -> tuple[int | None, ...]:
    """parent[i] for every node (None for roots).

    On a malformed tree with shared children the first parent in array
    order wins; callers that care validate first.
    """
    parents: list[int | None] = [None] * len(tree.nodes)
    for p, c in _edges(tree):
        if 0 <= c < len(parents) and parents[c] is None and c != p:
            parents[c] = p
    return tuple(parents)


def _find_cycles(tree: BindingBoxTree) -> list[int]:
    """Nodes at which a back edge closes a cycle (iterative DFS)."""
    n = len(tree.nodes)
    WHITE, GREY, BLACK = 0, 1, 2
    color = [WHITE] * n
    hits: list[int] = []
    for start in range(n):
        if color[start] != WHITE:
            continue
        stack: list[tuple[int, int]] = [(start, 0)]
        color[start] = GREY
        while stack:
            node, pos = stack[-1]
            children = tree.nodes[node].children
            if pos >= len(children):
                color[node] = BLACK
                stack.pop()
                continue
            stack[-1] = (node, pos + 1)
            child = children[pos]
            if not 0 <= child < n:
                continue
            if color[child] == GREY:
                hits.append(node)
            elif color[child] == WHITE:
                color[child] = GREY
                stack.append((child, 0))
    return hits


def validate(tree: BindingBoxTree) -> ValidationResult:
    """Check arity, index range, single-parent, acyclicity and edge-name uniqueness."""
    issues: list[ValidationIssue] = []
    n = len(tree.nodes)

    for i, node in enumerate(tree.nodes):
        want = GATE_ARITY.get(node.kind)
        if want is not None and len(node.children) != want:
            issues.append(
                ValidationIssue("arity", i, f"{node.kind} needs {want} children, has {len(node.children)}")
            )
        for c in node.children:
            if not 0 <= c < n:
                issues.append(ValidationIssue("dangling_child", i, f"child index {c} out of range"))

    seen_parent: dict[int, int] = {}
    for p, c in _edges(tree):
        if not 0 <= c < n:
            continue
        if c in seen_parent and seen_parent[c] != p:
            issues.append(
                ValidationIssue("shared_child", c, f"child of both {seen_parent[c]} and {p}")
            )
        elif c in seen_parent:
            issues.append(ValidationIssue("shared_child", c, f"listed twice under {p}"))
        else:
            seen_parent[c] = p

    for i in _find_cycles(tree):
        issues.append(ValidationIssue("cycle", i, "node reaches itself"))

    edge_set = set(_edges(tree))
    by_parent: dict[int, dict[str, int]] = {}
    for (p, c), name in sorted(tree.edge_names.items()):
        if (p, c) not in edge_set:
            issues.append(ValidationIssue("unknown_edge", p, f"name {name!r} on missing edge {p}->{c}"))
            continue
        taken = by_parent.setdefault(p, {})
        if name in taken:
            issues.append(
                ValidationIssue(
                    "duplicate_edge_name", p, f"name {name!r} used for children {taken[name]} and {c}"
                )
            )
        else:
            taken[name] = c

    return ValidationResult(tuple(issues))


__all__ = [
    "IssueKind",
    "ValidationIssue",
    "ValidationResult",
    "parent_table",
    "roots",
    "validate",
]
