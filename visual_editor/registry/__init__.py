"""Editor/display registry for predicate kinds (see `registry.core`)."""

from visual_editor.registry.builtin import register_builtins
from visual_editor.registry.core import PredicateRegistry, tag_of
from visual_editor.registry.protocols import EditorContext


def build_default_registry() -> PredicateRegistry:
    return register_builtins(PredicateRegistry())


default_registry = build_default_registry()

__all__ = ["EditorContext", "PredicateRegistry", "build_default_registry", "default_registry", "tag_of"]
