"""ReferenceExtractor: free variables of a hook callback, narrowed to paths."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from exhaustive_deps.analysis.parser import contains, same_node, text
from exhaustive_deps.analysis.types import DependencyPath, ScopeKind

if TYPE_CHECKING:
    from tree_sitter import Node

    from exhaustive_deps.analysis.scope import ScopeTree
    from exhaustive_deps.analysis.types import Binding, HookCallSite, Scope

logger = logging.getLogger(__name__)

_WRITE_PARENTS: frozenset[str] = frozenset(
    {"assignment_expression", "augmented_assignment_expression"}
)


@dataclass(frozen=True, slots=True)
class ExtractedReferences:
    """Dependencies a callback needs, keyed by binding id in first-use order."""

    dependencies: dict[int, DependencyPath] = field(default_factory=dict)
    mutations: dict[int, Binding] = field(default_factory=dict)


def component_scope(scope: Scope) -> Scope:
    """Nearest enclosing function scope, or the module scope."""
    for candidate in scope.ancestors():
        if candidate.kind in (ScopeKind.FUNCTION, ScopeKind.MODULE):
            return candidate
    return scope


def pure_scope_ids(scope: Scope) -> set[int]:
    """Scopes whose values can change between renders of the component.

    That is every scope from the call site's scope up to and including the
    component scope. Outer functions and the module scope are excluded.
    """
    ids: set[int] = set()
    boundary = component_scope(scope)
    for candidate in scope.ancestors():
        ids.add(candidate.id)
        if candidate is boundary:
            break
    return ids


def access_path(identifier: Node) -> tuple[str, ...]:
    """Static property chain hanging off identifier.

    ``a.b.c`` gives ("b", "c"); ``a[b].c`` gives (); ``a.b.c()`` gives ("b",)
    since the receiver, not the method, is what the callback depends on.
    Assignment targets drop their last property the same way.
    """
    path: list[str] = []
    current = identifier
    parent = current.parent
    while (
        parent is not None
        and parent.type == "member_expression"
        and same_node(parent.child_by_field_name("object"), current)
    ):
        prop = parent.child_by_field_name("property")
        if prop is None or prop.type != "property_identifier":
            break
        path.append(text(prop))
        current = parent
        parent = current.parent

    if path and parent is not None and _is_call_or_write_target(parent, current):
        path.pop()
    return tuple(path)


def _is_call_or_write_target(parent: Node, node: Node) -> bool:
    if parent.type == "call_expression":
        return same_node(parent.child_by_field_name("function"), node)
    if parent.type in _WRITE_PARENTS:
        return same_node(parent.child_by_field_name("left"), node)
    return parent.type == "update_expression"


def common_prefix(a: tuple[str, ...], b: tuple[str, ...]) -> tuple[str, ...]:
    size = 0
    for left, right in zip(a, b, strict=False):
        if left != right:
            break
        size += 1
    return a[:size]


class ReferenceExtractor:
    """Collect the narrowed dependency paths of one hook callback.

    Usage:
        refs = ReferenceExtractor(scope_tree).extract(site)
    """

    def __init__(self, scopes: ScopeTree) -> None:
        self.scopes = scopes

    def extract(self, site: HookCallSite) -> ExtractedReferences:
        callback = site.callback
        pure = pure_scope_ids(site.scope)
        paths: dict[int, DependencyPath] = {}
        mutations: dict[int, Binding] = {}

        for use in self.scopes.uses_within(callback):
            binding = use.binding
            if binding is None:
                continue  # global or undeclared: not ours to track
            if contains(callback, binding.scope.node):
                continue  # declared inside the callback itself
            if binding.scope.id not in pure:
                continue  # module or outer-function value
            if use.is_write:
                mutations[binding.id] = binding
                continue

            path = access_path(use.node)
            existing = paths.get(binding.id)
            if existing is None:
                paths[binding.id] = DependencyPath(binding, path, use.node.start_byte)
            else:
                narrowed = common_prefix(existing.path, path)
                if narrowed != existing.path:
                    paths[binding.id] = DependencyPath(binding, narrowed, existing.offset)

        for binding_id, binding in mutations.items():
            paths.pop(binding_id, None)
            logger.debug(
                "%s callback at byte %d assigns to '%s'; excluded from dependencies",
                site.name,
                site.node.start_byte,
                binding.name,
            )
        return ExtractedReferences(dependencies=paths, mutations=mutations)
