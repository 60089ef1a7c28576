"""DependencyReconciler: required vs declared dependencies for one hook call."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from exhaustive_deps.analysis.parser import contains, expression_children, text, unwrap_parens
from exhaustive_deps.analysis.references import pure_scope_ids
from exhaustive_deps.analysis.static import construction_type
from exhaustive_deps.analysis.types import DependencyPath

if TYPE_CHECKING:
    from tree_sitter import Node

    from exhaustive_deps.analysis.references import ReferenceExtractor
    from exhaustive_deps.analysis.scope import ScopeTree
    from exhaustive_deps.analysis.static import StaticClassifier
    from exhaustive_deps.analysis.types import Binding, HookCallSite


@dataclass(frozen=True, slots=True)
class DeclaredDependency:
    """One element of a dependency array.

    ``dependency`` is set when the element resolves to a local binding,
    ``global_name`` when its root identifier resolves to nothing. Elements
    that are neither are complex expressions.
    """

    node: Node
    source: str
    dependency: DependencyPath | None = None
    global_name: str | None = None
    path: tuple[str, ...] = ()

    @property
    def is_complex(self) -> bool:
        return self.dependency is None and self.global_name is None

    @property
    def key(self) -> tuple[object, ...]:
        if self.dependency is not None:
            return (self.dependency.binding.id, self.path)
        return ("global", self.global_name, self.path)

    def covers(self, required: DependencyPath) -> bool:
        return self.dependency is not None and self.dependency.covers(required)


@dataclass(frozen=True, slots=True)
class UnstableDependency:
    """A declared dependency that is a fresh construction on every render."""

    declared: DeclaredDependency
    binding: Binding
    construction: str
    used_outside_callback: bool


@dataclass(slots=True)
class Reconciliation:
    """Outcome of comparing a hook's callback with its dependency array."""

    site: HookCallSite
    array: Node | None = None
    non_array: bool = False
    spread: bool = False
    unknown_callback: bool = False
    required: list[DependencyPath] = field(default_factory=list)
    declared: list[DeclaredDependency] = field(default_factory=list)
    kept: list[DeclaredDependency] = field(default_factory=list)
    missing: list[DependencyPath] = field(default_factory=list)
    unnecessary: list[DeclaredDependency] = field(default_factory=list)
    duplicates: list[DeclaredDependency] = field(default_factory=list)
    complex: list[DeclaredDependency] = field(default_factory=list)
    unstable: list[UnstableDependency] = field(default_factory=list)

    @property
    def needs_fix(self) -> bool:
        return bool(self.missing or self.unnecessary or self.duplicates)


class DependencyReconciler:
    """Compute the missing/unnecessary/duplicate diff for a hook call site."""

    def __init__(
        self,
        scopes: ScopeTree,
        extractor: ReferenceExtractor,
        classifier: StaticClassifier,
        *,
        report_static_dependencies: bool = False,
    ) -> None:
        self.scopes = scopes
        self.extractor = extractor
        self.classifier = classifier
        self.report_static_dependencies = report_static_dependencies

    def reconcile(self, site: HookCallSite) -> Reconciliation:
        result = Reconciliation(site=site)
        if site.dependencies is None:
            return result  # no array: the hook runs on every render

        array = unwrap_parens(site.dependencies)
        if array.type != "array":
            result.non_array = True
            return result
        result.array = array
        elements = expression_children(array)
        if any(e.type == "spread_element" for e in elements):
            result.spread = True
            return result

        if not site.has_inline_callback:
            callback = unwrap_parens(site.callback)
            if callback.type == "identifier" and text(callback) not in {text(e) for e in elements}:
                result.unknown_callback = True
            return result

        refs = self.extractor.extract(site)
        static_used: set[int] = set()
        for dependency in refs.dependencies.values():
            if self.classifier.is_static(dependency.binding):
                static_used.add(dependency.binding.id)
            else:
                result.required.append(dependency)

        result.declared = [self._declared(element) for element in elements]
        seen: set[tuple[object, ...]] = set()
        for declared in result.declared:
            if declared.is_complex:
                result.complex.append(declared)
                result.kept.append(declared)
                continue
            if declared.key in seen:
                result.duplicates.append(declared)
                continue
            seen.add(declared.key)
            if any(declared.covers(r) for r in result.required):
                result.kept.append(declared)
            elif self._tolerated_static(declared, static_used):
                result.kept.append(declared)
            else:
                result.unnecessary.append(declared)

        result.missing = [
            r for r in result.required if not any(d.covers(r) for d in result.declared)
        ]
        result.unstable = self._unstable(site, array, result.declared)
        return result

    def _declared(self, element: Node) -> DeclaredDependency:
        source = text(element)
        node = unwrap_parens(element)
        path: list[str] = []
        while node.type == "member_expression":
            prop = node.child_by_field_name("property")
            obj = node.child_by_field_name("object")
            if prop is None or obj is None or prop.type != "property_identifier":
                return DeclaredDependency(element, source)
            path.append(text(prop))
            node = unwrap_parens(obj)
        if node.type != "identifier":
            return DeclaredDependency(element, source)

        path.reverse()
        use = self.scopes.use_at(node)
        binding = use.binding if use is not None else None
        if binding is None:
            return DeclaredDependency(
                element, source, global_name=text(node), path=tuple(path)
            )
        return DeclaredDependency(
            element,
            source,
            dependency=DependencyPath(binding, tuple(path), element.start_byte),
            path=tuple(path),
        )

    def _tolerated_static(self, declared: DeclaredDependency, static_used: set[int]) -> bool:
        if self.report_static_dependencies or declared.dependency is None:
            return False
        return declared.dependency.binding.id in static_used

    def _unstable(
        self, site: HookCallSite, array: Node, declared: list[DeclaredDependency]
    ) -> list[UnstableDependency]:
        pure = pure_scope_ids(site.scope)
        found: list[UnstableDependency] = []
        reported: set[int] = set()
        for entry in declared:
            if entry.dependency is None or entry.path:
                continue
            binding = entry.dependency.binding
            if binding.id in reported or binding.scope.id not in pure:
                continue
            construction = construction_type(binding)
            if construction is None:
                continue
            reported.add(binding.id)
            used_outside = any(
                not contains(site.callback, use.node) and not contains(array, use.node)
                for use in binding.uses
            )
            found.append(UnstableDependency(entry, binding, construction, used_outside))
        return found
