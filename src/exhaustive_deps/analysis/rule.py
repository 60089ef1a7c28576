"""ExhaustiveDepsRule: one analysis pass over a parsed file."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from exhaustive_deps.analysis.fixes import DiagnosticBuilder
from exhaustive_deps.analysis.hooks import HookRegistry
from exhaustive_deps.analysis.parser import line_column, node_key, parse_source
from exhaustive_deps.analysis.reconcile import DependencyReconciler
from exhaustive_deps.analysis.references import ReferenceExtractor
from exhaustive_deps.analysis.scope import ScopeBuilder
from exhaustive_deps.analysis.static import BUILTIN_STATIC_HOOKS, StaticClassifier, StaticHookSpec
from exhaustive_deps.config import RuleOptions

if TYPE_CHECKING:
    from tree_sitter import Node, Tree

    from exhaustive_deps.analysis.parser import NodeKey
    from exhaustive_deps.analysis.types import Diagnostic, HookCallSite, Scope, StaticLabel

logger = logging.getLogger(__name__)

Reporter = Callable[["Diagnostic"], None]


@dataclass
class AnalysisContext:
    """Per-file state: hook sites found by the walk and the label cache."""

    registry: HookRegistry
    sites: dict[NodeKey, HookCallSite] = field(default_factory=dict)
    labels: dict[int, StaticLabel] = field(default_factory=dict)

    def on_call(self, call: Node, scope: Scope) -> None:
        site = self.registry.classify(call, scope)
        if site is not None:
            self.sites[node_key(call)] = site


class ExhaustiveDepsRule:
    """Check every hook call in a file against its dependency array.

    Usage:
        rule = ExhaustiveDepsRule(options)
        rule.check(tree, source, diagnostics.append)
    """

    def __init__(self, options: RuleOptions | None = None) -> None:
        self.options = options if options is not None else RuleOptions()
        self.registry = HookRegistry(additional_hooks=self.options.additional_hooks)
        self.specs: dict[str, StaticHookSpec] = {
            **BUILTIN_STATIC_HOOKS,
            **{
                name: StaticHookSpec.from_option(value)
                for name, value in self.options.static_hooks.items()
            },
        }

    def check(self, tree: Tree | None, source: str, report: Reporter) -> None:
        """Analyze tree (parsed from source when None), passing each finding to report."""
        if tree is None:
            tree = parse_source(source)

        context = AnalysisContext(registry=self.registry)
        scopes = ScopeBuilder(on_call=context.on_call).build(tree)
        extractor = ReferenceExtractor(scopes)
        classifier = StaticClassifier(
            specs=self.specs,
            sites=context.sites,
            extractor=extractor,
            verify_memo_chain=self.options.check_memoized_variable_is_static,
            cache=context.labels,
        )
        reconciler = DependencyReconciler(
            scopes,
            extractor,
            classifier,
            report_static_dependencies=self.options.report_static_dependencies,
        )
        builder = DiagnosticBuilder()

        for site in context.sites.values():
            result = reconciler.reconcile(site)
            diagnostics = builder.build(result)
            logger.debug(
                "%s at line %d: required=%s declared=%d findings=%d",
                site.name,
                line_column(site.node)[0],
                [d.render() for d in result.required],
                len(result.declared),
                len(diagnostics),
            )
            for diagnostic in diagnostics:
                report(diagnostic)

    def analyze(self, source: str) -> list[Diagnostic]:
        """Convenience wrapper: parse source and collect its diagnostics."""
        diagnostics: list[Diagnostic] = []
        self.check(None, source, diagnostics.append)
        return diagnostics
