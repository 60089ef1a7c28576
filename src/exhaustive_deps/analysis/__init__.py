"""Hook dependency analysis for JavaScript/JSX.

Public API:
    ExhaustiveDepsRule(options).check(tree, source, report)
    parse_source(source) -> Tree
    apply_fixes(source, diagnostics) -> str
"""

from __future__ import annotations

from exhaustive_deps.analysis.fixes import apply_fixes
from exhaustive_deps.analysis.parser import first_syntax_error, parse_source
from exhaustive_deps.analysis.rule import AnalysisContext, ExhaustiveDepsRule
from exhaustive_deps.analysis.static import BUILTIN_STATIC_HOOKS, StaticHookSpec
from exhaustive_deps.analysis.types import (
    Diagnostic,
    DiagnosticKind,
    FileReport,
    Fix,
    HookKind,
)

__all__ = [
    "BUILTIN_STATIC_HOOKS",
    "AnalysisContext",
    "Diagnostic",
    "DiagnosticKind",
    "ExhaustiveDepsRule",
    "FileReport",
    "Fix",
    "HookKind",
    "StaticHookSpec",
    "apply_fixes",
    "first_syntax_error",
    "parse_source",
]
