"""Diagnostic & fix builder: turn a Reconciliation into reportable findings."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TYPE_CHECKING

from exhaustive_deps.analysis.parser import line_column
from exhaustive_deps.analysis.types import Diagnostic, DiagnosticKind, Fix

if TYPE_CHECKING:
    from tree_sitter import Node

    from exhaustive_deps.analysis.reconcile import Reconciliation, UnstableDependency

_IDENTIFIER = re.compile(r"^[^\W\d][\w$]*$|^\$[\w$]*$")
_MAYBE_CONSTRUCTIONS: frozenset[str] = frozenset({"conditional", "logical expression"})


def join_names(names: Iterable[str]) -> str:
    """'a' / 'a' and 'b' / 'a', 'b', and 'c'."""
    quoted = [f"'{name}'" for name in names]
    if len(quoted) <= 1:
        return "".join(quoted)
    if len(quoted) == 2:
        return f"{quoted[0]} and {quoted[1]}"
    return ", ".join(quoted[:-1]) + f", and {quoted[-1]}"


def _dependency_message(hook: str, names: list[str], adjective: str, verb: str) -> str:
    article = "an" if adjective[0] in "aeiou" else "a"
    if len(names) == 1:
        return (
            f"React Hook {hook} has {article} {adjective} dependency: {join_names(names)}. "
            f"Either {verb} it or remove the dependency array."
        )
    return (
        f"React Hook {hook} has {adjective} dependencies: {join_names(names)}. "
        f"Either {verb} them or remove the dependency array."
    )


def missing_message(hook: str, names: list[str]) -> str:
    return _dependency_message(hook, names, "missing", "include")


def unnecessary_message(hook: str, names: list[str]) -> str:
    return _dependency_message(hook, names, "unnecessary", "exclude")


def duplicate_message(hook: str, names: list[str]) -> str:
    return _dependency_message(hook, names, "duplicate", "omit")


def unstable_message(hook: str, unstable: UnstableDependency, array_line: int) -> str:
    name = unstable.binding.name
    construction = unstable.construction
    if construction == "function":
        wrapper, noun = "useCallback", "definition"
    else:
        wrapper, noun = "useMemo", "initialization"
    default_advice = f"wrap the {noun} of '{name}' in its own {wrapper}() Hook."
    if unstable.used_outside_callback:
        advice = f"To fix this, {default_advice}"
    else:
        advice = f"Move it inside the {hook} callback. Alternatively, {default_advice}"
    causation = "could make" if construction in _MAYBE_CONSTRUCTIONS else "makes"
    return (
        f"The '{name}' {construction} {causation} the dependencies of {hook} Hook "
        f"(at line {array_line}) change on every render. {advice}"
    )


def is_expressible(path: str) -> bool:
    """True if path can be written as a dotted identifier chain."""
    return all(_IDENTIFIER.match(part) for part in path.split("."))


class DiagnosticBuilder:
    """Build diagnostics (and one consolidated fix) for a call site."""

    def build(self, result: Reconciliation) -> list[Diagnostic]:
        site = result.site
        hook = site.name
        diagnostics: list[Diagnostic] = []

        if result.non_array and site.dependencies is not None:
            message = (
                f"React Hook {hook} was passed a dependency list that is not an array "
                "literal. This means we can't statically verify whether you've passed "
                "the correct dependencies."
            )
            return [self._at(site.dependencies, DiagnosticKind.NON_ARRAY_DEPENDENCY_LIST, hook, (), message)]
        if result.spread and site.dependencies is not None:
            message = (
                f"React Hook {hook} has a spread element in its dependency array. This "
                "means we can't statically verify whether you've passed the correct "
                "dependencies."
            )
            return [self._at(site.dependencies, DiagnosticKind.NON_ARRAY_DEPENDENCY_LIST, hook, (), message)]
        if result.unknown_callback:
            message = (
                f"React Hook {hook} received a function whose dependencies are unknown. "
                "Pass an inline function instead."
            )
            return [self._at(site.callback, DiagnosticKind.UNKNOWN_CALLBACK, hook, (), message)]
        if result.array is None:
            return diagnostics

        array_line, _ = line_column(result.array)
        for unstable in result.unstable:
            diagnostics.append(
                self._at(
                    unstable.binding.node,
                    DiagnosticKind.UNSTABLE_LITERAL_DEPENDENCY,
                    hook,
                    (unstable.binding.name,),
                    unstable_message(hook, unstable, array_line),
                )
            )

        for entry in result.complex:
            message = (
                f"React Hook {hook} has a complex expression in the dependency array. "
                "Extract it to a separate variable so it can be statically checked."
            )
            diagnostics.append(
                self._at(entry.node, DiagnosticKind.COMPLEX_DEPENDENCY, hook, (entry.source,), message)
            )

        if not result.needs_fix:
            return diagnostics

        fix = self.build_fix(result)
        if result.missing:
            names = [d.render() for d in result.missing]
            diagnostics.append(
                self._at(
                    result.array,
                    DiagnosticKind.MISSING_DEPENDENCY,
                    hook,
                    tuple(names),
                    missing_message(hook, names),
                    fix,
                )
            )
        if result.unnecessary:
            names = [d.source for d in result.unnecessary]
            diagnostics.append(
                self._at(
                    result.array,
                    DiagnosticKind.UNNECESSARY_DEPENDENCY,
                    hook,
                    tuple(names),
                    unnecessary_message(hook, names),
                    fix,
                )
            )
        if result.duplicates:
            names = list(dict.fromkeys(d.source for d in result.duplicates))
            diagnostics.append(
                self._at(
                    result.array,
                    DiagnosticKind.DUPLICATE_DEPENDENCY,
                    hook,
                    tuple(names),
                    duplicate_message(hook, names),
                    fix,
                )
            )
        return diagnostics

    def build_fix(self, result: Reconciliation) -> Fix | None:
        """Rewrite the array to the kept elements plus the missing paths."""
        if result.array is None:
            return None
        added = [d.render() for d in result.missing]
        if not all(is_expressible(path) for path in added):
            return None
        elements = [d.source for d in result.kept] + added
        replacement = "[" + ", ".join(elements) + "]"
        return Fix(
            start=result.array.start_byte,
            end=result.array.end_byte,
            replacement=replacement,
            description=f"Update the dependencies array to be: {replacement}",
        )

    def _at(
        self,
        node: Node,
        kind: DiagnosticKind,
        hook: str,
        names: tuple[str, ...],
        message: str,
        fix: Fix | None = None,
    ) -> Diagnostic:
        line, column = line_column(node)
        return Diagnostic(
            kind=kind,
            message=message,
            hook=hook,
            names=names,
            start=node.start_byte,
            end=node.end_byte,
            line=line,
            column=column,
            fix=fix,
        )


def apply_fixes(source: str, diagnostics: Iterable[Diagnostic]) -> str:
    """Apply each distinct fix once, right to left.

    A fix overlapping one that was already applied is skipped.
    """
    fixes = {
        (d.fix.start, d.fix.end, d.fix.replacement): d.fix
        for d in diagnostics
        if d.fix is not None
    }
    data = source.encode("utf-8")
    applied_from = len(data) + 1
    for fix in sorted(fixes.values(), key=lambda f: (f.start, f.end), reverse=True):
        if fix.end > applied_from:
            continue
        data = data[: fix.start] + fix.replacement.encode("utf-8") + data[fix.end :]
        applied_from = fix.start
    return data.decode("utf-8")
