"""Linter facade: lint sources, files and directory trees."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from exhaustive_deps.analysis import (
    ExhaustiveDepsRule,
    apply_fixes,
    first_syntax_error,
    parse_source,
)
from exhaustive_deps.analysis.types import Diagnostic, FileReport
from exhaustive_deps.config import Config, RuleOptions
from exhaustive_deps.exceptions import SourceReadError

logger = logging.getLogger(__name__)

MAX_FIX_PASSES = 10


def lint_source(
    source: str,
    options: RuleOptions | None = None,
    file_path: str = "<input>",
    *,
    rule: ExhaustiveDepsRule | None = None,
) -> FileReport:
    """Lint one JavaScript/JSX source string.

    A file that does not parse gets a report with parse_error set and no
    diagnostics; hook analysis on a broken tree would report noise.
    """
    if rule is None:
        rule = ExhaustiveDepsRule(options)
    tree = parse_source(source)
    error = first_syntax_error(tree)
    if error is not None:
        logger.warning("Skipping %s: %s", file_path, error)
        return FileReport(file_path=file_path, diagnostics=[], parse_error=error)

    diagnostics: list[Diagnostic] = []
    rule.check(tree, source, diagnostics.append)
    diagnostics.sort(key=lambda d: (d.start, d.end))
    return FileReport(file_path=file_path, diagnostics=diagnostics)


def read_source(path: Path | str) -> str:
    """File contents as text, line endings untouched."""
    path = Path(path)
    try:
        return path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        msg = f"Cannot read {path}: {e}"
        raise SourceReadError(msg) from e


def lint_file(
    path: Path | str,
    options: RuleOptions | None = None,
    *,
    rule: ExhaustiveDepsRule | None = None,
) -> FileReport:
    """Read and lint one file. Raises SourceReadError if it can't be read."""
    return lint_source(read_source(path), options, str(path), rule=rule)


def iter_source_files(paths: Iterable[Path | str], config: Config | None = None) -> list[Path]:
    """Expand directories to the JS files under them, in sorted order.

    Files named explicitly are kept whatever their extension. Directories
    listed in config.exclude_dirs are never descended into.
    """
    if config is None:
        config = Config()
    found: list[Path] = []
    seen: set[Path] = set()
    for raw in paths:
        path = Path(raw)
        if path.is_file():
            candidates = [path]
        elif path.is_dir():
            candidates = sorted(
                p
                for p in path.rglob("*")
                if p.is_file()
                and p.suffix in config.extensions
                and not any(part in config.exclude_dirs for part in p.relative_to(path).parts)
            )
        else:
            msg = f"No such file or directory: {path}"
            raise SourceReadError(msg)
        for candidate in candidates:
            if candidate not in seen:
                seen.add(candidate)
                found.append(candidate)
    return found


def lint_files(
    paths: Iterable[Path | str],
    options: RuleOptions | None = None,
    config: Config | None = None,
) -> list[FileReport]:
    """Lint every source file under paths with one shared rule instance."""
    rule = ExhaustiveDepsRule(options)
    return [lint_file(path, rule=rule) for path in iter_source_files(paths, config)]


def fix_source(
    source: str,
    options: RuleOptions | None = None,
    file_path: str = "<input>",
) -> tuple[str, FileReport]:
    """Apply fixes until the source stops changing.

    Returns the fixed source and the report for it, i.e. what remains.
    """
    rule = ExhaustiveDepsRule(options)
    report = lint_source(source, file_path=file_path, rule=rule)
    for _ in range(MAX_FIX_PASSES):
        fixed = apply_fixes(source, report.diagnostics)
        if fixed == source:
            break
        source = fixed
        report = lint_source(source, file_path=file_path, rule=rule)
    return source, report


def fix_file(path: Path | str, options: RuleOptions | None = None) -> tuple[bool, FileReport]:
    """Fix a file in place. Returns whether it changed and what remains."""
    path = Path(path)
    original = read_source(path)
    fixed, report = fix_source(original, options, str(path))
    changed = fixed != original
    if changed:
        path.write_bytes(fixed.encode("utf-8"))
        logger.info("Fixed %s", path)
    return changed, report


__all__ = [
    "apply_fixes",
    "fix_file",
    "fix_source",
    "iter_source_files",
    "lint_file",
    "lint_files",
    "lint_source",
    "read_source",
]
