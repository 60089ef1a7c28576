"""exhaustive-deps: dependency-array checking for React hooks.

Public API:
    lint_source(source, options=None, file_path="<input>") -> FileReport
    lint_file(path, options=None) -> FileReport
    lint_files(paths, options=None, config=None) -> list[FileReport]
    apply_fixes(source, diagnostics) -> str
    load_options(path=None, search_dir=None) -> RuleOptions
"""

from __future__ import annotations

from exhaustive_deps.analysis.types import Diagnostic, DiagnosticKind, FileReport, Fix
from exhaustive_deps.config import Config, RuleOptions, load_options
from exhaustive_deps.exceptions import ConfigError, ExhaustiveDepsError, SourceReadError
from exhaustive_deps.linter import apply_fixes, fix_source, lint_file, lint_files, lint_source

__version__ = "0.1.0"

__all__ = [
    "Config",
    "ConfigError",
    "Diagnostic",
    "DiagnosticKind",
    "ExhaustiveDepsError",
    "FileReport",
    "Fix",
    "RuleOptions",
    "SourceReadError",
    "apply_fixes",
    "fix_source",
    "lint_file",
    "lint_files",
    "lint_source",
    "load_options",
]
