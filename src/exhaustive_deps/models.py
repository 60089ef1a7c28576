"""Pydantic report models for JSON output."""

from __future__ import annotations

from pydantic import BaseModel

from exhaustive_deps.analysis.types import Diagnostic, DiagnosticKind, FileReport, Fix


class FixRecord(BaseModel):
    start: int
    end: int
    replacement: str
    description: str

    @classmethod
    def from_fix(cls, fix: Fix) -> FixRecord:
        return cls(
            start=fix.start,
            end=fix.end,
            replacement=fix.replacement,
            description=fix.description,
        )


class DiagnosticRecord(BaseModel):
    kind: DiagnosticKind
    message: str
    hook: str
    names: list[str] = []
    line: int
    column: int
    start: int
    end: int
    fix: FixRecord | None = None

    @classmethod
    def from_diagnostic(cls, diagnostic: Diagnostic) -> DiagnosticRecord:
        return cls(
            kind=diagnostic.kind,
            message=diagnostic.message,
            hook=diagnostic.hook,
            names=list(diagnostic.names),
            line=diagnostic.line,
            column=diagnostic.column,
            start=diagnostic.start,
            end=diagnostic.end,
            fix=FixRecord.from_fix(diagnostic.fix) if diagnostic.fix is not None else None,
        )


class FileReportRecord(BaseModel):
    file_path: str
    diagnostics: list[DiagnosticRecord] = []
    parse_error: str | None = None
    fixed: bool = False

    @classmethod
    def from_report(cls, report: FileReport, *, fixed: bool = False) -> FileReportRecord:
        return cls(
            file_path=report.file_path,
            diagnostics=[DiagnosticRecord.from_diagnostic(d) for d in report.diagnostics],
            parse_error=report.parse_error,
            fixed=fixed,
        )


class LintSummary(BaseModel):
    """Totals across a lint run plus the per-file records."""

    file_count: int = 0
    problem_count: int = 0
    fixable_count: int = 0
    parse_error_count: int = 0
    files: list[FileReportRecord] = []

    @classmethod
    def from_records(cls, records: list[FileReportRecord]) -> LintSummary:
        return cls(
            file_count=len(records),
            problem_count=sum(len(r.diagnostics) for r in records),
            fixable_count=sum(1 for r in records for d in r.diagnostics if d.fix is not None),
            parse_error_count=sum(1 for r in records if r.parse_error is not None),
            files=records,
        )

    @property
    def clean(self) -> bool:
        return self.problem_count == 0 and self.parse_error_count == 0
