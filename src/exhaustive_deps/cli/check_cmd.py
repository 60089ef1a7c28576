"""CLI check command: lint files and optionally apply fixes."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from exhaustive_deps.config import Config, RuleOptions, load_options, parse_options
from exhaustive_deps.exceptions import ConfigError, SourceReadError
from exhaustive_deps.linter import fix_file, iter_source_files, lint_file
from exhaustive_deps.logging.logger import LintLogger
from exhaustive_deps.models import FileReportRecord, LintSummary

console = Console()
err_console = Console(stderr=True)


class OutputFormat(StrEnum):
    TEXT = "text"
    JSON = "json"


def _resolve_options(
    config_file: Path | None,
    check_memoized_static: bool | None,
    additional_hooks: str | None,
) -> RuleOptions:
    """Options from file/discovery, with command-line flags taking precedence."""
    options = load_options(config_file)
    overrides: dict[str, object] = {}
    if check_memoized_static is not None:
        overrides["check_memoized_variable_is_static"] = check_memoized_static
    if additional_hooks is not None:
        overrides["additional_hooks"] = additional_hooks
    if not overrides:
        return options
    return parse_options({**options.model_dump(), **overrides}, "command line")


def render_text(summary: LintSummary) -> None:
    """path:line:col kind message, one finding per line, then totals."""
    for record in summary.files:
        path = escape(record.file_path)
        if record.parse_error is not None:
            console.print(
                f"{path}: [red]parse error[/red] {escape(record.parse_error)}", soft_wrap=True
            )
        for d in record.diagnostics:
            console.print(
                f"{path}:{d.line}:{d.column} [yellow]{d.kind}[/yellow] {escape(d.message)}",
                soft_wrap=True,
            )

    if summary.clean:
        console.print(f"[green]No problems found[/green] in {summary.file_count} file(s).")
        return
    line = f"[bold]{summary.problem_count} problem(s)[/bold] in {summary.file_count} file(s)"
    if summary.fixable_count:
        line += f", {summary.fixable_count} fixable with --fix"
    if summary.parse_error_count:
        line += f", {summary.parse_error_count} file(s) could not be parsed"
    console.print(line + ".")


def check_cmd(
    paths: Annotated[list[Path], typer.Argument(help="Files or directories to lint.")],
    config_file: Annotated[
        Path | None, typer.Option("--config", help="Options file (.json or .toml).")
    ] = None,
    fix: Annotated[bool, typer.Option("--fix", help="Rewrite dependency arrays in place.")] = False,
    output_format: Annotated[
        OutputFormat, typer.Option("--format", help="Output format.")
    ] = OutputFormat.TEXT,
    check_memoized_static: Annotated[
        bool | None,
        typer.Option(
            "--check-memoized-static/--no-check-memoized-static",
            help="Treat memoized values with static dependencies as static.",
        ),
    ] = None,
    additional_hooks: Annotated[
        str | None,
        typer.Option("--additional-hooks", help="Regex of extra hooks to check."),
    ] = None,
    log_events: Annotated[
        bool, typer.Option("--log", help="Write JSONL events to the log directory.")
    ] = False,
) -> None:
    """Check hook dependency arrays. Exit 1 if problems remain, 2 on bad input."""
    config = Config()
    try:
        options = _resolve_options(config_file, check_memoized_static, additional_hooks)
        files = iter_source_files(paths, config)
    except (ConfigError, SourceReadError) as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=2) from e

    event_log: LintLogger | None = None
    if log_events:
        config.ensure_dirs()
        event_log = LintLogger(config.log_dir)

    records: list[FileReportRecord] = []
    try:
        for path in files:
            if event_log is None:
                records.append(_check_one(path, options, fix=fix))
                continue
            with event_log.timed("lint.file", file_path=str(path)) as event:
                record = _check_one(path, options, fix=fix)
                event["problems"] = len(record.diagnostics)
                event["fixed"] = record.fixed
            records.append(record)
    except SourceReadError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=2) from e

    summary = LintSummary.from_records(records)
    if event_log is not None:
        event_log.log(
            "lint.run",
            {
                "files": summary.file_count,
                "problems": summary.problem_count,
                "parse_errors": summary.parse_error_count,
                "fix": fix,
            },
        )

    if output_format is OutputFormat.JSON:
        typer.echo(summary.model_dump_json(indent=2))
    else:
        render_text(summary)

    if not summary.clean:
        raise typer.Exit(code=1)


def _check_one(path: Path, options: RuleOptions, *, fix: bool) -> FileReportRecord:
    if fix:
        changed, report = fix_file(path, options)
        return FileReportRecord.from_report(report, fixed=changed)
    return FileReportRecord.from_report(lint_file(path, options))
