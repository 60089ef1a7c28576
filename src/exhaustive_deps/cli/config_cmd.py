"""CLI config command: show the resolved rule options."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from exhaustive_deps.config import load_options
from exhaustive_deps.exceptions import ConfigError

console = Console(stderr=True)


def config_cmd(
    config_file: Annotated[
        Path | None, typer.Option("--config", help="Options file (.json or .toml).")
    ] = None,
) -> None:
    """Print the options the check command would use, as JSON."""
    try:
        options = load_options(config_file)
    except ConfigError as e:
        console.print(f"[red]Config error:[/red] {escape(str(e))}")
        raise typer.Exit(code=2) from e
    typer.echo(json.dumps(options.to_json_dict(), indent=2))
