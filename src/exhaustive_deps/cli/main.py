"""Root Typer app for the exhaustive-deps CLI."""

from __future__ import annotations

import typer

app = typer.Typer(
    name="exhaustive-deps",
    help="exhaustive-deps: Check React hook dependency arrays.",
    no_args_is_help=True,
)


def _register_commands() -> None:
    """Register all CLI commands."""
    from exhaustive_deps.cli.check_cmd import check_cmd
    from exhaustive_deps.cli.config_cmd import config_cmd

    app.command(name="check")(check_cmd)
    app.command(name="config")(config_cmd)


_register_commands()
