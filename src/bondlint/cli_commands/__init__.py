"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from bondlint.cli_commands.inspect import graph_cmd, list_cmd
    from bondlint.cli_commands.validate import validate

    cli.add_command(validate)
    cli.add_command(list_cmd)
    cli.add_command(graph_cmd)
