"""bondlint CLI entrypoint."""

from __future__ import annotations

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from bondlint import __version__


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__, prog_name="bondlint")
@click.option("--verbose", "-v", is_flag=True, help="Log every validation step to stderr.")
@click.option("--telemetry", is_flag=True, help="Export tracing spans to the console.")
def main(verbose: bool, telemetry: bool) -> None:
    """Validate agent, skill, and command manifests of a plugin."""
    _configure_logging(verbose)
    if telemetry:
        from bondlint.utils.telemetry import configure_telemetry

        configure_telemetry()


# Register subcommands
from bondlint.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
