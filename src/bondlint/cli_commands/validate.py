"""``bondlint validate``: validate a manifest tree and report findings."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from bondlint.cli_commands._output import print_summary, write_report
from bondlint.core.report.builder import EXIT_FATAL_ERROR

if TYPE_CHECKING:
    from bondlint.validator import ValidationRun


def run_validation(
    root: Path,
    config_path: Path | None = None,
    **overrides: object,
) -> ValidationRun:
    """Resolve settings and validate *root*; fatal errors exit with code 2."""
    from bondlint.config import resolve_settings
    from bondlint.errors import BondlintError
    from bondlint.validator import validate_tree

    try:
        settings = resolve_settings(root, config_path, **overrides)
        return validate_tree(root, settings)
    except BondlintError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_FATAL_ERROR)


@click.command()
@click.argument("root", type=click.Path(path_type=Path))
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Report format.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Settings file (defaults to ROOT/.bondlint.yaml when present).",
)
@click.option("--workers", type=click.IntRange(min=1), default=None, help="Concurrent file parsers.")
@click.option("--fail-on-warnings", is_flag=True, help="Let warnings fail the run.")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the report to a file instead of stdout.",
)
def validate(
    root: Path,
    fmt: str,
    config_path: Path | None,
    workers: int | None,
    fail_on_warnings: bool,
    output: Path | None,
) -> None:
    """Validate the manifests under ROOT.

    Exits 0 when no errors are found, 2 when ROOT cannot be read, and a
    category-specific code otherwise (see the exit-code table).
    """
    run = run_validation(
        root,
        config_path,
        workers=workers,
        fail_on_warnings=True if fail_on_warnings else None,
    )
    report = run.report
    rendered = report.render("json" if fmt == "json" else "text")

    if output is not None:
        write_report(output, rendered)
        print_summary(report, written_to=output)
    else:
        click.echo(rendered, nl=False)
        if fmt == "text":
            print_summary(report)

    sys.exit(report.exit_code)


def dump_json(data: object) -> None:
    """Echo *data* as stable, indented JSON."""
    click.echo(json.dumps(data, indent=2, sort_keys=True))
