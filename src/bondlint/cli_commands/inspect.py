"""``bondlint list`` / ``bondlint graph``: look at what a tree declares."""

from __future__ import annotations

from pathlib import Path

import click

from bondlint.cli_commands._output import console, print_entities_table, print_graph_table
from bondlint.cli_commands.validate import dump_json, run_validation

_FORMAT = click.option(
    "--format",
    "fmt",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format.",
)


@click.command("list")
@click.argument("root", type=click.Path(path_type=Path))
@_FORMAT
def list_cmd(root: Path, fmt: str) -> None:
    """List the agent, skill, and command manifests under ROOT."""
    run = run_validation(root)

    if not run.manifests:
        console.print("[yellow]No manifests found.[/yellow]")
        return

    if fmt == "json":
        dump_json(
            [
                {
                    "kind": m.kind.value,
                    "name": m.name,
                    "sourcePath": m.source_path,
                    "schemaValid": m.schema_valid,
                }
                for m in run.manifests
            ]
        )
    else:
        print_entities_table(run.manifests)


@click.command("graph")
@click.argument("root", type=click.Path(path_type=Path))
@_FORMAT
def graph_cmd(root: Path, fmt: str) -> None:
    """Show the bond graph built from the manifests under ROOT."""
    run = run_validation(root)

    if fmt == "json":
        dump_json(run.graph.to_dict())
        return

    if not run.graph.edges:
        console.print("[yellow]No bonds declared.[/yellow]")
        return
    print_graph_table(run.graph)
