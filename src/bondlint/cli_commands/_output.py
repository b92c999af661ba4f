"""Shared CLI output formatters."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path  # noqa: TC003

from rich.console import Console
from rich.table import Table

from bondlint.core.graph.builder import BondGraph  # noqa: TC001
from bondlint.core.manifest.models import EntityManifest  # noqa: TC001
from bondlint.core.report.builder import Report  # noqa: TC001

console = Console()


def print_summary(report: Report, *, written_to: Path | None = None) -> None:
    """One closing line: pass/fail, counts, and the exit code."""
    counts = f"{report.error_count} error(s), {report.warning_count} warning(s)"
    if report.exit_code == 0:
        console.print(f"[green]Validation passed[/green]: {counts}")
    else:
        console.print(
            f"[bold red]Validation failed[/bold red]: {counts} (exit code {report.exit_code})"
        )
    if written_to is not None:
        console.print(f"Report written to {written_to}")


def print_entities_table(manifests: list[EntityManifest]) -> None:
    """Pretty-print discovered manifests as a table."""
    table = Table(title="Manifests")
    table.add_column("Kind", style="cyan")
    table.add_column("Name")
    table.add_column("Path")
    table.add_column("Schema")

    for manifest in manifests:
        table.add_row(
            manifest.kind.value,
            manifest.name or "-",
            manifest.source_path,
            "[green]ok[/green]" if manifest.schema_valid else "[red]invalid[/red]",
        )

    console.print(table)


def print_graph_table(graph: BondGraph) -> None:
    """Pretty-print bond graph edges; dangling targets are flagged."""
    table = Table(title="Bond Graph")
    table.add_column("Source", style="cyan")
    table.add_column("Relation")
    table.add_column("Target")
    table.add_column("Bond Type")

    for edge in graph.edges:
        target = str(edge.target)
        if graph.is_dangling(edge):
            target = f"[red]{target} (missing)[/red]"
        table.add_row(str(edge.source), edge.relation.value, target, edge.bond_type or "-")

    console.print(table)


def write_report(path: Path, text: str) -> None:
    """Write *text* to *path* atomically (temp file in the same directory + rename)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(suffix=".tmp", prefix=path.name + ".", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        Path(tmp_path).unlink(missing_ok=True)
        raise
