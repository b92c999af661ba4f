"""One validation run, end to end.

Loader -> schema validator -> bond graph -> integrity and config checks ->
report.  Everything is rebuilt from disk on every call; nothing is kept
between runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from bondlint.config import ValidatorSettings
from bondlint.core.graph.builder import BondGraph, build_graph
from bondlint.core.graph.integrity import check_integrity
from bondlint.core.manifest.loader import ManifestLoader
from bondlint.core.manifest.models import EntityManifest
from bondlint.core.manifest.schema import find_duplicate_names, validate_manifest
from bondlint.core.manifest.semantics import check_manifest_semantics
from bondlint.core.report.builder import Report, build_report
from bondlint.core.report.models import Finding
from bondlint.utils.telemetry import (
    ATTR_EDGE_COUNT,
    ATTR_EXIT_CODE,
    ATTR_FINDING_COUNT,
    ATTR_MANIFEST_COUNT,
    ATTR_NODE_COUNT,
    ATTR_ROOT,
    stage_span,
)

logger = logging.getLogger(__name__)


@dataclass
class ValidationRun:
    """What a run produced: the checked manifests, their graph, and the report."""

    root: Path
    manifests: list[EntityManifest]
    graph: BondGraph
    report: Report


def validate_tree(root: Path, settings: ValidatorSettings | None = None) -> ValidationRun:
    """Validate every manifest under *root*.

    Raises:
        ManifestRootError: If *root* is missing or unreadable.  No report is
            produced in that case.
    """
    settings = settings or ValidatorSettings()
    findings: list[Finding] = []

    with stage_span("bondlint.load", **{ATTR_ROOT: str(root)}) as span:
        loaded = ManifestLoader(root, settings).load()
        findings.extend(loaded.findings)
        span.set_attribute(ATTR_MANIFEST_COUNT, len(loaded.manifests))

    with stage_span("bondlint.schema") as span:
        manifests: list[EntityManifest] = []
        for manifest in loaded.manifests:
            checked, schema_findings = validate_manifest(manifest)
            manifests.append(checked)
            findings.extend(schema_findings)
        findings.extend(find_duplicate_names(manifests))
        span.set_attribute(ATTR_FINDING_COUNT, len(findings))

    with stage_span("bondlint.graph") as span:
        graph = build_graph(manifests)
        span.set_attribute(ATTR_NODE_COUNT, len(graph.nodes))
        span.set_attribute(ATTR_EDGE_COUNT, len(graph.edges))

    with stage_span("bondlint.integrity"):
        findings.extend(check_integrity(graph))

    with stage_span("bondlint.semantics"):
        for manifest in manifests:
            findings.extend(check_manifest_semantics(manifest))

    with stage_span("bondlint.report", **{ATTR_FINDING_COUNT: len(findings)}) as span:
        report = build_report(findings, fail_on_warnings=settings.fail_on_warnings)
        span.set_attribute(ATTR_EXIT_CODE, report.exit_code)

    logger.info(
        "Validated %d manifest(s): %d error(s), %d warning(s), exit code %d",
        len(manifests),
        report.error_count,
        report.warning_count,
        report.exit_code,
    )
    return ValidationRun(root=root, manifests=manifests, graph=graph, report=report)
