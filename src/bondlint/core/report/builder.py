"""Report assembly and the exit-code contract.

Exit codes are a fixed table so tooling can rely on them across runs:

====  ==========================================================
code  meaning
====  ==========================================================
0     no errors (warnings alone never fail a run by default)
1     errors from more than one failure family
2     fatal: manifest root unreadable or settings invalid
3     schema errors only
4     bond errors only (broken bonds, circular dependencies)
5     config errors only (retry blocks, parameter rules)
6     duplicate names only
7     unreadable manifest files only
====  ==========================================================
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict

from bondlint.core.report.models import CATEGORY_ORDER, Category, Finding, Severity

EXIT_SUCCESS = 0
EXIT_VALIDATION_FAILED = 1
EXIT_FATAL_ERROR = 2


class FailureFamily(str, Enum):
    SCHEMA = "SchemaError"
    BOND = "BondError"
    CONFIG = "ConfigError"
    DUPLICATE = "DuplicateName"
    IO = "IOError"


CATEGORY_FAMILY: dict[Category, FailureFamily] = {
    Category.SCHEMA_ERROR: FailureFamily.SCHEMA,
    Category.IO_ERROR: FailureFamily.IO,
    Category.DUPLICATE_NAME: FailureFamily.DUPLICATE,
    Category.ORPHAN_SKILL: FailureFamily.BOND,
    Category.BROKEN_BOND: FailureFamily.BOND,
    Category.CIRCULAR_DEPENDENCY: FailureFamily.BOND,
    Category.INVALID_RETRY_CONFIG: FailureFamily.CONFIG,
    Category.INVALID_PARAMETER_RULE: FailureFamily.CONFIG,
}

EXIT_CODES: dict[FailureFamily, int] = {
    FailureFamily.SCHEMA: 3,
    FailureFamily.BOND: 4,
    FailureFamily.CONFIG: 5,
    FailureFamily.DUPLICATE: 6,
    FailureFamily.IO: 7,
}

OutputFormat = Literal["text", "json"]


def sort_findings(findings: list[Finding]) -> list[Finding]:
    """Group by path, then category; detection order breaks ties (stable sort)."""
    return sorted(findings, key=lambda f: (f.subject_path, CATEGORY_ORDER[f.category]))


def exit_code_for(findings: list[Finding], *, fail_on_warnings: bool = False) -> int:
    """Map findings to a process exit code using :data:`EXIT_CODES`."""
    failing = [f for f in findings if f.is_error or fail_on_warnings]
    if not failing:
        return EXIT_SUCCESS
    families = {CATEGORY_FAMILY[f.category] for f in failing}
    if len(families) > 1:
        return EXIT_VALIDATION_FAILED
    return EXIT_CODES[families.pop()]


class Report(BaseModel):
    """Every finding of one run, in report order, plus the exit code."""

    model_config = ConfigDict(frozen=True)

    findings: tuple[Finding, ...]
    exit_code: int

    @property
    def error_count(self) -> int:
        return sum(1 for f in self.findings if f.severity is Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for f in self.findings if f.severity is Severity.WARNING)

    def to_dict(self) -> dict[str, object]:
        return {
            "exitCode": self.exit_code,
            "errorCount": self.error_count,
            "warningCount": self.warning_count,
            "findings": [f.to_dict() for f in self.findings],
        }

    def render_text(self) -> str:
        return "".join(f"{f.format_line()}\n" for f in self.findings)

    def render_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, sort_keys=True) + "\n"

    def render(self, fmt: OutputFormat) -> str:
        return self.render_json() if fmt == "json" else self.render_text()


def build_report(findings: list[Finding], *, fail_on_warnings: bool = False) -> Report:
    ordered = sort_findings(findings)
    return Report(
        findings=tuple(ordered),
        exit_code=exit_code_for(ordered, fail_on_warnings=fail_on_warnings),
    )
