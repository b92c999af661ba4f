"""Findings, report ordering, and the exit-code table."""

from bondlint.core.report.builder import (
    EXIT_CODES,
    EXIT_FATAL_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_FAILED,
    FailureFamily,
    Report,
    build_report,
    exit_code_for,
)
from bondlint.core.report.models import Category, Finding, Severity

__all__ = [
    "EXIT_CODES",
    "EXIT_FATAL_ERROR",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_FAILED",
    "Category",
    "FailureFamily",
    "Finding",
    "Report",
    "Severity",
    "build_report",
    "exit_code_for",
]
