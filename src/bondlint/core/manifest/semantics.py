"""Cross-field checks on retry blocks and parameter rules.

These run on the raw (key-normalised) header, not on the typed model, so
they also cover manifests that failed schema validation.  A value with the
wrong type is left to the schema validator and skipped here.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from bondlint.core.manifest.models import EntityKind, EntityManifest
from bondlint.core.report.models import Category, Finding

BACKOFF_STRATEGIES = ("fixed", "exponential")

_RETRY_KEYS: dict[EntityKind, str] = {
    EntityKind.AGENT: "retry_config",
    EntityKind.SKILL: "retry_logic",
}
_STRING_REFINEMENTS = ("min_length", "max_length", "pattern")
_NUMERIC_REFINEMENTS = ("minimum", "maximum")
_NUMERIC_TYPES = ("number", "integer")


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _as_number(value: Any) -> int | float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return value


def check_retry_config(subject: str, source_path: str, block: Mapping[str, Any]) -> list[Finding]:
    """Validate one retry block; *subject* is the dotted field path of the block."""
    findings: list[Finding] = []

    def _error(message: str) -> None:
        findings.append(Finding.error(Category.INVALID_RETRY_CONFIG, source_path, f"{subject}.{message}"))

    max_attempts = _as_int(block.get("max_attempts"))
    if max_attempts is not None and max_attempts < 1:
        _error(f"max_attempts: must be at least 1, got {max_attempts}")

    backoff = block.get("backoff")
    if isinstance(backoff, str) and backoff not in BACKOFF_STRATEGIES:
        _error(f"backoff: {backoff!r} is not one of {', '.join(BACKOFF_STRATEGIES)}")

    initial_delay = _as_int(block.get("initial_delay_ms"))
    if initial_delay is not None:
        if initial_delay < 0:
            _error(f"initial_delay_ms: must not be negative, got {initial_delay}")
        elif initial_delay == 0 and backoff == "exponential":
            _error("initial_delay_ms: must be greater than 0 with exponential backoff")

    multiplier = _as_number(block.get("multiplier"))
    if multiplier is not None:
        if backoff == "fixed":
            findings.append(
                Finding.warning(
                    Category.INVALID_RETRY_CONFIG,
                    source_path,
                    f"{subject}.multiplier: ignored with fixed backoff",
                )
            )
        elif backoff == "exponential" and multiplier <= 1:
            _error(f"multiplier: must be greater than 1 with exponential backoff, got {multiplier}")

    max_delay = _as_int(block.get("max_delay_ms"))
    if max_delay is not None and initial_delay is not None and max_delay < initial_delay:
        _error(f"max_delay_ms: {max_delay} is smaller than initial_delay_ms {initial_delay}")

    return findings


def check_parameter_rule(subject: str, source_path: str, rule: Mapping[str, Any]) -> list[Finding]:
    """Validate one parameter rule; *subject* is the dotted field path of the rule."""
    findings: list[Finding] = []

    def _error(message: str) -> None:
        findings.append(
            Finding.error(Category.INVALID_PARAMETER_RULE, source_path, f"{subject}.{message}")
        )

    param_type = rule.get("type")
    if isinstance(param_type, str):
        if param_type != "string":
            for key in _STRING_REFINEMENTS:
                if key in rule:
                    _error(f"{key}: only valid for type 'string', not {param_type!r}")
        if param_type not in _NUMERIC_TYPES:
            for key in _NUMERIC_REFINEMENTS:
                if key in rule:
                    _error(f"{key}: only valid for a numeric type, not {param_type!r}")

    min_length = _as_int(rule.get("min_length"))
    max_length = _as_int(rule.get("max_length"))
    for key, value in (("min_length", min_length), ("max_length", max_length)):
        if value is not None and value < 0:
            _error(f"{key}: must not be negative, got {value}")
    if min_length is not None and max_length is not None and min_length > max_length:
        _error(f"min_length: {min_length} exceeds max_length {max_length}")

    minimum = _as_number(rule.get("minimum"))
    maximum = _as_number(rule.get("maximum"))
    if minimum is not None and maximum is not None and minimum > maximum:
        _error(f"minimum: {minimum} exceeds maximum {maximum}")

    pattern = rule.get("pattern")
    if isinstance(pattern, str):
        try:
            re.compile(pattern)
        except re.error as exc:
            _error(f"pattern: not a valid regular expression ({exc})")

    if "allowed_values" in rule:
        allowed = rule["allowed_values"]
        if allowed is None or (isinstance(allowed, list) and not allowed):
            _error("allowed_values: must list at least one value")

    return findings


def check_manifest_semantics(manifest: EntityManifest) -> list[Finding]:
    """Run every retry and parameter-rule check that applies to *manifest*."""
    raw = manifest.raw_header
    findings: list[Finding] = []

    retry_key = _RETRY_KEYS.get(manifest.kind)
    if retry_key is not None and isinstance(raw.get(retry_key), Mapping):
        findings.extend(
            check_retry_config(
                f"{manifest.subject}.{retry_key}", manifest.source_path, raw[retry_key]
            )
        )

    rules = raw.get("parameter_validation")
    if manifest.kind is not EntityKind.AGENT and isinstance(rules, Mapping):
        for param, rule in rules.items():
            if isinstance(rule, Mapping):
                findings.extend(
                    check_parameter_rule(
                        f"{manifest.subject}.parameter_validation.{param}",
                        manifest.source_path,
                        rule,
                    )
                )

    return findings
