"""Manifest discovery, typed headers, and header checks."""

from bondlint.core.manifest.loader import LoadResult, ManifestLoader, split_header
from bondlint.core.manifest.models import (
    AgentHeader,
    BodyRef,
    BondLinks,
    CommandHeader,
    EntityKind,
    EntityManifest,
    ErrorHandling,
    ParameterRule,
    RetryConfig,
    SkillHeader,
)
from bondlint.core.manifest.schema import find_duplicate_names, validate_manifest
from bondlint.core.manifest.semantics import (
    check_manifest_semantics,
    check_parameter_rule,
    check_retry_config,
)

__all__ = [
    "AgentHeader",
    "BodyRef",
    "BondLinks",
    "CommandHeader",
    "EntityKind",
    "EntityManifest",
    "ErrorHandling",
    "LoadResult",
    "ManifestLoader",
    "ParameterRule",
    "RetryConfig",
    "SkillHeader",
    "check_manifest_semantics",
    "check_parameter_rule",
    "check_retry_config",
    "find_duplicate_names",
    "split_header",
    "validate_manifest",
]
