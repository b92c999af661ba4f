"""Validator settings: where manifests live and how a run behaves.

Settings come from, in order of precedence: CLI flags, an explicit
``--config`` file, a ``.bondlint.yaml`` file at the manifest root, and
finally the defaults below.

Example ``.bondlint.yaml``::

    agent_dirs: [agents]
    skill_dirs: [skills]
    command_dirs: [commands]
    exclude:
      - "docs/*"
      - "${BONDLINT_EXTRA_EXCLUDE}"
    workers: 8
    fail_on_warnings: false
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bondlint.errors import ConfigurationError

SETTINGS_FILENAME = ".bondlint.yaml"


class ValidatorSettings(BaseModel):
    """Knobs for one validation run."""

    model_config = ConfigDict(extra="forbid")

    agent_dirs: list[str] = Field(
        default_factory=lambda: ["agents"],
        description="Directory names whose manifests are agents.",
    )
    skill_dirs: list[str] = Field(
        default_factory=lambda: ["skills"],
        description="Directory names whose manifests are skills.",
    )
    command_dirs: list[str] = Field(
        default_factory=lambda: ["commands"],
        description="Directory names whose manifests are commands.",
    )
    suffixes: list[str] = Field(
        default_factory=lambda: [".md"],
        description="File suffixes that may carry a header block.",
    )
    exclude: list[str] = Field(
        default_factory=lambda: [".git/*", "node_modules/*"],
        description="Glob patterns (relative POSIX paths) skipped during discovery.",
    )
    workers: int = Field(default=4, ge=1, description="Concurrent file parsers.")
    fail_on_warnings: bool = Field(
        default=False,
        description="Treat warnings as errors when mapping the exit code.",
    )

    def kind_for_directory(self, directory: str) -> str | None:
        """Return the entity kind (``agent``, ``skill``, ``command``) a directory stands for."""
        if directory in self.agent_dirs:
            return "agent"
        if directory in self.skill_dirs:
            return "skill"
        if directory in self.command_dirs:
            return "command"
        return None


def load_settings(path: Path) -> ValidatorSettings:
    """Read a YAML settings file, interpolate env vars, and validate.

    Raises:
        ConfigurationError: On read errors, YAML errors, or schema failures.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read {path}: {exc}") from exc

    expanded = os.path.expandvars(raw)

    try:
        data: Any = yaml.safe_load(expanded)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"YAML parse error in {path}: {exc}") from exc

    if data is None:
        return ValidatorSettings()
    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {path} must be a mapping")

    try:
        return ValidatorSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid settings in {path}: {exc}") from exc


def resolve_settings(
    root: Path,
    config_path: Path | None = None,
    **overrides: Any,
) -> ValidatorSettings:
    """Pick the settings file for *root* and apply non-``None`` overrides."""
    if config_path is not None:
        settings = load_settings(config_path)
    elif (root / SETTINGS_FILENAME).is_file():
        settings = load_settings(root / SETTINGS_FILENAME)
    else:
        settings = ValidatorSettings()

    update = {key: value for key, value in overrides.items() if value is not None}
    if not update:
        return settings
    try:
        return ValidatorSettings.model_validate({**settings.model_dump(), **update})
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc
