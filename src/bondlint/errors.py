"""Fatal error types.

Problems inside a single manifest are never raised; they are reported as
findings.  These exceptions abort a run before any report exists.
"""

from __future__ import annotations

from pathlib import Path  # noqa: TC003


class BondlintError(Exception):
    """Base error for all fatal validator failures."""


class ManifestRootError(BondlintError):
    """The manifest root is missing, not a directory, or unreadable."""

    def __init__(self, path: Path, detail: str = "") -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Cannot read manifest root {path}" + (f": {detail}" if detail else ""))


class ConfigurationError(BondlintError):
    """A settings file failed parsing or validation."""
