"""Manifest loader: discover manifest documents and split off their headers.

Typical usage::

    loader = ManifestLoader(Path("plugin"), ValidatorSettings())
    result = loader.load()
    for manifest in result.manifests:
        print(manifest.kind, manifest.name)

Files are read and parsed concurrently on worker threads; results are
joined back in discovery order so two runs over the same tree always
produce the same sequence.
"""

from __future__ import annotations

import asyncio
import fnmatch
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from bondlint.config import ValidatorSettings
from bondlint.core.manifest.models import BodyRef, EntityKind, EntityManifest
from bondlint.core.report.models import Category, Finding
from bondlint.errors import ManifestRootError

logger = logging.getLogger(__name__)

HEADER_DELIMITER = "---"

# Keys whose values are rule mappings keyed by user-chosen parameter names.
_RULE_MAPPING_KEYS = frozenset({"parameter_validation"})
# Keys whose values are nested blocks with a fixed vocabulary.
_NESTED_BLOCK_KEYS = frozenset({"retry_config", "retry_logic", "error_handling"})
_KEY_ALIASES = {"enum": "allowed_values"}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


class HeaderBlockError(ValueError):
    """A header block was opened but never closed."""


@dataclass
class LoadResult:
    """Manifests plus the findings raised while reading them."""

    manifests: list[EntityManifest] = field(default_factory=list)
    findings: list[Finding] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def normalize_key(key: str) -> str:
    """``bondedAgent`` / ``bonded-agent`` -> ``bonded_agent``."""
    snake = _CAMEL_BOUNDARY.sub("_", key).replace("-", "_").lower()
    return _KEY_ALIASES.get(snake, snake)


def _normalize_block(block: Any) -> Any:
    if not isinstance(block, dict):
        return block
    return {
        normalize_key(k) if isinstance(k, str) else k: v for k, v in block.items()
    }


def normalize_header(raw: dict[str, Any]) -> dict[str, Any]:
    """Normalise header keys to snake_case.

    Parameter names and exit-code names are user data and keep their
    spelling; only the vocabulary inside each rule or block is rewritten.
    Top-level keys that YAML did not read as strings are stringified.
    """
    normalized: dict[str, Any] = {}
    for key, value in raw.items():
        # YAML reads bare `on:`, `yes:` or `404:` keys as bool or int.
        name = normalize_key(key) if isinstance(key, str) else str(key)
        if name in _RULE_MAPPING_KEYS and isinstance(value, dict):
            value = {param: _normalize_block(rule) for param, rule in value.items()}
        elif name in _NESTED_BLOCK_KEYS:
            value = _normalize_block(value)
        normalized[name] = value
    return normalized


def _in_event_loop() -> bool:
    """True when called from inside a running asyncio loop."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def split_header(text: str) -> tuple[str, int] | None:
    """Return ``(header_text, body_offset)`` or ``None`` if there is no header.

    The header must open on the first line of the document.

    Raises:
        HeaderBlockError: If the opening delimiter has no closing partner.
    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip() != HEADER_DELIMITER:
        return None

    offset = len(lines[0])
    header_lines: list[str] = []
    for line in lines[1:]:
        offset += len(line)
        if line.rstrip() == HEADER_DELIMITER:
            return "".join(header_lines), offset
        header_lines.append(line)
    raise HeaderBlockError("header block opened with '---' is never closed")


class ManifestLoader:
    """Discover and parse every manifest under a root directory."""

    def __init__(self, root: Path, settings: ValidatorSettings | None = None) -> None:
        self.root = root
        self.settings = settings or ValidatorSettings()

    def check_root(self) -> None:
        """Raise :class:`ManifestRootError` unless the root is a readable directory."""
        if not self.root.exists():
            raise ManifestRootError(self.root, "path does not exist")
        if not self.root.is_dir():
            raise ManifestRootError(self.root, "not a directory")
        try:
            next(self.root.iterdir(), None)
        except OSError as exc:
            raise ManifestRootError(self.root, str(exc)) from exc

    def discover(self) -> list[Path]:
        """Return candidate files in sorted relative-path order."""
        self.check_root()
        candidates: list[Path] = []
        for path in self.root.rglob("*"):
            if not path.is_file() or path.suffix not in self.settings.suffixes:
                continue
            relative = path.relative_to(self.root).as_posix()
            if any(fnmatch.fnmatch(relative, pattern) for pattern in self.settings.exclude):
                logger.debug("Excluded %s", relative)
                continue
            candidates.append(path)
        return sorted(candidates, key=lambda p: p.relative_to(self.root).as_posix())

    def load(self) -> LoadResult:
        """Discover and parse all manifests.

        Files are parsed on worker threads unless the caller is already
        inside a running event loop, in which case they are parsed in turn.

        Raises:
            ManifestRootError: If the root cannot be read.
        """
        paths = self.discover()
        if self.settings.workers > 1 and len(paths) > 1 and not _in_event_loop():
            outcomes = asyncio.run(self._load_concurrently(paths))
        else:
            outcomes = [self.load_file(path) for path in paths]

        result = LoadResult()
        for path, (manifest, findings) in zip(paths, outcomes, strict=True):
            result.findings.extend(findings)
            if manifest is not None:
                result.manifests.append(manifest)
            elif not findings:
                result.skipped.append(self._relative(path))
        logger.info(
            "Loaded %d manifest(s) from %s (%d file(s) skipped)",
            len(result.manifests),
            self.root,
            len(result.skipped),
        )
        return result

    async def _load_concurrently(
        self, paths: list[Path]
    ) -> list[tuple[EntityManifest | None, list[Finding]]]:
        semaphore = asyncio.Semaphore(self.settings.workers)

        async def _bounded(path: Path) -> tuple[EntityManifest | None, list[Finding]]:
            async with semaphore:
                return await asyncio.to_thread(self.load_file, path)

        return list(await asyncio.gather(*[_bounded(p) for p in paths]))

    def load_file(self, path: Path) -> tuple[EntityManifest | None, list[Finding]]:
        """Read one file.

        Returns the manifest (or ``None`` when the file is plain content or
        had to be dropped) and the findings raised for it.  Files outside
        the manifest directories only count as manifests when their header
        declares a ``kind``; until then their problems are not reported.
        """
        relative = self._relative(path)
        directory_kind = self._directory_kind(path)
        try:
            text = path.read_text(encoding="utf-8").removeprefix("\ufeff")
        except (OSError, UnicodeDecodeError) as exc:
            if directory_kind is None:
                logger.debug("Skipping unreadable content file %s: %s", relative, exc)
                return None, []
            return None, [Finding.error(Category.IO_ERROR, relative, f"cannot read file: {exc}")]

        try:
            split = split_header(text)
        except HeaderBlockError as exc:
            if directory_kind is None:
                return None, []
            return None, [Finding.error(Category.SCHEMA_ERROR, relative, str(exc))]
        if split is None:
            logger.debug("No header block in %s", relative)
            return None, []
        header_text, body_offset = split

        try:
            data: Any = yaml.safe_load(header_text)
        except yaml.YAMLError as exc:
            if directory_kind is None:
                return None, []
            message = f"header is not valid YAML: {exc}".replace("\n", " ")
            return None, [Finding.error(Category.SCHEMA_ERROR, relative, message)]
        if not isinstance(data, dict):
            if directory_kind is None:
                return None, []
            return None, [
                Finding.error(
                    Category.SCHEMA_ERROR,
                    relative,
                    f"header must be a mapping, got {type(data).__name__}",
                )
            ]

        raw = normalize_header(data)
        kind = self._resolve_kind(relative, raw, directory_kind)
        if isinstance(kind, Finding):
            return None, [kind]
        if kind is None:
            logger.debug("No manifest kind for %s, treating as content", relative)
            return None, []

        name = raw.get("name")
        manifest = EntityManifest(
            kind=kind,
            name=name if isinstance(name, str) else "",
            source_path=relative,
            raw_header=raw,
            body_ref=BodyRef(path=relative, offset=body_offset, length=len(text) - body_offset),
        )
        return manifest, []

    def _directory_kind(self, path: Path) -> EntityKind | None:
        """Kind of the nearest enclosing manifest directory."""
        for directory in reversed(path.relative_to(self.root).parts[:-1]):
            kind = self.settings.kind_for_directory(directory)
            if kind is not None:
                return EntityKind(kind)
        return None

    @staticmethod
    def _resolve_kind(
        relative: str, raw: dict[str, Any], directory_kind: EntityKind | None
    ) -> EntityKind | Finding | None:
        declared = raw.get("kind")
        if declared is None:
            return directory_kind
        try:
            return EntityKind(declared)
        except (TypeError, ValueError):
            allowed = ", ".join(k.value for k in EntityKind)
            return Finding.error(
                Category.SCHEMA_ERROR,
                relative,
                f"kind: {declared!r} is not one of {allowed}",
            )

    def _relative(self, path: Path) -> str:
        return path.relative_to(self.root).as_posix()
