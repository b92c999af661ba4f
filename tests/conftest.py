"""Shared fixtures: build small plugin trees on disk."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import yaml

WriteManifest = Callable[..., Path]


def render_manifest(header: dict[str, Any], body: str = "# Title\n\nProse.\n") -> str:
    """Serialise *header* as a ``---`` block followed by *body*."""
    return f"---\n{yaml.safe_dump(header, sort_keys=False)}---\n{body}"


@pytest.fixture
def plugin_root(tmp_path: Path) -> Path:
    root = tmp_path / "plugin"
    root.mkdir()
    return root


@pytest.fixture
def write_manifest(plugin_root: Path) -> WriteManifest:
    """``write_manifest("agents/a.md", name="a", skills=["s1"])`` -> path."""

    def _write(relative: str, body: str = "# Title\n\nProse.\n", **header: Any) -> Path:
        header.setdefault("description", f"{header.get('name', 'entity')} manifest")
        path = plugin_root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_manifest(header, body), encoding="utf-8")
        return path

    return _write
