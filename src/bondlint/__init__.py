"""bondlint: integrity and bonding validator for agent plugin manifests."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from bondlint.validator import ValidationRun as ValidationRun
    from bondlint.validator import validate_tree as validate_tree

_LAZY_EXPORTS = {
    "ValidationRun": "bondlint.validator",
    "validate_tree": "bondlint.validator",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'bondlint' has no attribute {name!r}")
