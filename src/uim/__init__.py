"""Universal Interaction Model — one conversational model, many voice platforms."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from uim.context import BuildFlags as BuildFlags
    from uim.driver import BuildDriver as BuildDriver
    from uim.project import Project as Project

_LAZY_EXPORTS = {
    "BuildDriver": "uim.driver",
    "BuildFlags": "uim.context",
    "Project": "uim.project",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'uim' has no attribute {name!r}")
