"""Deep-merge helpers for canonical models, configuration and file trees.

Two merge flavours are used throughout the build:

* :func:`merge_with_array_customizer` — nested mappings merge recursively and
  when both sides hold a list the lists are concatenated with exact duplicates
  removed.  Used to layer language-model overrides onto a canonical model.
* :func:`deep_merge` — nested mappings merge recursively, every other value
  (lists included) is last-write-wins.  Used for file trees, registries and
  reverse-build results.

Paths into nested mappings are explicit segment sequences, never dotted
strings, so file names such as ``skill.json`` are addressed unambiguously.
"""

from __future__ import annotations

import copy
from collections.abc import Sequence
from typing import Any, cast

_MISSING = object()


def unique(items: Sequence[Any]) -> list[Any]:
    """Return *items* without exact duplicates, first-seen order preserved.

    Equality (not hashing) decides duplicates, so mappings are supported.
    """
    result: list[Any] = []
    for item in items:
        if item not in result:
            result.append(item)
    return result


def merge_with_array_customizer(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *updates* into *base* (mutates *base*).

    * Dict values are merged recursively.
    * When both values are lists they are concatenated, duplicates removed.
    * All other values overwrite.
    """
    for key, value in updates.items():
        current = base.get(key, _MISSING)
        if isinstance(value, dict) and isinstance(current, dict):
            merge_with_array_customizer(
                cast("dict[str, Any]", current), cast("dict[str, Any]", value)
            )
        elif isinstance(value, list) and isinstance(current, list):
            base[key] = unique([*cast("list[Any]", current), *copy.deepcopy(value)])
        else:
            base[key] = copy.deepcopy(value)
    return base


def deep_merge(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *updates* into *base* (mutates *base*).

    * Dict values are merged recursively.
    * All other values, lists included, overwrite.
    """
    for key, value in updates.items():
        current = base.get(key, _MISSING)
        if isinstance(value, dict) and isinstance(current, dict):
            deep_merge(cast("dict[str, Any]", current), cast("dict[str, Any]", value))
        else:
            base[key] = copy.deepcopy(value)
    return base


def merge_file_tree(defaults: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Return a new tree with *overrides* laid over *defaults*.

    Neither input is mutated.  Every non-mapping value present in
    *overrides* survives unchanged; defaults only fill in absent paths.
    """
    return deep_merge(copy.deepcopy(defaults), overrides)


def has_path(tree: dict[str, Any], path: Sequence[str]) -> bool:
    """Return ``True`` if every segment of *path* exists in *tree*."""
    return get_path(tree, path, _MISSING) is not _MISSING


def get_path(tree: dict[str, Any], path: Sequence[str], default: Any = None) -> Any:
    """Return the value at *path*, or *default* if any segment is missing."""
    node: Any = tree
    for segment in path:
        if not isinstance(node, dict) or segment not in node:
            return default
        node = cast("dict[str, Any]", node)[segment]
    return node


def set_path(tree: dict[str, Any], path: Sequence[str], value: Any) -> None:
    """Set *value* at *path*, creating intermediate mappings on demand.

    Raises:
        ValueError: If *path* is empty or crosses a non-mapping value.
    """
    if not path:
        raise ValueError("path must contain at least one segment")
    node = tree
    for segment in path[:-1]:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            raise ValueError(f"cannot set {list(path)}: '{segment}' is not a mapping")
        node = cast("dict[str, Any]", child)
    node[path[-1]] = value


def normalize_file_tree(tree: dict[str, Any]) -> dict[str, Any]:
    """Expand compound keys of a project file tree into nested directories.

    ``{"skill-package/models/": {...}}`` becomes
    ``{"skill-package/": {"models/": {...}}}`` and ``{"a/b.json": {...}}``
    becomes ``{"a/": {"b.json": {...}}}``.  File contents are left untouched.
    """
    normalized: dict[str, Any] = {}
    for key, value in tree.items():
        is_directory = key.endswith("/")
        segments = [s for s in key.split("/") if s]
        if not segments:
            continue

        node = normalized
        for segment in segments[:-1]:
            node = node.setdefault(f"{segment}/", {})

        leaf = f"{segments[-1]}/" if is_directory else segments[-1]
        if is_directory and isinstance(value, dict):
            child = normalize_file_tree(cast("dict[str, Any]", value))
            existing = node.get(leaf)
            if isinstance(existing, dict):
                deep_merge(cast("dict[str, Any]", existing), child)
            else:
                node[leaf] = child
        else:
            node[leaf] = copy.deepcopy(value)
    return normalized
