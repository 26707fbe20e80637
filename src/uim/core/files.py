"""File builder — materializes file trees and native files on disk.

Structured content is serialized according to the file extension:
``.json`` as indented JSON, ``.yaml``/``.yml`` as block YAML.  Strings and
bytes are written verbatim.  Every :class:`OSError` is re-raised as
:class:`~uim.errors.FileSystemError`.
"""

from __future__ import annotations

import json
import logging
import shutil
from collections.abc import Sequence
from pathlib import Path
from typing import Any, cast

import yaml

from uim.core.merge import deep_merge
from uim.core.model.models import NativeFileInformation
from uim.errors import FileSystemError

logger = logging.getLogger(__name__)

_JSON_SUFFIXES = (".json",)
_YAML_SUFFIXES = (".yaml", ".yml")


def serialize(file_name: str, content: Any) -> str | bytes:
    """Serialize *content* for a file called *file_name*."""
    if isinstance(content, (str, bytes)):
        return content
    suffix = Path(file_name).suffix
    if suffix in _YAML_SUFFIXES:
        return yaml.safe_dump(content, sort_keys=False, allow_unicode=True)
    if suffix in _JSON_SUFFIXES:
        return json.dumps(content, indent=2, ensure_ascii=False) + "\n"
    raise ValueError(f"Cannot serialize structured content to {file_name}")


def parse(file_name: str, raw: str) -> Any:
    """Parse *raw* text according to the extension of *file_name*.

    Unknown extensions return the text unchanged.
    """
    suffix = Path(file_name).suffix
    if suffix in _YAML_SUFFIXES:
        return yaml.safe_load(raw)
    if suffix in _JSON_SUFFIXES:
        return json.loads(raw)
    return raw


def write_file(path: Path, content: Any) -> None:
    """Write *content* to *path*, creating parent directories as needed."""
    data = serialize(path.name, content)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(data, bytes):
            path.write_bytes(data)
        else:
            path.write_text(data, encoding="utf-8")
    except OSError as exc:
        raise FileSystemError(f"Cannot write {path}: {exc}") from exc
    logger.debug("Wrote %s", path)


def read_text(path: Path) -> str:
    """Read *path* as UTF-8 text."""
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FileSystemError(f"Cannot read {path}: {exc}") from exc


def write_native_files(files: Sequence[NativeFileInformation], root: Path) -> list[Path]:
    """Write converter output below *root*, overwriting existing files."""
    written: list[Path] = []
    for file in files:
        path = root.joinpath(*file.path)
        write_file(path, file.content)
        written.append(path)
    return written


def read_native_files(root: Path, directory: Sequence[str]) -> list[NativeFileInformation]:
    """Read every file directly inside ``root/<directory>`` as native files.

    Content is returned as text; converters parse it.  A missing directory
    yields an empty list.
    """
    base = root.joinpath(*directory)
    if not base.is_dir():
        return []
    return [
        NativeFileInformation(path=[*directory, path.name], content=read_text(path))
        for path in sorted(base.iterdir())
        if path.is_file()
    ]


def build_directory(tree: dict[str, Any], root: Path) -> list[Path]:
    """Materialize a project file tree below *root*.

    Keys ending in ``/`` are directories, all others files.  Structured
    content of an existing JSON/YAML file is deep-merged with the new
    content before writing.

    Raises:
        FileSystemError: If a write fails or an existing structured file
            cannot be parsed.
    """
    written: list[Path] = []
    for key, value in tree.items():
        if key.endswith("/"):
            directory = root / key.rstrip("/")
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise FileSystemError(f"Cannot create {directory}: {exc}") from exc
            if isinstance(value, dict):
                written.extend(build_directory(cast("dict[str, Any]", value), directory))
            continue

        path = root / key
        content = value
        if isinstance(value, dict) and path.is_file():
            try:
                existing = parse(path.name, read_text(path))
            except (ValueError, yaml.YAMLError) as exc:
                raise FileSystemError(f"Cannot merge into {path}: {exc}") from exc
            if isinstance(existing, dict):
                content = deep_merge(cast("dict[str, Any]", existing), value)
        write_file(path, content)
        written.append(path)
    return written


def delete_directory(path: Path) -> None:
    """Recursively delete *path* if it exists."""
    if not path.exists():
        return
    try:
        shutil.rmtree(path)
    except OSError as exc:
        raise FileSystemError(f"Cannot delete {path}: {exc}") from exc
    logger.debug("Deleted %s", path)
