"""Project — canonical model files, build directory and project configuration.

A project directory looks like::

    project.yaml
    models/
      en.json
      de-DE.yaml
    build/
      platform.alexa/
      platform.googleAssistant/
"""

from __future__ import annotations

import logging
import shutil
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from uim.config import PROJECT_CONFIG_FILE, ProjectConfig, ProjectConfigLoader
from uim.core.files import parse, read_text, write_file
from uim.errors import FileSystemError, ModelNotFoundError, ModelValidationError

if TYPE_CHECKING:
    from uim.core.model.converter import ModelConverter
    from uim.core.model.models import CanonicalModel

logger = logging.getLogger(__name__)

MODEL_SUFFIXES = (".json", ".yaml", ".yml")
BACKUP_DIRECTORY = ".backup"


class Project:
    """Access to a project's configuration, models and build output."""

    def __init__(
        self,
        root: Path,
        config: ProjectConfig | None = None,
        *,
        build_directory: str | None = None,
    ) -> None:
        self.root = root
        self.config = config or ProjectConfig()
        self._build_directory = build_directory

    @classmethod
    def load(
        cls,
        root: Path,
        *,
        stage: str | None = None,
        build_directory: str | None = None,
    ) -> Project:
        """Load ``project.yaml`` from *root*."""
        config = ProjectConfigLoader(root / PROJECT_CONFIG_FILE).load(stage=stage)
        return cls(root, config, build_directory=build_directory)

    @property
    def stage(self) -> str | None:
        return self.config.stage

    @property
    def build_directory(self) -> str:
        return self._build_directory or self.config.build_directory

    def get_build_path(self) -> Path:
        return self.root / self.build_directory

    def get_models_path(self) -> Path:
        return self.root / self.config.models_directory

    def get_project_name(self) -> str:
        """Return the configured project name, else the directory name."""
        return self.config.name or self.root.resolve().name

    def has_platform(self, platform_directory: str) -> bool:
        """Return ``True`` if the platform has been built before."""
        return (self.get_build_path() / platform_directory).is_dir()

    # ------------------------------------------------------------------
    # Canonical models
    # ------------------------------------------------------------------

    def get_model_path(self, locale: str) -> Path | None:
        """Return the existing model file for *locale*, if any."""
        for suffix in MODEL_SUFFIXES:
            path = self.get_models_path() / f"{locale}{suffix}"
            if path.is_file():
                return path
        return None

    def get_locales(self) -> list[str]:
        """Return every locale with a model file, sorted."""
        models_path = self.get_models_path()
        if not models_path.is_dir():
            return []
        return sorted(
            {p.stem for p in models_path.iterdir() if p.is_file() and p.suffix in MODEL_SUFFIXES}
        )

    def has_model(self, locale: str) -> bool:
        return self.get_model_path(locale) is not None

    def has_model_files(self, locales: list[str]) -> bool:
        """Return ``True`` if every locale in *locales* has a model file."""
        return bool(locales) and all(self.has_model(locale) for locale in locales)

    def get_model(self, locale: str) -> dict[str, Any]:
        """Load the raw canonical model of *locale*.

        Raises:
            ModelNotFoundError: If no model file exists.
            ModelValidationError: If the file cannot be parsed into a mapping.
        """
        path = self.get_model_path(locale)
        if path is None:
            raise ModelNotFoundError(locale)

        raw = read_text(path)
        try:
            data = parse(path.name, raw)
        except (ValueError, yaml.YAMLError) as exc:
            raise ModelValidationError(f"Cannot parse {path.name}: {exc}") from exc

        if not isinstance(data, dict):
            raise ModelValidationError(f"Model {path.name} must be a mapping")
        return data

    def save_model(self, data: dict[str, Any], locale: str) -> Path:
        """Write a canonical model, keeping the format of an existing file."""
        path = self.get_model_path(locale) or self.get_models_path() / f"{locale}.json"
        write_file(path, data)
        logger.info("Saved model %s", path)
        return path

    def backup_model(self, locale: str) -> Path:
        """Copy the model of *locale* into the backup directory.

        Raises:
            ModelNotFoundError: If no model file exists.
        """
        path = self.get_model_path(locale)
        if path is None:
            raise ModelNotFoundError(locale)

        stamp = datetime.now(UTC).strftime("%Y%m%d%H%M%S")
        target = self.get_models_path() / BACKUP_DIRECTORY / f"{locale}.{stamp}{path.suffix}"
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(path, target)
        except OSError as exc:
            raise FileSystemError(f"Cannot back up {path}: {exc}") from exc
        logger.info("Backed up %s to %s", path, target)
        return target

    def validate_model(self, locale: str, converter: ModelConverter) -> CanonicalModel:
        """Load the model of *locale* and validate it with *converter*."""
        return converter.validate(self.get_model(locale))
