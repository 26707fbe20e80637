"""Pydantic models and loader for the ``project.yaml`` project configuration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from uim.core.merge import deep_merge
from uim.errors import ConfigurationError

PROJECT_CONFIG_FILE = "project.yaml"


class TelemetrySettings(BaseModel):
    """Optional telemetry configuration."""

    enabled: bool = False
    console: bool = True
    otlp_endpoint: str | None = None
    service_name: str = "uim"


class PlatformConfig(BaseModel):
    """Options shared by every platform plugin.

    ``files`` is a project file tree laid over the platform's default files,
    ``locales`` the locale resolution table and ``language_model`` holds
    per-locale canonical model fragments merged on top of the project model.
    """

    model_config = ConfigDict(extra="forbid")

    endpoint: str | None = None
    files: dict[str, Any] = {}
    locales: dict[str, list[str]] = {}
    language_model: dict[str, dict[str, Any]] = {}


class AlexaConfig(PlatformConfig):
    """Alexa Skill options."""

    skill_id: str | None = None


class GoogleConfig(PlatformConfig):
    """Google Conversational Action options."""

    project_id: str | None = None
    default_locale: str | None = None
    actions: dict[str, Any] = {}


class ProjectConfig(BaseModel):
    """Top-level project configuration parsed from ``project.yaml``."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    endpoint: str | None = None
    stage: str | None = None
    build_directory: str = "build"
    models_directory: str = "models"
    language_model: dict[str, dict[str, Any]] = {}
    stages: dict[str, dict[str, Any]] = {}
    platforms: dict[str, dict[str, Any]] = {}
    telemetry: TelemetrySettings | None = None

    def platform_options(self, platform_id: str) -> dict[str, Any]:
        """Return the raw options block of *platform_id* (empty if absent)."""
        return dict(self.platforms.get(platform_id) or {})


class ProjectConfigLoader:
    """Load and validate ``project.yaml`` into a :class:`ProjectConfig`."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self, *, stage: str | None = None) -> ProjectConfig:
        """Read YAML, interpolate env vars, apply the stage and validate.

        Environment variables in the form ``${VAR}`` or ``$VAR`` are expanded
        using :func:`os.path.expandvars` before YAML parsing.  The selected
        stage (argument, else the file's ``stage`` key) is deep-merged over
        the base configuration.

        Raises:
            ConfigurationError: On missing file, YAML errors, unknown stages or
                schema validation failures.
        """
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(
                f"Cannot read {self._path}: {exc}",
                hint=f"Run the command inside a project containing {PROJECT_CONFIG_FILE}.",
            ) from exc

        expanded = os.path.expandvars(raw)

        try:
            data: Any = yaml.safe_load(expanded)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"YAML parse error: {exc}") from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"{PROJECT_CONFIG_FILE} must be a mapping")

        selected = stage or data.get("stage")
        if selected:
            stages = data.get("stages") or {}
            if selected not in stages:
                raise ConfigurationError(
                    f"Unknown stage: {selected}",
                    hint=f"Configured stages: {', '.join(stages) or '(none)'}",
                )
            deep_merge(data, stages[selected] or {})
            data["stage"] = selected

        try:
            return ProjectConfig.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc
