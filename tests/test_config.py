"""Tests for project configuration loading."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from uim.config import AlexaConfig, GoogleConfig, ProjectConfig, ProjectConfigLoader
from uim.errors import ConfigurationError

if TYPE_CHECKING:
    from pathlib import Path

_PROJECT_YAML = """\
name: hello-world
endpoint: https://example.com/webhook
platforms:
  alexa:
    skill_id: amzn1.ask.skill.123
    locales:
      en: [en-US, en-GB]
  google:
    project_id: ${TEST_UIM_PROJECT_ID}
stages:
  dev:
    endpoint: https://dev.example.com/webhook
    platforms:
      alexa:
        skill_id: amzn1.ask.skill.dev
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "project.yaml"
    path.write_text(text)
    return path


class TestProjectConfigLoader:
    def test_load(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TEST_UIM_PROJECT_ID", "my-project")
        config = ProjectConfigLoader(_write(tmp_path, _PROJECT_YAML)).load()

        assert config.name == "hello-world"
        assert config.build_directory == "build"
        assert config.platform_options("google") == {"project_id": "my-project"}
        assert config.platform_options("missing") == {}

    def test_stage_is_merged(self, tmp_path: Path) -> None:
        config = ProjectConfigLoader(_write(tmp_path, _PROJECT_YAML)).load(stage="dev")

        assert config.stage == "dev"
        assert config.endpoint == "https://dev.example.com/webhook"
        alexa = config.platform_options("alexa")
        assert alexa["skill_id"] == "amzn1.ask.skill.dev"
        assert alexa["locales"] == {"en": ["en-US", "en-GB"]}

    def test_stage_from_file(self, tmp_path: Path) -> None:
        config = ProjectConfigLoader(_write(tmp_path, _PROJECT_YAML + "stage: dev\n")).load()
        assert config.endpoint == "https://dev.example.com/webhook"

    def test_unknown_stage(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="Unknown stage: prod"):
            ProjectConfigLoader(_write(tmp_path, _PROJECT_YAML)).load(stage="prod")

    def test_empty_file(self, tmp_path: Path) -> None:
        config = ProjectConfigLoader(_write(tmp_path, "")).load()
        assert config == ProjectConfig()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="Cannot read"):
            ProjectConfigLoader(tmp_path / "project.yaml").load()

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="YAML parse error"):
            ProjectConfigLoader(_write(tmp_path, "name: [oops")).load()

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            ProjectConfigLoader(_write(tmp_path, "- a\n- b\n")).load()

    def test_unknown_key(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            ProjectConfigLoader(_write(tmp_path, "nmae: typo\n")).load()


class TestPlatformConfig:
    def test_alexa_defaults(self) -> None:
        config = AlexaConfig()
        assert config.skill_id is None
        assert config.files == {}
        assert config.locales == {}

    def test_google_rejects_unknown_keys(self) -> None:
        with pytest.raises(ValueError):
            GoogleConfig.model_validate({"projectid": "typo"})
