"""Shared fixtures for platform build tests."""

from __future__ import annotations

import copy
import json
from typing import TYPE_CHECKING, Any

import pytest
import yaml

from uim.core.tasks import Task

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

HELLO_MODEL: dict[str, Any] = {
    "invocation": "my test app",
    "intents": [
        {"name": "HelloWorldIntent", "phrases": ["hello", "say hi"]},
        {
            "name": "MyNameIsIntent",
            "phrases": ["my name is {name}"],
            "inputs": [
                {
                    "name": "name",
                    "type": {"alexa": "AMAZON.US_FIRST_NAME", "google": "actions.type.Name"},
                }
            ],
        },
    ],
}


class RecordingReporter:
    """Collects ``(event, title)`` pairs of every task transition."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []

    def task_started(self, task: Task, depth: int) -> None:
        self.events.append(("started", task.title))

    def task_succeeded(self, task: Task, depth: int) -> None:
        self.events.append(("succeeded", task.title))

    def task_failed(self, task: Task, depth: int, error: Exception | None) -> None:
        self.events.append(("failed", task.title))

    def task_skipped(self, task: Task, depth: int) -> None:
        self.events.append(("skipped", task.title))

    def titles(self, event: str) -> list[str]:
        return [title for e, title in self.events if e == event]


@pytest.fixture
def hello_model() -> dict[str, Any]:
    return copy.deepcopy(HELLO_MODEL)


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[..., Path]:
    """Return a factory writing ``project.yaml`` and model files below *tmp_path*."""

    def factory(
        config: dict[str, Any] | None = None,
        models: dict[str, dict[str, Any]] | None = None,
    ) -> Path:
        (tmp_path / "project.yaml").write_text(yaml.safe_dump(config or {}))
        models_path = tmp_path / "models"
        models_path.mkdir(exist_ok=True)
        for locale, model in (models or {}).items():
            (models_path / f"{locale}.json").write_text(json.dumps(model))
        return tmp_path

    return factory
