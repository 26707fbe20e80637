"""Build context — request-scoped flags and values shared by all hook handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field

from uim.core.tasks import TaskRunner

if TYPE_CHECKING:
    from uim.core.tasks import TaskReporter
    from uim.errors import UimError
    from uim.project import Project

Command = Literal["build", "reverse.build"]
OnExisting = Literal["backup", "overwrite", "cancel"]


class BuildFlags(BaseModel):
    """Command-line flags of a build invocation."""

    locales: list[str] = []
    platforms: list[str] = []
    clean: bool = False
    force: bool = False
    reverse: bool = False
    project_id: str | None = None
    build_directory: str | None = None
    stage: str | None = None
    on_existing: OnExisting = "backup"
    concurrency: int = Field(default=1, ge=1)


class BuildContext:
    """Shared, mutable state of one CLI invocation.

    Handlers read the flags and write derived per-platform values (project
    id, default locale, resolved locales) that later handlers observe.
    """

    def __init__(
        self,
        project: Project,
        flags: BuildFlags | None = None,
        *,
        reporter: TaskReporter | None = None,
    ) -> None:
        self.project = project
        self.flags = flags or BuildFlags()
        self.command: Command = "reverse.build" if self.flags.reverse else "build"
        self.locales: list[str] = list(self.flags.locales) or project.get_locales()
        self.platforms: list[str] = list(self.flags.platforms)
        self.reporter = reporter
        self.runner = self.create_runner()

        self.installed_plugins: list[str] = []
        self.accepted_options: dict[str, list[str]] = {}
        self.project_ids: dict[str, str] = {}
        self.default_locales: dict[str, str] = {}
        self.resolved_locales: dict[str, list[str]] = {}
        self.errors: list[UimError] = []

    def create_runner(self) -> TaskRunner:
        """Return a new task runner sharing this context's reporter."""
        return TaskRunner(self.reporter, max_concurrency=self.flags.concurrency)

    def register_plugin(self, plugin_id: str, options: list[str] | None = None) -> None:
        """Record an installed plugin and the CLI options it consumes."""
        if plugin_id not in self.installed_plugins:
            self.installed_plugins.append(plugin_id)
        for option in options or []:
            self.accepted_options.setdefault(option, []).append(plugin_id)

    @property
    def succeeded(self) -> bool:
        """Overall outcome: no plugin error and no failed task."""
        return not self.errors and self.runner.succeeded
