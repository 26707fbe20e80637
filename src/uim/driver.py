"""Build driver — wires project, plugins and hooks and emits the lifecycle.

A forward build emits ``install``, ``parse``, ``before.build`` and
``build``; a reverse build emits ``install``, ``parse`` and
``reverse.build``.  Each plugin is isolated from its siblings: a plugin
whose handler raises a :class:`~uim.errors.UimError` is recorded as failed
and uninstalled, the remaining plugins carry on.  A
:class:`~uim.errors.ConfigurationError` aborts the whole run.

Usage::

    driver = BuildDriver(Path("my-project"), BuildFlags(platforms=["alexa"]))
    context = await driver.run()
    if not context.succeeded:
        ...
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING

from uim.context import BuildContext, BuildFlags
from uim.core.hooks import (
    EVENT_BEFORE_BUILD,
    EVENT_BUILD,
    EVENT_INSTALL,
    EVENT_PARSE,
    EVENT_REVERSE_BUILD,
    ErrorCallback,
    HookRegistry,
)
from uim.errors import ConfigurationError, UimError
from uim.platforms import PLATFORMS
from uim.project import Project
from uim.utils.telemetry import ATTR_COMMAND, get_tracer

if TYPE_CHECKING:
    from uim.core.tasks import TaskReporter
    from uim.platforms.base import PlatformPlugin

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

# Flag attribute -> CLI option name, for options consumed by plugins only
_PLUGIN_OPTIONS = {"project_id": "project-id"}


class BuildDriver:
    """Runs one build or reverse build of a project.

    Args:
        root: Project directory containing ``project.yaml``.
        flags: Command-line flags of the invocation.
        reporter: Receives task progress; defaults to logging.
        platforms: Available platform plugin classes keyed by id.
        project: Pre-loaded project (skips loading ``project.yaml``).
    """

    def __init__(
        self,
        root: Path,
        flags: BuildFlags | None = None,
        *,
        reporter: TaskReporter | None = None,
        platforms: Mapping[str, type[PlatformPlugin]] | None = None,
        project: Project | None = None,
    ) -> None:
        self.root = root
        self.flags = flags or BuildFlags()
        self.reporter = reporter
        self.platforms = dict(platforms if platforms is not None else PLATFORMS)
        self._project = project
        self.registry = HookRegistry()

    def load_project(self) -> Project:
        if self._project is None:
            self._project = Project.load(
                self.root,
                stage=self.flags.stage,
                build_directory=self.flags.build_directory,
            )
        return self._project

    def create_plugins(self, project: Project) -> list[PlatformPlugin]:
        """Instantiate the configured platforms, or every known platform.

        Raises:
            ConfigurationError: On an unknown platform id in the project
                configuration or ``--platform``, or invalid platform options.
        """
        available = ", ".join(self.platforms)
        for platform_id in self.flags.platforms:
            if platform_id not in self.platforms:
                raise ConfigurationError(
                    f"Unknown platform: {platform_id}",
                    hint=f"Available platforms: {available}",
                )

        configured = list(project.config.platforms) or list(self.platforms)
        plugins: list[PlatformPlugin] = []
        for platform_id in configured:
            plugin_cls = self.platforms.get(platform_id)
            if plugin_cls is None:
                raise ConfigurationError(
                    f"Unknown platform in project configuration: {platform_id}",
                    hint=f"Available platforms: {available}",
                )
            plugins.append(plugin_cls(project.config.platform_options(platform_id)))
        return plugins

    async def run(self) -> BuildContext:
        """Execute the lifecycle and return the finished context.

        Raises:
            ConfigurationError: On any configuration problem.
        """
        project = self.load_project()
        context = BuildContext(project, self.flags, reporter=self.reporter)

        for plugin in self.create_plugins(project):
            for hook in plugin.create_hooks():
                hook.attach(self.registry)

        on_error = self._isolate_plugin_errors(context)

        with _tracer.start_as_current_span("uim.build") as span:
            span.set_attribute(ATTR_COMMAND, context.command)

            await self.registry.emit(EVENT_INSTALL, context, on_error=on_error)
            if not context.platforms:
                context.platforms = list(context.installed_plugins)
            await self.registry.emit(EVENT_PARSE, context, on_error=on_error)
            self._warn_unused_options(context)

            if context.command == "reverse.build":
                self._check_reverse_selection(context)
                await self.registry.emit(EVENT_REVERSE_BUILD, context, on_error=on_error)
            else:
                await self.registry.emit(EVENT_BEFORE_BUILD, context, on_error=on_error)
                await self.registry.emit(EVENT_BUILD, context, on_error=on_error)

        if context.succeeded:
            logger.info("Build completed for %s", ", ".join(self.registry.owners()) or "-")
        return context

    def _isolate_plugin_errors(self, context: BuildContext) -> ErrorCallback:
        def on_error(exc: Exception, owner: str) -> None:
            if isinstance(exc, ConfigurationError) or not isinstance(exc, UimError):
                raise exc
            if exc.plugin_id is None:
                exc.plugin_id = owner or None
            logger.error("Plugin %s failed: %s", owner or "<anonymous>", exc)
            context.errors.append(exc)
            if owner:
                self.registry.unregister(owner)

        return on_error

    def _warn_unused_options(self, context: BuildContext) -> None:
        active = set(self.registry.owners())
        for attribute, option in _PLUGIN_OPTIONS.items():
            if getattr(context.flags, attribute) is None:
                continue
            consumers = [p for p in context.accepted_options.get(option, []) if p in active]
            if not consumers:
                logger.warning('Option "--%s" is not used by any selected platform', option)

    def _check_reverse_selection(self, context: BuildContext) -> None:
        selected = [p for p in context.platforms if p in self.registry.owners()]
        if len(selected) != 1:
            raise ConfigurationError(
                "Reverse builds need exactly one platform.",
                hint='Select it with "--platform".',
            )
