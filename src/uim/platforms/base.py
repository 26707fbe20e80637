"""Platform plugin base — shared build and reverse-build lifecycle.

A :class:`PlatformPlugin` bundles a platform's static description (id,
output directory, supported locales, default project files), its typed
configuration and its converter.  :class:`PlatformBuildHook` subscribes the
plugin to the lifecycle events:

* ``install`` — announce the plugin and the CLI options it consumes.
* ``parse`` — uninstall when excluded by ``--platform``.
* ``before.build`` — resolve platform values, validate locales, clean,
  validate models.  Nothing is written before these succeed.
* ``build`` — project files plus one interaction-model task per locale.
* ``reverse.build`` — native files back into canonical models.

Subclasses fill in the platform-specific project-file defaults and how
native files are located on disk.
"""

from __future__ import annotations

import functools
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import ValidationError

from uim.config import PlatformConfig
from uim.core.files import build_directory, delete_directory, write_native_files
from uim.core.hooks import (
    EVENT_BEFORE_BUILD,
    EVENT_BUILD,
    EVENT_INSTALL,
    EVENT_PARSE,
    EVENT_REVERSE_BUILD,
    Handler,
    PluginHook,
)
from uim.core.locales import LocaleResolver, select_default_locale
from uim.core.merge import (
    deep_merge,
    merge_file_tree,
    merge_with_array_customizer,
    normalize_file_tree,
)
from uim.core.tasks import Task, TaskStatus
from uim.errors import (
    ConfigurationError,
    ConversionError,
    ModelValidationError,
    UimError,
    UnsupportedLocaleError,
)
from uim.utils.telemetry import ATTR_FILE_COUNT, ATTR_LOCALE, ATTR_PLUGIN_ID, get_tracer

if TYPE_CHECKING:
    from uim.context import BuildContext
    from uim.core.model.converter import ModelConverter
    from uim.core.model.models import CanonicalModel, NativeFileInformation

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class PlatformPlugin(ABC):
    """Static description and configuration of a target platform."""

    id: ClassVar[str]
    name: ClassVar[str]
    platform_directory: ClassVar[str]
    supported_locales: ClassVar[tuple[str, ...]]
    generic_locales: ClassVar[bool] = False
    docs_url: ClassVar[str | None] = None
    default_files: ClassVar[dict[str, Any]] = {}
    config_model: ClassVar[type[PlatformConfig]] = PlatformConfig

    def __init__(self, options: dict[str, Any] | None = None) -> None:
        try:
            self.config = self.config_model.model_validate(options or {})
        except ValidationError as exc:
            raise ConfigurationError(
                f"Invalid configuration for platform '{self.id}': {exc}",
                plugin_id=self.id,
            ) from exc
        self.converter = self.create_converter()

    @abstractmethod
    def create_converter(self) -> ModelConverter:
        """Return the converter for this platform."""
        ...

    @abstractmethod
    def create_hooks(self) -> list[PluginHook]:
        """Return the lifecycle hooks of this platform."""
        ...

    def locale_resolver(self) -> LocaleResolver:
        return LocaleResolver(
            self.supported_locales,
            self.config.locales,
            generic_locales=self.generic_locales,
            platform_id=self.id,
            platform_name=self.name,
            docs_url=self.docs_url,
        )


class PlatformBuildHook(PluginHook):
    """Build and reverse-build handlers shared by every platform."""

    cli_options: ClassVar[list[str]] = []

    def __init__(self, plugin: PlatformPlugin) -> None:
        super().__init__(plugin.id)
        self.plugin = plugin
        self.resolver = plugin.locale_resolver()

    def install(self) -> dict[str, list[Handler]]:
        return {
            EVENT_INSTALL: [self.announce],
            EVENT_PARSE: [self.check_for_platform],
            EVENT_BEFORE_BUILD: [
                self.update_plugin_context,
                self.validate_locales,
                self.check_for_clean_build,
                self.validate_models,
            ],
            EVENT_BUILD: [self.build],
            EVENT_REVERSE_BUILD: [self.build_reverse],
        }

    # ------------------------------------------------------------------
    # install / parse
    # ------------------------------------------------------------------

    def announce(self, context: BuildContext) -> None:
        """Register this plugin and its CLI options on the context."""
        context.register_plugin(self.plugin.id, self.cli_options)

    def check_for_platform(self, context: BuildContext) -> None:
        """Uninstall this plugin if ``--platform`` excludes it."""
        if context.platforms and self.plugin.id not in context.platforms:
            logger.debug("Platform %s not selected, uninstalling", self.plugin.id)
            self.uninstall()

    # ------------------------------------------------------------------
    # before.build
    # ------------------------------------------------------------------

    def update_plugin_context(self, context: BuildContext) -> None:
        """Resolve platform-specific context values (no-op by default)."""

    def validate_locales(self, context: BuildContext) -> None:
        """Resolve the requested locales and check them against the platform."""
        if not context.locales:
            raise ConfigurationError(
                "No locales to build.",
                hint="Add a model file to your models directory or pass --locale.",
                plugin_id=self.plugin.id,
            )
        context.resolved_locales[self.plugin.id] = self.resolver.resolve_and_validate(
            context.locales
        )

    def check_for_clean_build(self, context: BuildContext) -> None:
        """Delete the platform directory when ``--clean`` is set."""
        if context.flags.clean:
            delete_directory(self.get_platform_path(context))

    async def validate_models(self, context: BuildContext) -> None:
        """Validate every available model for this platform, one task per locale."""
        validation_task = Task(f"Validating {self.plugin.name} model files")
        for locale in context.locales:
            if not context.project.has_model(locale):
                logger.warning("No model file for locale %s, skipping validation", locale)
                continue
            validation_task.add(
                Task(locale, functools.partial(self.validate_model, context, locale))
            )

        runner = context.create_runner()
        if await runner.run(validation_task) is TaskStatus.FAILED:
            failed = ", ".join(t.title for t in runner.failures)
            raise ModelValidationError(
                f"Invalid {self.plugin.name} model for locale(s): {failed}",
                hint="; ".join(str(t.error) for t in runner.failures),
                plugin_id=self.plugin.id,
            )

    def validate_model(self, context: BuildContext, locale: str) -> CanonicalModel:
        return self.plugin.converter.validate(self.get_model(context, locale))

    # ------------------------------------------------------------------
    # build
    # ------------------------------------------------------------------

    async def build(self, context: BuildContext) -> None:
        """Build project files and the interaction model as one task tree."""
        project = context.project
        status = (
            "Updating" if project.has_platform(self.plugin.platform_directory) else "Creating"
        )
        stage = f" ({project.stage})" if project.stage else ""

        resolved = context.resolved_locales.get(self.plugin.id) or self.resolver.resolve_all(
            context.locales
        )
        context.default_locales[self.plugin.id] = select_default_locale(
            resolved, self.configured_default_locale(), plugin_id=self.plugin.id
        )

        logger.info(
            "Path: ./%s/%s", project.build_directory, self.plugin.platform_directory
        )
        build_task = Task(f"{status} {self.plugin.name} project files{stage}")
        project_files_task = Task(
            f"{status} Project Files",
            functools.partial(self.create_project_files, context),
        )
        interaction_model_task = Task(
            f"{status} Interaction Model", children=self.create_interaction_model(context)
        )
        # Without model files for every locale there is nothing to convert
        if not project.has_model_files(context.locales):
            interaction_model_task.disable()

        build_task.add(project_files_task, interaction_model_task)

        with _tracer.start_as_current_span("uim.platform.build") as span:
            span.set_attribute(ATTR_PLUGIN_ID, self.plugin.id)
            await context.runner.run(build_task)

    def create_project_files(self, context: BuildContext) -> None:
        """Merge default and configured files, fill in defaults and write them."""
        files = normalize_file_tree(self.plugin.config.files)
        if context.project.has_platform(self.plugin.platform_directory):
            project_files = files
        else:
            project_files = merge_file_tree(normalize_file_tree(self.plugin.default_files), files)

        self.apply_project_defaults(project_files, context)
        build_directory(project_files, self.get_platform_path(context))

    @abstractmethod
    def apply_project_defaults(self, files: dict[str, Any], context: BuildContext) -> None:
        """Set platform values in *files* wherever the path is not yet present."""
        ...

    def create_interaction_model(self, context: BuildContext) -> list[Task]:
        """Return one task per requested locale building its native files."""
        tasks: list[Task] = []
        for model_locale in context.locales:
            resolved = self.resolver.resolve(model_locale)
            tasks.append(
                Task(
                    f"{model_locale} ({','.join(resolved)})",
                    functools.partial(self.build_language_model, context, model_locale, resolved),
                )
            )
        return tasks

    def build_language_model(
        self, context: BuildContext, model_locale: str, resolved_locales: list[str]
    ) -> None:
        """Convert the model of *model_locale* for every resolved locale and write it."""
        model = self.plugin.converter.validate(self.get_model(context, model_locale))
        default_locale = context.default_locales.get(self.plugin.id)

        for locale in resolved_locales:
            with _tracer.start_as_current_span("uim.convert") as span:
                span.set_attribute(ATTR_PLUGIN_ID, self.plugin.id)
                span.set_attribute(ATTR_LOCALE, locale)
                try:
                    files = self.plugin.converter.to_native(model, locale, default_locale)
                except UimError:
                    raise
                except Exception as exc:
                    raise ConversionError(str(exc), plugin_id=self.plugin.id) from exc
                span.set_attribute(ATTR_FILE_COUNT, len(files))

            if not files and not model.is_empty:
                raise ConversionError(
                    f'Could not build {self.plugin.name} files for locale "{locale}"!',
                    plugin_id=self.plugin.id,
                )
            self.write_model_files(context, files, locale)

    def write_model_files(
        self, context: BuildContext, files: list[NativeFileInformation], locale: str
    ) -> None:
        """Write converter output into the platform directory."""
        write_native_files(files, self.get_platform_path(context))

    # ------------------------------------------------------------------
    # reverse.build
    # ------------------------------------------------------------------

    async def build_reverse(self, context: BuildContext) -> None:
        """Import the platform's native files into canonical models."""
        if self.plugin.id not in context.platforms:
            return
        if not self.plugin.converter.supports_reverse:
            logger.warning("%s does not support reverse builds", self.plugin.name)
            return

        platform_locales = self.get_platform_locales(context)
        if context.flags.locales:
            locales: list[str] = []
            for locale in context.flags.locales:
                if locale not in platform_locales:
                    raise UnsupportedLocaleError(
                        locale,
                        f"Could not find platform models for locale: {locale}",
                        hint=f"Available locales include: {', '.join(platform_locales)}",
                        plugin_id=self.plugin.id,
                    )
                locales.append(locale)
        else:
            locales = platform_locales

        existing = [locale for locale in locales if context.project.has_model(locale)]
        if existing and not context.flags.force:
            if context.flags.on_existing == "cancel":
                logger.info("Existing model files found, reverse build cancelled")
                return
            if context.flags.on_existing == "backup":
                backup_task = Task("Creating backups")
                for locale in existing:
                    backup_task.add(
                        Task(locale, functools.partial(context.project.backup_model, locale))
                    )
                await context.runner.run(backup_task)

        reverse_task = Task("Reversing model files")
        for locale in locales:
            reverse_task.add(
                Task(locale, functools.partial(self.reverse_locale, context, locale))
            )
        await context.runner.run(reverse_task)

    def reverse_locale(self, context: BuildContext, locale: str) -> None:
        """Parse native files of *locale* and merge them into its canonical model."""
        files = self.read_platform_files(context, locale)
        with _tracer.start_as_current_span("uim.reverse") as span:
            span.set_attribute(ATTR_PLUGIN_ID, self.plugin.id)
            span.set_attribute(ATTR_LOCALE, locale)
            span.set_attribute(ATTR_FILE_COUNT, len(files))
            try:
                native_data = self.plugin.converter.from_native(files, locale)
            except UimError:
                raise
            except Exception as exc:
                raise ConversionError(
                    f"Could not read {self.plugin.name} files for locale {locale}: {exc}",
                    plugin_id=self.plugin.id,
                ) from exc

        project = context.project
        # A missing model is not an error: start from an empty one
        model: dict[str, Any] = (
            project.get_model(locale) if project.has_model(locale) else {"invocation": ""}
        )
        deep_merge(model, native_data)
        project.save_model(model, locale)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def get_platform_path(self, context: BuildContext) -> Path:
        return context.project.get_build_path() / self.plugin.platform_directory

    def configured_default_locale(self) -> str | None:
        """Return an explicitly configured default locale (none by default)."""
        return None

    def get_model(self, context: BuildContext, locale: str) -> dict[str, Any]:
        """Load the model of *locale* with project and platform overrides applied.

        Project-level ``language_model`` is merged first, the platform's own
        ``language_model`` on top; lists concatenate in both steps.
        """
        project = context.project
        model = project.get_model(locale)
        merge_with_array_customizer(model, project.config.language_model.get(locale, {}))
        merge_with_array_customizer(model, self.plugin.config.language_model.get(locale, {}))
        return model

    def get_invocation_name(self, context: BuildContext, locale: str) -> str:
        """Return the invocation name of *locale* for this platform."""
        invocation = self.get_model(context, locale).get("invocation", "")
        if isinstance(invocation, dict):
            name = invocation.get(self.plugin.id)
            if not name:
                raise ConversionError(
                    f"Can't find invocation name for locale {locale}.",
                    plugin_id=self.plugin.id,
                )
            return str(name)
        return str(invocation)

    def get_endpoint(self, context: BuildContext) -> str | None:
        return self.plugin.config.endpoint or context.project.config.endpoint

    @abstractmethod
    def get_platform_locales(self, context: BuildContext) -> list[str]:
        """Return every locale with native model files in the platform directory."""
        ...

    @abstractmethod
    def read_platform_files(self, context: BuildContext, locale: str) -> list[NativeFileInformation]:
        """Read the native files of *locale* for the reverse converter."""
        ...
