"""Google Conversational Actions platform — settings, webhook and model files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar

import yaml

from uim.config import GoogleConfig
from uim.core.files import build_directory, read_native_files, read_text, write_native_files
from uim.core.merge import deep_merge, get_path, has_path, normalize_file_tree, set_path
from uim.core.model.converters.google import MAIN_INTENT, WEBHOOK_HANDLER, GoogleConverter
from uim.core.model.models import NativeFileInformation
from uim.errors import ConfigurationError
from uim.platforms.base import PlatformBuildHook, PlatformPlugin

if TYPE_CHECKING:
    from uim.context import BuildContext
    from uim.core.hooks import PluginHook
    from uim.core.model.converter import ModelConverter

logger = logging.getLogger(__name__)

SUPPORTED_LOCALES = (
    "da",
    "de",
    "de-AT",
    "de-CH",
    "de-DE",
    "en",
    "en-AU",
    "en-CA",
    "en-GB",
    "en-IN",
    "en-SG",
    "en-US",
    "es",
    "es-419",
    "es-ES",
    "fr",
    "fr-CA",
    "fr-FR",
    "hi",
    "id",
    "it",
    "ja",
    "ko",
    "nl",
    "no",
    "pl",
    "pt",
    "pt-BR",
    "ru",
    "sv",
    "th",
    "tr",
    "zh-HK",
    "zh-TW",
)

DEFAULT_FILES: dict[str, Any] = {
    "manifest.yaml": {"version": "1.0"},
    "settings/": {
        "settings.yaml": {
            "category": "GAMES_AND_TRIVIA",
            "usesTransactionsApi": False,
            "usesDigitalPurchaseApi": False,
            "usesInteractiveCanvas": False,
            "designedForFamily": False,
            "containsAlcoholOrTobaccoContent": False,
            "keepsMicOpen": False,
            "surfaceRequirements": {"minimumRequirements": [{"capability": "AUDIO_OUTPUT"}]},
            "localizedSettings": {
                "developerName": "",
                "developerEmail": "",
                "privacyPolicyUrl": "",
                "termsOfServiceUrl": "",
            },
        }
    },
}

_WEBHOOK_PATH = ["webhooks/", "ActionsOnGoogleFulfillment.yaml"]
_SETTINGS_FILE = "settings.yaml"


class GoogleBuildHook(PlatformBuildHook):
    """Build handlers for Google Conversational Actions."""

    plugin: GooglePlugin
    cli_options: ClassVar[list[str]] = ["project-id"]

    def update_plugin_context(self, context: BuildContext) -> None:
        """Resolve the project id from ``--project-id`` or configuration."""
        project_id = context.flags.project_id or self.plugin.config.project_id
        if not project_id:
            raise ConfigurationError(
                "Could not find projectId.",
                hint='Please provide a project id by using the flag "--project-id" '
                "or in your project configuration.",
                plugin_id=self.plugin.id,
            )
        context.project_ids[self.plugin.id] = project_id

    def configured_default_locale(self) -> str | None:
        configured = get_path(
            normalize_file_tree(self.plugin.config.files),
            ["settings/", _SETTINGS_FILE, "defaultLocale"],
        )
        return configured or self.plugin.config.default_locale

    def apply_project_defaults(self, files: dict[str, Any], context: BuildContext) -> None:
        endpoint = self.get_endpoint(context)
        if endpoint and not has_path(files, _WEBHOOK_PATH):
            set_path(
                files,
                _WEBHOOK_PATH,
                {
                    "handlers": [{"name": WEBHOOK_HANDLER}],
                    "httpsEndpoint": {"baseUrl": endpoint},
                },
            )

        default_locale = context.default_locales.get(self.plugin.id)
        for model_locale in context.locales:
            for locale in self.resolver.resolve(model_locale):
                settings_path = _settings_path(locale, default_locale)

                if locale == default_locale:
                    if not has_path(files, [*settings_path, "defaultLocale"]):
                        set_path(files, [*settings_path, "defaultLocale"], default_locale)
                    project_id = context.project_ids.get(self.plugin.id)
                    if project_id and not has_path(files, [*settings_path, "projectId"]):
                        set_path(files, [*settings_path, "projectId"], project_id)

                if not context.project.has_model(model_locale):
                    logger.warning("No model for %s, skipping localized settings", model_locale)
                    continue

                localized_path = [*settings_path, "localizedSettings"]
                invocation = self.get_invocation_name(context, model_locale)
                for key in ("displayName", "pronunciation"):
                    if not has_path(files, [*localized_path, key]):
                        set_path(files, [*localized_path, key], invocation)

    def write_model_files(
        self, context: BuildContext, files: list[NativeFileInformation], locale: str
    ) -> None:
        """Write model files and register every intent in ``actions/actions.yaml``."""
        platform_path = self.get_platform_path(context)
        write_native_files(files, platform_path)

        actions: dict[str, Any] = {"custom": {MAIN_INTENT: {}}}
        for file in files:
            if "intents" in file.directory:
                actions["custom"][Path(file.file_name).stem] = {}

        deep_merge(actions, self.plugin.config.actions)
        # Existing entries are kept, each locale adds its own intents
        build_directory({"actions/": {"actions.yaml": actions}}, platform_path)

    def get_platform_locales(self, context: BuildContext) -> list[str]:
        platform_path = self.get_platform_path(context)
        locales: list[str] = []

        default_locale = self._read_default_locale(platform_path)
        if default_locale:
            locales.append(default_locale)

        intents_path = platform_path / "custom" / "intents"
        if intents_path.is_dir():
            for path in sorted(intents_path.iterdir()):
                if path.is_dir() and path.name not in locales:
                    locales.append(path.name)
        return locales

    def read_platform_files(self, context: BuildContext, locale: str) -> list[NativeFileInformation]:
        platform_path = self.get_platform_path(context)
        default_locale = self._read_default_locale(platform_path)
        locale_dir = [] if locale == default_locale else [locale]

        files = [
            *read_native_files(platform_path, ["custom", "intents", *locale_dir]),
            *read_native_files(platform_path, ["custom", "types", *locale_dir]),
        ]
        settings = ["settings", *locale_dir, _SETTINGS_FILE]
        settings_file = platform_path.joinpath(*settings)
        if settings_file.is_file():
            files.append(NativeFileInformation(path=settings, content=read_text(settings_file)))
        return files

    def _read_default_locale(self, platform_path: Path) -> str | None:
        settings_file = platform_path / "settings" / _SETTINGS_FILE
        if settings_file.is_file():
            try:
                settings = yaml.safe_load(read_text(settings_file)) or {}
            except yaml.YAMLError:
                logger.warning("Cannot parse %s", settings_file)
                settings = {}
            if isinstance(settings, dict) and settings.get("defaultLocale"):
                return str(settings["defaultLocale"])
        return self.configured_default_locale()


def _settings_path(locale: str, default_locale: str | None) -> list[str]:
    """Return the file-tree path of the settings file for *locale*."""
    if locale == default_locale:
        return ["settings/", _SETTINGS_FILE]
    return ["settings/", f"{locale}/", _SETTINGS_FILE]


class GooglePlugin(PlatformPlugin):
    """Google Conversational Actions platform."""

    id = "google"
    name = "Google Conversational Actions"
    platform_directory = "platform.googleAssistant"
    supported_locales = SUPPORTED_LOCALES
    generic_locales = True
    docs_url = "https://developers.google.com/assistant/console/languages-locales"
    default_files: ClassVar[dict[str, Any]] = DEFAULT_FILES
    config_model = GoogleConfig
    config: GoogleConfig

    def create_converter(self) -> ModelConverter:
        return GoogleConverter()

    def create_hooks(self) -> list[PluginHook]:
        return [GoogleBuildHook(self)]
