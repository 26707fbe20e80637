"""Amazon Alexa platform — skill package project files and interaction models."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from uim.config import AlexaConfig
from uim.core.files import read_text
from uim.core.merge import has_path, set_path
from uim.core.model.converters.alexa import MODELS_PATH, AlexaConverter
from uim.core.model.models import NativeFileInformation
from uim.platforms.base import PlatformBuildHook, PlatformPlugin

if TYPE_CHECKING:
    from uim.context import BuildContext
    from uim.core.hooks import PluginHook
    from uim.core.model.converter import ModelConverter

SUPPORTED_LOCALES = (
    "de-DE",
    "en-AU",
    "en-CA",
    "en-GB",
    "en-IN",
    "en-US",
    "es-ES",
    "es-MX",
    "es-US",
    "fr-CA",
    "fr-FR",
    "hi-IN",
    "it-IT",
    "ja-JP",
    "pt-BR",
)

DEFAULT_FILES: dict[str, Any] = {
    "ask-resources.json": {
        "askcliResourcesVersion": "2020-03-31",
        "profiles": {"default": {"skillMetadata": {"src": "./skill-package"}}},
    },
    "skill-package/": {
        "skill.json": {
            "manifest": {
                "publishingInformation": {
                    "locales": {},
                    "isAvailableWorldwide": True,
                    "testingInstructions": "Sample Testing Instructions.",
                    "category": "EDUCATION_AND_REFERENCE",
                    "distributionCountries": [],
                },
                "privacyAndCompliance": {
                    "allowsPurchases": False,
                    "usesPersonalInfo": False,
                    "isChildDirected": False,
                    "isExportCompliant": True,
                    "containsAds": False,
                    "locales": {},
                },
                "apis": {"custom": {}},
                "manifestVersion": "1.0",
            }
        }
    },
}

_MANIFEST = ["skill-package/", "skill.json", "manifest"]
_ENDPOINT_PATH = [*_MANIFEST, "apis", "custom", "endpoint"]
_SKILL_ID_PATH = [".ask/", "ask-states.json", "profiles", "default", "skillId"]


class AlexaBuildHook(PlatformBuildHook):
    """Build handlers for Alexa Skills."""

    plugin: AlexaPlugin

    def apply_project_defaults(self, files: dict[str, Any], context: BuildContext) -> None:
        endpoint = self.get_endpoint(context)
        if endpoint and not has_path(files, _ENDPOINT_PATH):
            # ARN endpoints (Lambda) take no certificate
            certificate = None if endpoint.startswith("arn") else "Wildcard"
            set_path(files, _ENDPOINT_PATH, {"sslCertificateType": certificate, "uri": endpoint})

        skill_id = self.plugin.config.skill_id
        if skill_id and not has_path(files, _SKILL_ID_PATH):
            set_path(files, _SKILL_ID_PATH, skill_id)

        skill_name = context.project.get_project_name()
        for locale in self.resolver.resolve_all(context.locales):
            publishing_path = [*_MANIFEST, "publishingInformation", "locales", locale]
            if not has_path(files, publishing_path):
                set_path(
                    files,
                    publishing_path,
                    {
                        "summary": "Sample Short Description",
                        "examplePhrases": ["Alexa open hello world"],
                        "keywords": ["hello", "world"],
                        "name": skill_name,
                        "description": "Sample Full Description",
                        "smallIconUri": "https://via.placeholder.com/108/09f/09f.png",
                        "largeIconUri": "https://via.placeholder.com/512/09f/09f.png",
                    },
                )

            privacy_path = [*_MANIFEST, "privacyAndCompliance", "locales", locale]
            if not has_path(files, privacy_path):
                set_path(
                    files,
                    privacy_path,
                    {"privacyPolicyUrl": "http://example.com/policy", "termsOfUseUrl": ""},
                )

    def get_platform_locales(self, context: BuildContext) -> list[str]:
        models_path = self.get_platform_path(context).joinpath(*MODELS_PATH)
        if not models_path.is_dir():
            return []
        return sorted(p.stem for p in models_path.iterdir() if p.is_file())

    def read_platform_files(self, context: BuildContext, locale: str) -> list[NativeFileInformation]:
        path = [*MODELS_PATH, f"{locale}.json"]
        model_file = self.get_platform_path(context).joinpath(*path)
        if not model_file.is_file():
            return []
        return [NativeFileInformation(path=path, content=read_text(model_file))]


class AlexaPlugin(PlatformPlugin):
    """Amazon Alexa Skill platform."""

    id = "alexa"
    name = "Amazon Alexa"
    platform_directory = "platform.alexa"
    supported_locales = SUPPORTED_LOCALES
    docs_url = (
        "https://developer.amazon.com/en-US/docs/alexa/custom-skills/"
        "develop-skills-in-multiple-languages.html"
    )
    default_files: ClassVar[dict[str, Any]] = DEFAULT_FILES
    config_model = AlexaConfig
    config: AlexaConfig

    def create_converter(self) -> ModelConverter:
        return AlexaConverter()

    def create_hooks(self) -> list[PluginHook]:
        return [AlexaBuildHook(self)]
