"""Build and reverse-build tests for the Alexa platform."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any
from unittest.mock import patch

from uim.context import BuildFlags
from uim.core.model.converters import AlexaConverter
from uim.driver import BuildDriver
from uim.errors import ConversionError, ModelValidationError, UnsupportedLocaleError

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from conftest import RecordingReporter

_CONFIG: dict[str, Any] = {
    "name": "hello-world",
    "endpoint": "https://example.com/webhook",
    "platforms": {
        "alexa": {
            "skill_id": "amzn1.ask.skill.123",
            "locales": {"en": ["en-US"]},
        }
    },
}

_MODELS_DIR = ("skill-package", "interactionModels", "custom")


def _platform(root: Path) -> Path:
    return root / "build" / "platform.alexa"


def _read_json(path: Path) -> Any:
    return json.loads(path.read_text())


class TestAlexaBuild:
    async def test_build_creates_project_and_model_files(
        self,
        make_project: Callable[..., Path],
        hello_model: dict[str, Any],
        reporter: RecordingReporter,
    ) -> None:
        root = make_project(_CONFIG, {"en": hello_model})

        context = await BuildDriver(root, reporter=reporter).run()

        assert context.succeeded
        platform = _platform(root)
        model = _read_json(platform.joinpath(*_MODELS_DIR, "en-US.json"))
        language_model = model["interactionModel"]["languageModel"]
        assert language_model["invocationName"] == "my test app"
        assert [i["name"] for i in language_model["intents"]] == [
            "HelloWorldIntent",
            "MyNameIsIntent",
        ]

        manifest = _read_json(platform / "skill-package" / "skill.json")["manifest"]
        assert manifest["apis"]["custom"]["endpoint"] == {
            "sslCertificateType": "Wildcard",
            "uri": "https://example.com/webhook",
        }
        assert manifest["publishingInformation"]["locales"]["en-US"]["name"] == "hello-world"
        assert "en-US" in manifest["privacyAndCompliance"]["locales"]
        assert manifest["publishingInformation"]["category"] == "EDUCATION_AND_REFERENCE"

        states = _read_json(platform / ".ask" / "ask-states.json")
        assert states["profiles"]["default"]["skillId"] == "amzn1.ask.skill.123"
        assert (platform / "ask-resources.json").is_file()

        assert reporter.titles("succeeded") == [
            "en",
            "Validating Amazon Alexa model files",
            "Creating Project Files",
            "en (en-US)",
            "Creating Interaction Model",
            "Creating Amazon Alexa project files",
        ]

    async def test_second_build_updates(
        self,
        make_project: Callable[..., Path],
        hello_model: dict[str, Any],
        reporter: RecordingReporter,
    ) -> None:
        root = make_project(_CONFIG, {"en": hello_model})
        await BuildDriver(root).run()

        context = await BuildDriver(root, reporter=reporter).run()

        assert context.succeeded
        assert "Updating Amazon Alexa project files" in reporter.titles("succeeded")

    async def test_user_files_are_not_clobbered(
        self,
        make_project: Callable[..., Path],
        hello_model: dict[str, Any],
    ) -> None:
        config = json.loads(json.dumps(_CONFIG))
        config["platforms"]["alexa"]["files"] = {
            "skill-package/skill.json": {
                "manifest": {"publishingInformation": {"category": "GAMES"}}
            }
        }
        root = make_project(config, {"en": hello_model})

        await BuildDriver(root).run()

        manifest = _read_json(_platform(root) / "skill-package" / "skill.json")["manifest"]
        assert manifest["publishingInformation"]["category"] == "GAMES"
        assert manifest["publishingInformation"]["isAvailableWorldwide"] is True

    async def test_lambda_endpoint_has_no_certificate(
        self,
        make_project: Callable[..., Path],
        hello_model: dict[str, Any],
    ) -> None:
        config = {**_CONFIG, "endpoint": "arn:aws:lambda:us-east-1:123:function:skill"}
        root = make_project(config, {"en": hello_model})

        await BuildDriver(root).run()

        manifest = _read_json(_platform(root) / "skill-package" / "skill.json")["manifest"]
        assert manifest["apis"]["custom"]["endpoint"]["sslCertificateType"] is None

    async def test_platform_language_model_is_merged(
        self,
        make_project: Callable[..., Path],
        hello_model: dict[str, Any],
    ) -> None:
        config = json.loads(json.dumps(_CONFIG))
        config["platforms"]["alexa"]["language_model"] = {
            "en": {
                "alexa": {
                    "interactionModel": {
                        "languageModel": {
                            "intents": [{"name": "AMAZON.StopIntent", "samples": []}]
                        }
                    }
                }
            }
        }
        root = make_project(config, {"en": hello_model})

        await BuildDriver(root).run()

        model = _read_json(_platform(root).joinpath(*_MODELS_DIR, "en-US.json"))
        names = [i["name"] for i in model["interactionModel"]["languageModel"]["intents"]]
        assert names == ["HelloWorldIntent", "MyNameIsIntent", "AMAZON.StopIntent"]

    async def test_missing_model_disables_interaction_model(
        self,
        make_project: Callable[..., Path],
        hello_model: dict[str, Any],
        reporter: RecordingReporter,
    ) -> None:
        root = make_project(_CONFIG, {"en": hello_model})

        context = await BuildDriver(
            root, BuildFlags(locales=["en", "de-DE"]), reporter=reporter
        ).run()

        assert context.succeeded
        assert (_platform(root) / "skill-package" / "skill.json").is_file()
        assert not _platform(root).joinpath(*_MODELS_DIR).exists()
        assert "Creating Interaction Model" in reporter.titles("skipped")
        assert "Creating Project Files" in reporter.titles("succeeded")

    async def test_unsupported_locale_fails_before_writing(
        self,
        make_project: Callable[..., Path],
        hello_model: dict[str, Any],
    ) -> None:
        root = make_project(_CONFIG, {"nl-NL": hello_model})

        context = await BuildDriver(root).run()

        assert not context.succeeded
        assert isinstance(context.errors[0], UnsupportedLocaleError)
        assert context.errors[0].locale == "nl-NL"
        assert not (root / "build").exists()

    async def test_generic_locale_without_table(
        self,
        make_project: Callable[..., Path],
        hello_model: dict[str, Any],
    ) -> None:
        root = make_project({"platforms": {"alexa": {}}}, {"en": hello_model})

        context = await BuildDriver(root).run()

        assert not context.succeeded
        assert "does not support generic locales" in str(context.errors[0])

    async def test_invalid_model_fails_before_writing(
        self,
        make_project: Callable[..., Path],
        hello_model: dict[str, Any],
        reporter: RecordingReporter,
    ) -> None:
        hello_model["invocation"] = "My Test App"
        root = make_project(_CONFIG, {"en": hello_model})

        context = await BuildDriver(root, reporter=reporter).run()

        assert not context.succeeded
        assert isinstance(context.errors[0], ModelValidationError)
        assert "en" in reporter.titles("failed")
        assert not (root / "build").exists()

    async def test_clean_deletes_platform_directory(
        self,
        make_project: Callable[..., Path],
        hello_model: dict[str, Any],
    ) -> None:
        root = make_project(_CONFIG, {"en": hello_model})
        stale = _platform(root) / "stale.txt"
        stale.parent.mkdir(parents=True)
        stale.write_text("old")

        context = await BuildDriver(root, BuildFlags(clean=True)).run()

        assert context.succeeded
        assert not stale.exists()
        assert (_platform(root) / "skill-package" / "skill.json").is_file()

    async def test_generic_locale_builds_every_resolved_locale(
        self,
        make_project: Callable[..., Path],
        hello_model: dict[str, Any],
        reporter: RecordingReporter,
    ) -> None:
        config = {"platforms": {"alexa": {"locales": {"en": ["en-US", "en-GB"]}}}}
        root = make_project(config, {"en": hello_model})

        context = await BuildDriver(root, BuildFlags(locales=["en"]), reporter=reporter).run()

        assert context.succeeded
        assert context.default_locales["alexa"] == "en-US"
        models_path = _platform(root).joinpath(*_MODELS_DIR)
        assert sorted(p.name for p in models_path.iterdir()) == ["en-GB.json", "en-US.json"]
        for locale in ("en-US", "en-GB"):
            model = _read_json(models_path / f"{locale}.json")
            assert model["interactionModel"]["languageModel"]["invocationName"] == "my test app"
        assert "en (en-US,en-GB)" in reporter.titles("succeeded")

    async def test_empty_conversion_fails_only_its_locale(
        self,
        make_project: Callable[..., Path],
        hello_model: dict[str, Any],
        reporter: RecordingReporter,
    ) -> None:
        config = {"platforms": {"alexa": {"locales": {"en": ["en-US"], "de": ["de-DE"]}}}}
        root = make_project(config, {"en": hello_model, "de": hello_model})
        to_native = AlexaConverter.to_native

        def no_files_for_german(
            self: AlexaConverter, model: Any, locale: str, default_locale: str | None = None
        ) -> list[Any]:
            if locale == "de-DE":
                return []
            return to_native(self, model, locale, default_locale)

        with patch.object(AlexaConverter, "to_native", no_files_for_german):
            context = await BuildDriver(root, reporter=reporter).run()

        assert not context.succeeded
        [failure] = context.runner.failures
        assert failure.title == "de (de-DE)"
        assert isinstance(failure.error, ConversionError)
        assert 'locale "de-DE"' in failure.error.message
        models_path = _platform(root).joinpath(*_MODELS_DIR)
        assert (models_path / "en-US.json").is_file()
        assert not (models_path / "de-DE.json").exists()
        assert "en (en-US)" in reporter.titles("succeeded")


def _write_native(root: Path, locale: str, intents: list[dict[str, Any]]) -> None:
    path = _platform(root).joinpath(*_MODELS_DIR, f"{locale}.json")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(
            {
                "interactionModel": {
                    "languageModel": {"invocationName": "native app", "intents": intents}
                }
            }
        )
    )


class TestAlexaReverseBuild:
    async def test_reverse_without_existing_model(
        self, make_project: Callable[..., Path]
    ) -> None:
        root = make_project({"platforms": {"alexa": {}}})
        _write_native(root, "en-US", [{"name": "HelloIntent", "samples": ["hello"]}])

        context = await BuildDriver(
            root, BuildFlags(reverse=True, platforms=["alexa"])
        ).run()

        assert context.succeeded
        model = _read_json(root / "models" / "en-US.json")
        assert model == {
            "invocation": "native app",
            "intents": [{"name": "HelloIntent", "phrases": ["hello"]}],
        }

    async def test_reverse_backs_up_and_merges(
        self,
        make_project: Callable[..., Path],
        reporter: RecordingReporter,
    ) -> None:
        existing = {
            "invocation": "old app",
            "intents": [{"name": "OldIntent"}],
            "google": {"keep": True},
        }
        root = make_project({"platforms": {"alexa": {}}}, {"en-US": existing})
        _write_native(root, "en-US", [{"name": "HelloIntent", "samples": ["hello"]}])

        context = await BuildDriver(
            root, BuildFlags(reverse=True, platforms=["alexa"]), reporter=reporter
        ).run()

        assert context.succeeded
        model = _read_json(root / "models" / "en-US.json")
        assert model["invocation"] == "native app"
        assert model["intents"] == [{"name": "HelloIntent", "phrases": ["hello"]}]
        assert model["google"] == {"keep": True}

        backups = list((root / "models" / ".backup").iterdir())
        assert len(backups) == 1
        assert _read_json(backups[0]) == existing
        assert "Creating backups" in reporter.titles("succeeded")

    async def test_reverse_force_skips_backup(self, make_project: Callable[..., Path]) -> None:
        root = make_project({"platforms": {"alexa": {}}}, {"en-US": {"invocation": "old"}})
        _write_native(root, "en-US", [])

        await BuildDriver(
            root, BuildFlags(reverse=True, platforms=["alexa"], force=True)
        ).run()

        assert not (root / "models" / ".backup").exists()
        assert _read_json(root / "models" / "en-US.json")["invocation"] == "native app"

    async def test_reverse_cancel_keeps_models(self, make_project: Callable[..., Path]) -> None:
        root = make_project({"platforms": {"alexa": {}}}, {"en-US": {"invocation": "old"}})
        _write_native(root, "en-US", [])

        context = await BuildDriver(
            root, BuildFlags(reverse=True, platforms=["alexa"], on_existing="cancel")
        ).run()

        assert context.succeeded
        assert _read_json(root / "models" / "en-US.json") == {"invocation": "old"}

    async def test_reverse_unknown_locale(self, make_project: Callable[..., Path]) -> None:
        root = make_project({"platforms": {"alexa": {}}})
        _write_native(root, "en-US", [])

        context = await BuildDriver(
            root, BuildFlags(reverse=True, platforms=["alexa"], locales=["fr-FR"])
        ).run()

        assert not context.succeeded
        error = context.errors[0]
        assert isinstance(error, UnsupportedLocaleError)
        assert error.hint == "Available locales include: en-US"

    async def test_build_then_reverse_round_trip(
        self,
        make_project: Callable[..., Path],
        hello_model: dict[str, Any],
    ) -> None:
        config = {"platforms": {"alexa": {"locales": {"en": ["en-US"]}}}}
        root = make_project(config, {"en": hello_model})
        await BuildDriver(root).run()

        context = await BuildDriver(
            root, BuildFlags(reverse=True, platforms=["alexa"])
        ).run()

        assert context.succeeded
        model = _read_json(root / "models" / "en-US.json")
        assert model["invocation"] == "my test app"
        assert [i["name"] for i in model["intents"]] == ["HelloWorldIntent", "MyNameIsIntent"]

    async def test_malformed_native_file_fails_only_its_locale(
        self,
        make_project: Callable[..., Path],
        reporter: RecordingReporter,
    ) -> None:
        root = make_project({"platforms": {"alexa": {}}})
        _write_native(root, "en-US", [{"name": "HelloIntent", "samples": ["hello"]}])
        _write_native(root, "en-GB", ["oops"])

        context = await BuildDriver(
            root, BuildFlags(reverse=True, platforms=["alexa"]), reporter=reporter
        ).run()

        assert not context.succeeded
        [failure] = context.runner.failures
        assert failure.title == "en-GB"
        assert isinstance(failure.error, ConversionError)
        assert failure.error.plugin_id == "alexa"
        assert _read_json(root / "models" / "en-US.json")["intents"] == [
            {"name": "HelloIntent", "phrases": ["hello"]}
        ]
        assert not (root / "models" / "en-GB.json").exists()
        assert "en-US" in reporter.titles("succeeded")

    async def test_unexpected_converter_error_becomes_conversion_error(
        self, make_project: Callable[..., Path]
    ) -> None:
        root = make_project({"platforms": {"alexa": {}}})
        _write_native(root, "en-US", [])

        with patch.object(AlexaConverter, "from_native", side_effect=ValueError("boom")):
            context = await BuildDriver(
                root, BuildFlags(reverse=True, platforms=["alexa"])
            ).run()

        [failure] = context.runner.failures
        assert isinstance(failure.error, ConversionError)
        assert isinstance(failure.error.__cause__, ValueError)
        assert failure.error.message == (
            "Could not read Amazon Alexa files for locale en-US: boom"
        )
        assert not (root / "models" / "en-US.json").exists()
