"""Google converter — canonical model <-> Conversational Actions YAML files.

Key differences from the canonical model:
- One YAML file per intent (``custom/intents/<Name>.yaml``) and per input
  type (``custom/types/<Name>.yaml``).  Files of non-default locales live in
  a ``<locale>/`` subdirectory.
- Phrase placeholders ``{name}`` become ``($name 'name' auto=true)``.
- Inputs are ``parameters`` with a nested ``type.name``.
- Global intent handlers (``custom/global/*.yaml``) route every intent and
  the main invocation to the webhook; they are emitted for the default
  locale only.
- The invocation name is not part of the model files.  It lives in
  ``settings/[<locale>/]settings.yaml`` as ``localizedSettings.displayName``,
  which the reverse direction reads when it is supplied.
"""

import re
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import yaml

from uim.core.model.converter import validate_model_data
from uim.core.model.models import CanonicalModel, Intent, InputType, NativeFileInformation
from uim.errors import ConversionError, ModelValidationError

PLATFORM_ID = "google"
WEBHOOK_HANDLER = "uim"
MAIN_INTENT = "actions.intent.MAIN"
BUILTIN_TYPE_PREFIX = "actions.type."

_PLACEHOLDER = re.compile(r"\{(\w+)\}")
_NATIVE_PLACEHOLDER = re.compile(r"\(\$(\w+) '[^']*' auto=true\)")


class GoogleConverter:
    """Converts between the canonical model and Conversational Actions files."""

    platform_id = PLATFORM_ID
    supports_reverse = True

    def validate(self, data: dict[str, Any]) -> CanonicalModel:
        """Validate canonical model data against Google's naming rules."""
        model = validate_model_data(data, plugin_id=self.platform_id)

        if not model.invocation_for(self.platform_id):
            raise ModelValidationError(
                "Model requires an invocation name for Google Assistant",
                plugin_id=self.platform_id,
            )
        for intent in model.intents:
            if intent.name.startswith("actions."):
                raise ModelValidationError(
                    f"Intent names starting with 'actions.' are reserved: {intent.name}",
                    plugin_id=self.platform_id,
                )
        return model

    def to_native(
        self,
        model: CanonicalModel,
        locale: str,
        default_locale: str | None = None,
    ) -> list[NativeFileInformation]:
        """Convert a canonical model into intent, type and global handler files."""
        is_default = default_locale is None or locale == default_locale
        locale_dir = [] if is_default else [locale]
        files: list[NativeFileInformation] = []

        for intent in model.intents:
            files.append(
                NativeFileInformation(
                    path=["custom", "intents", *locale_dir, f"{intent.name}.yaml"],
                    content=self._intent_to_google(intent),
                )
            )

        for input_type in model.input_types:
            files.append(
                NativeFileInformation(
                    path=["custom", "types", *locale_dir, f"{input_type.name}.yaml"],
                    content=self._type_to_google(input_type),
                )
            )

        if is_default:
            handler = {"handler": {"webhookHandler": WEBHOOK_HANDLER}}
            for name in [MAIN_INTENT, *(i.name for i in model.intents)]:
                files.append(
                    NativeFileInformation(
                        path=["custom", "global", f"{name}.yaml"], content=dict(handler)
                    )
                )

        return files

    def from_native(self, files: list[NativeFileInformation], locale: str) -> dict[str, Any]:
        """Convert intent, type and settings files back into canonical model data.

        Raises:
            ConversionError: If a file is not YAML or does not have the shape
                Conversational Actions expects.
        """
        intents: list[tuple[NativeFileInformation, dict[str, Any]]] = []
        types: list[tuple[NativeFileInformation, dict[str, Any]]] = []
        invocation: str | None = None

        for file in files:
            if not file.path:
                continue
            content = _load_content(file)
            if file.path[:2] == ["custom", "intents"]:
                intents.append((file, content))
            elif file.path[:2] == ["custom", "types"]:
                types.append((file, content))
            elif file.path[0] == "settings" and file.file_name == "settings.yaml":
                with _malformed_as_conversion_error(file, locale):
                    display_name = (content.get("localizedSettings") or {}).get("displayName")
                if display_name:
                    invocation = str(display_name)

        if not intents and not types and invocation is None:
            raise ConversionError(
                "Google files did not contain any valid data.", plugin_id=self.platform_id
            )

        custom_types = {_strip_extension(file.file_name) for file, _ in types}
        converted_intents: list[dict[str, Any]] = []
        for file, content in intents:
            name = _strip_extension(file.file_name)
            with _malformed_as_conversion_error(file, locale):
                converted_intents.append(self._intent_from_google(name, content, custom_types))
        data: dict[str, Any] = {"invocation": invocation or "", "intents": converted_intents}

        if types:
            input_types: list[dict[str, Any]] = []
            for file, content in types:
                name = _strip_extension(file.file_name)
                with _malformed_as_conversion_error(file, locale):
                    input_types.append(self._type_from_google(name, content))
            data["inputTypes"] = input_types
        return data

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _intent_to_google(self, intent: Intent) -> dict[str, Any]:
        result: dict[str, Any] = {
            "trainingPhrases": [_PLACEHOLDER.sub(r"($\1 '\1' auto=true)", p) for p in intent.phrases]
        }
        if intent.inputs:
            parameters: list[dict[str, Any]] = []
            for item in intent.inputs:
                type_name = item.type_for(self.platform_id)
                if type_name is None:
                    raise ConversionError(
                        f"Input '{item.name}' of intent '{intent.name}' has no Google type.",
                        plugin_id=self.platform_id,
                    )
                parameters.append({"name": item.name, "type": {"name": type_name}})
            result["parameters"] = parameters
        return result

    def _type_to_google(self, input_type: InputType) -> dict[str, Any]:
        entities: dict[str, Any] = {}
        for value in input_type.values:
            key = value.id or value.value
            entities[key] = {"synonyms": _unique_strings([value.value, *value.synonyms])}
        return {"synonym": {"entities": entities, "matchType": "EXACT_MATCH"}}

    def _intent_from_google(
        self, name: str, content: dict[str, Any], custom_types: set[str]
    ) -> dict[str, Any]:
        intent: dict[str, Any] = {
            "name": name,
            "phrases": [
                _NATIVE_PLACEHOLDER.sub(r"{\1}", p) for p in content.get("trainingPhrases", [])
            ],
        }
        parameters = content.get("parameters", [])
        if parameters:
            inputs: list[dict[str, Any]] = []
            for param in parameters:
                type_name = (param.get("type") or {}).get("name", "")
                input_type: str | dict[str, str] = (
                    type_name
                    if type_name in custom_types or not type_name.startswith(BUILTIN_TYPE_PREFIX)
                    else {self.platform_id: type_name}
                )
                inputs.append({"name": param["name"], "type": input_type})
            intent["inputs"] = inputs
        return intent

    def _type_from_google(self, name: str, content: dict[str, Any]) -> dict[str, Any]:
        entities = (content.get("synonym") or {}).get("entities") or {}
        values: list[dict[str, Any]] = []
        for key, entity in entities.items():
            synonyms = list((entity or {}).get("synonyms", []))
            value_text = synonyms[0] if synonyms else key
            value: dict[str, Any] = {"value": value_text}
            if key != value_text:
                value["id"] = key
            if synonyms[1:]:
                value["synonyms"] = synonyms[1:]
            values.append(value)
        return {"name": name, "values": values}


@contextmanager
def _malformed_as_conversion_error(file: NativeFileInformation, locale: str) -> Iterator[None]:
    try:
        yield
    except (AttributeError, KeyError, TypeError) as exc:
        raise ConversionError(
            f"Malformed Google file {'/'.join(file.path)} for locale {locale}: {exc!r}",
            plugin_id=PLATFORM_ID,
        ) from exc


def _load_content(file: NativeFileInformation) -> dict[str, Any]:
    content = file.content
    if isinstance(content, (str, bytes)):
        try:
            content = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise ConversionError(
                f"Invalid YAML in {'/'.join(file.path)}: {exc}", plugin_id=PLATFORM_ID
            ) from exc
    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConversionError(
            f"Expected a mapping in {'/'.join(file.path)}", plugin_id=PLATFORM_ID
        )
    return content


def _strip_extension(file_name: str) -> str:
    for suffix in (".yaml", ".yml"):
        if file_name.endswith(suffix):
            return file_name[: -len(suffix)]
    return file_name


def _unique_strings(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))
