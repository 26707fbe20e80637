"""Alexa converter — canonical model <-> Alexa interaction model JSON.

Key differences from the canonical model:
- One file per locale: ``skill-package/interactionModels/custom/<locale>.json``.
- Intents carry ``samples`` and ``slots`` instead of ``phrases`` and ``inputs``.
- Slot type values are wrapped as ``{"name": {"value": ..., "synonyms": [...]}}``.
- Built-in ``AMAZON.*`` intents and dialog/prompt definitions have no
  canonical counterpart; they live in the model's ``alexa`` passthrough block.
"""

import json
import re
from typing import Any

from uim.core.merge import merge_with_array_customizer
from uim.core.model.converter import validate_model_data
from uim.core.model.models import CanonicalModel, Intent, InputType, NativeFileInformation
from uim.errors import ConversionError, ModelValidationError

PLATFORM_ID = "alexa"
MODELS_PATH = ["skill-package", "interactionModels", "custom"]
BUILTIN_PREFIX = "AMAZON."

_INTENT_NAME = re.compile(r"^[A-Za-z_]+$")


class AlexaConverter:
    """Converts between the canonical model and Alexa's interaction model."""

    platform_id = PLATFORM_ID
    supports_reverse = True

    def validate(self, data: dict[str, Any]) -> CanonicalModel:
        """Validate canonical model data against Alexa's naming rules."""
        model = validate_model_data(data, plugin_id=self.platform_id)

        invocation = model.invocation_for(self.platform_id)
        if not invocation:
            raise ModelValidationError(
                "Model requires an invocation name for Alexa", plugin_id=self.platform_id
            )
        if invocation != invocation.lower():
            raise ModelValidationError(
                f"Alexa invocation name must be lowercase: {invocation}",
                plugin_id=self.platform_id,
            )

        for intent in model.intents:
            if not _INTENT_NAME.match(intent.name):
                raise ModelValidationError(
                    f"Alexa intent names may only contain letters and underscores: {intent.name}",
                    plugin_id=self.platform_id,
                )
        return model

    def to_native(
        self,
        model: CanonicalModel,
        locale: str,
        default_locale: str | None = None,
    ) -> list[NativeFileInformation]:
        """Convert a canonical model to a single Alexa interaction model file."""
        invocation = model.invocation_for(self.platform_id)
        if invocation is None:
            raise ConversionError(
                f"Can't find invocation name for locale {locale}.",
                plugin_id=self.platform_id,
            )

        language_model: dict[str, Any] = {
            "invocationName": invocation,
            "intents": [self._intent_to_alexa(intent) for intent in model.intents],
        }
        if model.input_types:
            language_model["types"] = [self._type_to_alexa(t) for t in model.input_types]

        content: dict[str, Any] = {"interactionModel": {"languageModel": language_model}}

        # Platform-specific additions (built-in intents, dialogs, prompts)
        passthrough = model.platform_data(self.platform_id)
        if passthrough:
            merge_with_array_customizer(content, passthrough)

        return [NativeFileInformation(path=[*MODELS_PATH, f"{locale}.json"], content=content)]

    def from_native(self, files: list[NativeFileInformation], locale: str) -> dict[str, Any]:
        """Convert an Alexa interaction model file back into canonical model data.

        Raises:
            ConversionError: If the file is missing, not JSON, or does not
                have the shape of an interaction model.
        """
        if not files:
            raise ConversionError(
                f"No Alexa files found for locale {locale}.", plugin_id=self.platform_id
            )

        try:
            return self._parse_native(files[0])
        except (AttributeError, KeyError, TypeError) as exc:
            raise ConversionError(
                f"Malformed Alexa model {'/'.join(files[0].path)} for locale {locale}: {exc!r}",
                plugin_id=self.platform_id,
            ) from exc

    def _parse_native(self, file: NativeFileInformation) -> dict[str, Any]:
        content = _load_content(file.content)
        interaction_model = content.get("interactionModel") if isinstance(content, dict) else None
        language_model = (
            interaction_model.get("languageModel") if isinstance(interaction_model, dict) else None
        )
        if not isinstance(language_model, dict):
            raise ConversionError(
                "Alexa files did not contain any valid data.", plugin_id=self.platform_id
            )

        custom_types = {t.get("name") for t in language_model.get("types") or []}
        data: dict[str, Any] = {"invocation": language_model.get("invocationName", "")}

        intents: list[dict[str, Any]] = []
        builtin_intents: list[dict[str, Any]] = []
        for raw in language_model.get("intents", []):
            if raw.get("name", "").startswith(BUILTIN_PREFIX):
                builtin_intents.append(raw)
            else:
                intents.append(self._intent_from_alexa(raw, custom_types))
        data["intents"] = intents

        if language_model.get("types"):
            data["inputTypes"] = [self._type_from_alexa(t) for t in language_model["types"]]

        # Everything without a canonical counterpart goes back to passthrough
        passthrough: dict[str, Any] = {
            k: v for k, v in interaction_model.items() if k != "languageModel"
        }
        remaining = {
            k: v
            for k, v in language_model.items()
            if k not in ("invocationName", "intents", "types")
        }
        if builtin_intents:
            remaining["intents"] = builtin_intents
        if remaining:
            passthrough["languageModel"] = remaining
        if passthrough:
            data[self.platform_id] = {"interactionModel": passthrough}

        return data

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _intent_to_alexa(self, intent: Intent) -> dict[str, Any]:
        result: dict[str, Any] = {"name": intent.name, "samples": list(intent.phrases)}
        if intent.inputs:
            slots: list[dict[str, str]] = []
            for item in intent.inputs:
                slot_type = item.type_for(self.platform_id)
                if slot_type is None:
                    raise ConversionError(
                        f"Input '{item.name}' of intent '{intent.name}' has no Alexa type.",
                        plugin_id=self.platform_id,
                    )
                slots.append({"name": item.name, "type": slot_type})
            result["slots"] = slots
        return result

    def _type_to_alexa(self, input_type: InputType) -> dict[str, Any]:
        values: list[dict[str, Any]] = []
        for value in input_type.values:
            name: dict[str, Any] = {"value": value.value}
            if value.synonyms:
                name["synonyms"] = list(value.synonyms)
            entry: dict[str, Any] = {"name": name}
            if value.id:
                entry["id"] = value.id
            values.append(entry)
        return {"name": input_type.name, "values": values}

    def _intent_from_alexa(self, raw: dict[str, Any], custom_types: set[Any]) -> dict[str, Any]:
        if not raw.get("name"):
            raise ConversionError("Alexa intent without a name.", plugin_id=self.platform_id)
        intent: dict[str, Any] = {"name": raw["name"], "phrases": list(raw.get("samples", []))}
        slots = raw.get("slots", [])
        if slots:
            inputs: list[dict[str, Any]] = []
            for slot in slots:
                slot_type = slot.get("type", "")
                # Custom types are shared across platforms, built-ins are not
                input_type: str | dict[str, str] = (
                    slot_type if slot_type in custom_types else {self.platform_id: slot_type}
                )
                inputs.append({"name": slot["name"], "type": input_type})
            intent["inputs"] = inputs
        return intent

    def _type_from_alexa(self, raw: dict[str, Any]) -> dict[str, Any]:
        values: list[dict[str, Any]] = []
        for entry in raw.get("values", []):
            name = entry.get("name", {})
            value: dict[str, Any] = {"value": name.get("value", "")}
            if entry.get("id"):
                value["id"] = entry["id"]
            if name.get("synonyms"):
                value["synonyms"] = list(name["synonyms"])
            values.append(value)
        return {"name": raw["name"], "values": values}


def _load_content(content: Any) -> Any:
    if isinstance(content, (str, bytes)):
        try:
            return json.loads(content)
        except json.JSONDecodeError as exc:
            raise ConversionError(
                f"Alexa model file is not valid JSON: {exc}", plugin_id=PLATFORM_ID
            ) from exc
    return content
