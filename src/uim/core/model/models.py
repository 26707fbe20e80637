"""Canonical Model Schema — the platform-agnostic interaction model.

The canonical model describes intents, their phrases and inputs, input types
and the invocation name.  Converters translate it to and from
platform-native files; the build never touches native formats directly.

On disk a canonical model is a plain mapping (one JSON or YAML document per
locale).  Merging happens on those mappings; :class:`CanonicalModel` is the
validated view handed to converters.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Intents and inputs
# ---------------------------------------------------------------------------


class IntentInput(BaseModel):
    """A named input (slot/parameter) of an intent.

    ``type`` is either a single input-type name or a map from platform id to
    the platform's type name (e.g. ``{"alexa": "AMAZON.NUMBER"}``).
    """

    name: str
    type: str | dict[str, str]

    def type_for(self, platform_id: str) -> str | None:
        """Return the input type name to use on *platform_id*."""
        if isinstance(self.type, str):
            return self.type
        return self.type.get(platform_id)


class Intent(BaseModel):
    """A user intention with sample phrases and optional inputs."""

    name: str = Field(min_length=1)
    phrases: list[str] = []
    inputs: list[IntentInput] = []


# ---------------------------------------------------------------------------
# Input types
# ---------------------------------------------------------------------------


class InputTypeValue(BaseModel):
    """A single value of a custom input type."""

    value: str
    id: str | None = None
    synonyms: list[str] = []


class InputType(BaseModel):
    """A custom input type (entity) and its values."""

    name: str = Field(min_length=1)
    values: list[InputTypeValue] = []


# ---------------------------------------------------------------------------
# Canonical model
# ---------------------------------------------------------------------------


class CanonicalModel(BaseModel):
    """Validated, platform-agnostic interaction model for one locale.

    Extra top-level keys (e.g. ``alexa``) are kept as platform passthrough
    data and can be read with :meth:`platform_data`.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    invocation: str | dict[str, str] = ""
    intents: list[Intent] = []
    input_types: list[InputType] = Field(default=[], alias="inputTypes")

    @property
    def is_empty(self) -> bool:
        return not self.intents and not self.input_types

    def invocation_for(self, platform_id: str) -> str | None:
        """Return the invocation name for *platform_id*, if any."""
        if isinstance(self.invocation, str):
            return self.invocation
        return self.invocation.get(platform_id)

    def platform_data(self, platform_id: str) -> dict[str, Any]:
        """Return the passthrough block stored under *platform_id*."""
        extra = self.model_extra or {}
        data = extra.get(platform_id)
        return data if isinstance(data, dict) else {}


# ---------------------------------------------------------------------------
# Native file information: the unit of exchange of converters
# ---------------------------------------------------------------------------


class NativeFileInformation(BaseModel):
    """A platform-native file: relative path segments plus its content.

    ``content`` is structured data (serialized according to the file
    extension when written) or already-serialized text.
    """

    path: list[str]
    content: Any

    @property
    def file_name(self) -> str:
        return self.path[-1] if self.path else ""

    @property
    def directory(self) -> list[str]:
        return self.path[:-1]
