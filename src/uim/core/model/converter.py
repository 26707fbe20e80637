"""Converter protocol — translates between the canonical model and native files.

Each platform (Alexa, Google) has a concrete converter that implements the
forward direction (canonical model -> native files) and, where the platform
opts in via ``supports_reverse``, the reverse direction (native files ->
canonical model data).
"""

from typing import Any, Protocol, runtime_checkable

from pydantic import ValidationError

from uim.core.model.models import CanonicalModel, NativeFileInformation
from uim.errors import ModelValidationError


@runtime_checkable
class ModelConverter(Protocol):
    """Protocol for platform-specific model converters."""

    platform_id: str
    supports_reverse: bool

    def validate(self, data: dict[str, Any]) -> CanonicalModel:
        """Validate raw canonical model data for this platform.

        Raises:
            ModelValidationError: If the data is not a valid model for the platform.
        """
        ...

    def to_native(
        self,
        model: CanonicalModel,
        locale: str,
        default_locale: str | None = None,
    ) -> list[NativeFileInformation]:
        """Convert a canonical model into the platform's native files for *locale*."""
        ...

    def from_native(self, files: list[NativeFileInformation], locale: str) -> dict[str, Any]:
        """Parse native files for *locale* back into canonical model data.

        Raises:
            ConversionError: If the files hold no usable data.
        """
        ...


def validate_model_data(data: Any, *, plugin_id: str | None = None) -> CanonicalModel:
    """Validate the platform-independent shape of a canonical model.

    Checks the schema and that intent and input type names are unique.
    """
    if not isinstance(data, dict):
        raise ModelValidationError("Model must be a mapping", plugin_id=plugin_id)

    try:
        model = CanonicalModel.model_validate(data)
    except ValidationError as exc:
        raise ModelValidationError(str(exc), plugin_id=plugin_id) from exc

    _check_unique("intent", [i.name for i in model.intents], plugin_id)
    _check_unique("input type", [t.name for t in model.input_types], plugin_id)
    return model


def _check_unique(label: str, names: list[str], plugin_id: str | None) -> None:
    seen: set[str] = set()
    for name in names:
        if name in seen:
            raise ModelValidationError(f"Duplicate {label} name: {name}", plugin_id=plugin_id)
        seen.add(name)
