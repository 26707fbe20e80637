"""Canonical Model Schema & platform conversion."""

from uim.core.model.converter import ModelConverter, validate_model_data
from uim.core.model.models import (
    CanonicalModel,
    InputType,
    InputTypeValue,
    Intent,
    IntentInput,
    NativeFileInformation,
)

__all__ = [
    "CanonicalModel",
    "InputType",
    "InputTypeValue",
    "Intent",
    "IntentInput",
    "ModelConverter",
    "NativeFileInformation",
    "validate_model_data",
]
