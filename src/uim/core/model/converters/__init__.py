"""Platform-specific converter implementations."""

from uim.core.model.converters.alexa import AlexaConverter
from uim.core.model.converters.google import GoogleConverter

__all__ = ["AlexaConverter", "GoogleConverter"]
