"""Shared error types for the build pipeline.

Every error carries a short machine-readable ``kind``, a human message, an
optional remediation ``hint`` and the id of the platform plugin that raised
it (if any).
"""

from __future__ import annotations


class UimError(Exception):
    """Base error for all build pipeline failures."""

    kind = "error"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        plugin_id: str | None = None,
    ) -> None:
        self.message = message
        self.hint = hint
        self.plugin_id = plugin_id
        super().__init__(message)

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} ({self.hint})"
        return self.message


class ConfigurationError(UimError):
    """A required configuration value is missing or invalid."""

    kind = "configuration"


class UnsupportedLocaleError(UimError):
    """A requested or resolved locale is not supported by the platform."""

    kind = "unsupported-locale"

    def __init__(
        self,
        locale: str,
        message: str,
        *,
        hint: str | None = None,
        plugin_id: str | None = None,
    ) -> None:
        self.locale = locale
        super().__init__(message, hint=hint, plugin_id=plugin_id)


class ConversionError(UimError):
    """A converter produced no files or could not parse native content."""

    kind = "conversion"


class ModelValidationError(UimError):
    """A canonical model failed a platform validator."""

    kind = "validation"


class FileSystemError(UimError):
    """An underlying read or write failed."""

    kind = "filesystem"


class ModelNotFoundError(FileSystemError):
    """No canonical model file exists for a locale."""

    def __init__(self, locale: str, *, plugin_id: str | None = None) -> None:
        self.locale = locale
        super().__init__(
            f"Could not find a model file for locale: {locale}",
            plugin_id=plugin_id,
        )
