"""Locale resolution — expand requested locale tokens into platform locales.

A project may map a generic token to concrete locales per platform::

    locales:
      en: [en-US, en-GB]

Requesting ``en`` then builds both ``en-US`` and ``en-GB``.  Tokens without
a table entry resolve to themselves.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence

from uim.errors import ConfigurationError, UnsupportedLocaleError

logger = logging.getLogger(__name__)


class LocaleResolver:
    """Resolves and validates locales for one platform.

    Args:
        supported_locales: Every locale code the platform accepts.
        table: Project-supplied resolution table (generic token -> codes).
        generic_locales: ``True`` for platforms with a two-stage hierarchy,
            where a concrete locale such as ``de-DE`` requires its generic
            prefix ``de`` whenever the platform lists that prefix.
        platform_id: Attached to raised errors.
        platform_name: Human-readable platform name for error messages.
        docs_url: Documentation pointer added to unsupported-locale hints.
    """

    def __init__(
        self,
        supported_locales: Sequence[str],
        table: Mapping[str, Sequence[str]] | None = None,
        *,
        generic_locales: bool = False,
        platform_id: str | None = None,
        platform_name: str = "this platform",
        docs_url: str | None = None,
    ) -> None:
        self.supported_locales = list(supported_locales)
        self.table = {k: list(v) for k, v in (table or {}).items()}
        self.generic_locales = generic_locales
        self.platform_id = platform_id
        self.platform_name = platform_name
        self.docs_url = docs_url

    def resolve(self, token: str) -> list[str]:
        """Return the concrete locales *token* expands to (deduplicated)."""
        resolved = self.table.get(token)
        if resolved is None:
            return [token]
        return list(dict.fromkeys(resolved))

    def resolve_all(self, tokens: Iterable[str]) -> list[str]:
        """Resolve every token and flatten into one ordered, deduplicated list."""
        result: dict[str, None] = {}
        for token in tokens:
            for locale in self.resolve(token):
                result.setdefault(locale, None)
        return list(result)

    def validate(self, resolved: Sequence[str]) -> None:
        """Check every resolved locale against the supported set.

        Stops at the first offending locale.

        Raises:
            UnsupportedLocaleError: If a locale is unsupported or lacks its
                required generic locale.
        """
        for locale in resolved:
            if self.generic_locales:
                generic = locale[:2]
                if generic in self.supported_locales and generic not in resolved:
                    raise UnsupportedLocaleError(
                        locale,
                        f"Locale {locale} requires a generic locale {generic}.",
                        hint=f"Add '{generic}' to the resolution of this locale in your "
                        "project configuration.",
                        plugin_id=self.platform_id,
                    )

            if locale not in self.supported_locales:
                raise UnsupportedLocaleError(
                    locale,
                    f"Locale {locale} is not supported by {self.platform_name}.",
                    hint=self._unsupported_hint(locale),
                    plugin_id=self.platform_id,
                )
        logger.debug("Validated locales for %s: %s", self.platform_name, list(resolved))

    def resolve_and_validate(self, tokens: Iterable[str]) -> list[str]:
        """Resolve *tokens* and validate the result in one step."""
        resolved = self.resolve_all(tokens)
        self.validate(resolved)
        return resolved

    def _unsupported_hint(self, locale: str) -> str | None:
        if len(locale) == 2 and not self.generic_locales:
            return (
                f"{self.platform_name} does not support generic locales, please specify "
                "locales in your project configuration."
            )
        if self.docs_url:
            return f"For more information on multiple language support: {self.docs_url}"
        return None


def select_default_locale(
    locales: Sequence[str],
    configured: str | None = None,
    *,
    plugin_id: str | None = None,
) -> str:
    """Pick the default locale for a build.

    A configured default wins.  Otherwise the first locale containing
    ``"en"`` is chosen, falling back to the first locale.

    Raises:
        ConfigurationError: If no default can be determined.
    """
    if configured:
        return configured

    for locale in locales:
        if "en" in locale:
            return locale

    if locales:
        return locales[0]

    raise ConfigurationError(
        "Could not find a default locale.",
        hint='Try adding the property "default_locale" to your project configuration.',
        plugin_id=plugin_id,
    )
