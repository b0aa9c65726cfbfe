"""
Phrase Translation.

Phrases live in config/lang/<locale>.yaml as nested mappings and are
addressed by dotted keys (console.cloud_account.backup.create.desc).
Placeholders use str.format syntax: "Backup {filename} started".

A missing phrase is not an error: translate() returns the key unchanged
and callers fall back to the raw key.
"""

from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from hostctl.core.config import get_app_config, load_yaml_config
from hostctl.core.logging import get_logger

logger = get_logger(__name__)


class _KeepMissing(dict):
    """format_map() mapping that leaves unknown placeholders in place."""

    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def flatten_phrases(tree: Mapping[str, Any], prefix: str = "") -> dict[str, str]:
    """Flatten a nested phrase mapping into dotted keys."""
    flat: dict[str, str] = {}
    for key, value in tree.items():
        dotted = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(flatten_phrases(value, dotted))
        else:
            flat[dotted] = str(value)
    return flat


class Translator:
    """
    Dotted-key phrase lookup with placeholder substitution.

    Usage:
        translator = Translator({"console.no_data": "No data"})
        translator.translate("console.no_data")       # "No data"
        translator.translate("console.unknown")       # "console.unknown"
    """

    def __init__(self, phrases: Mapping[str, str], locale: str = "en_US") -> None:
        self.locale = locale
        self._phrases = dict(phrases)

    @classmethod
    def from_locale(cls, locale: str) -> "Translator":
        """Load the phrase catalogue for a locale from config/lang/."""
        return cls(flatten_phrases(load_yaml_config(f"{locale}.yaml", directory="lang")), locale)

    def has(self, key: str) -> bool:
        return key in self._phrases

    def translate(self, key: str, context: Mapping[str, Any] | None = None) -> str:
        """
        Translate a phrase key.

        Args:
            key: Dotted phrase key
            context: Placeholder replacements

        Returns:
            The translated phrase, or the key itself when no phrase exists
        """
        phrase = self._phrases.get(key)
        if phrase is None:
            logger.debug("Missing phrase", key=key, locale=self.locale)
            return key
        if not context:
            return phrase
        return phrase.format_map(_KeepMissing(context))


@lru_cache
def get_translator() -> Translator:
    """Get the cached translator for the configured locale."""
    return Translator.from_locale(get_app_config().application.locale)
