"""
Generic internationalization (i18n) service.

Provides translation loading and lookup with support for:
- Multiple languages with fallback to the default language
- Nested translation keys (dot notation)
- Variable interpolation

Translations are loaded at startup from JSON files.

Example:
    # Directory structure:
    # locales/
    #   ar/
    #     errors.json
    #   en/
    #     errors.json

    from common.i18n import I18nService

    i18n = I18nService(locales_dir="./locales", default_language="ar")

    message = i18n.t("errors.INVITE_NOT_FOUND", language="en")
    language = i18n.resolve_language("en-US,en;q=0.9")
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Any

logger = logging.getLogger(__name__)


class I18nService:
    """
    Generic internationalization service.

    Loads translations from JSON files at startup and provides
    fast lookup with fallback to default language.
    """

    def __init__(
        self,
        locales_dir: str,
        default_language: str = "ar",
        supported_languages: Optional[List[str]] = None,
    ):
        """
        Initialize i18n service.

        Args:
            locales_dir: Path to the locales directory
            default_language: Default language code for fallback
            supported_languages: List of supported language codes.
                If None, auto-detects from directory structure.
        """
        self.locales_dir = Path(locales_dir)
        self.default_language = default_language
        self.translations: Dict[str, Dict[str, Any]] = {}

        if supported_languages:
            self.supported_languages = supported_languages
        else:
            self.supported_languages = self._detect_languages()

        self._load_translations()

    def _detect_languages(self) -> List[str]:
        """Detect available languages from directory structure."""
        if not self.locales_dir.exists():
            return [self.default_language]

        languages = [
            path.name
            for path in self.locales_dir.iterdir()
            if path.is_dir() and not path.name.startswith(".")
        ]
        return languages if languages else [self.default_language]

    def _load_translations(self) -> None:
        """Load all translation files at startup."""
        for lang in self.supported_languages:
            self.translations[lang] = {}
            lang_dir = self.locales_dir / lang

            if not lang_dir.exists():
                logger.warning(f"Locale directory missing: {lang_dir}")
                continue

            for file_path in lang_dir.glob("*.json"):
                namespace = file_path.stem
                try:
                    with open(file_path, "r", encoding="utf-8") as f:
                        self.translations[lang][namespace] = json.load(f)
                except (json.JSONDecodeError, OSError) as e:
                    logger.warning(f"Failed to load {file_path}: {e}")

    def _lookup(self, lang: str, key: str) -> Optional[Any]:
        """Navigate ``namespace.path.to.key`` for one language."""
        parts = key.split(".")
        if len(parts) < 2:
            return None

        current: Any = self.translations.get(lang, {}).get(parts[0], {})
        for part in parts[1:]:
            if not isinstance(current, dict) or part not in current:
                return None
            current = current[part]
        return current

    def t(
        self,
        key: str,
        language: Optional[str] = None,
        default: Optional[str] = None,
        **variables: Any,
    ) -> str:
        """
        Get translation by dot-notation key.

        Args:
            key: Dot notation key; the first part is the namespace
                (filename without .json)
            language: Language code (falls back to default if not supported)
            default: Returned when the key is missing in every language
            **variables: Interpolation values for ``{name}`` placeholders

        Returns:
            Translated string, ``default``, or the key itself
        """
        lang = language if language in self.supported_languages else self.default_language

        value = self._lookup(lang, key)
        if value is None and lang != self.default_language:
            value = self._lookup(self.default_language, key)

        if value is None:
            return default if default is not None else key

        result = str(value)
        for name, var_value in variables.items():
            result = result.replace(f"{{{name}}}", str(var_value))
        return result

    def is_supported(self, language: str) -> bool:
        """Check if a language is supported."""
        return language in self.supported_languages

    def resolve_language(self, accept_language: Optional[str]) -> str:
        """
        Pick a supported language from an Accept-Language header.

        Only the primary subtag is considered (``en-US`` -> ``en``); the
        first supported entry wins.
        """
        if not accept_language:
            return self.default_language

        for entry in accept_language.split(","):
            code = entry.split(";")[0].strip().split("-")[0].lower()
            if code and self.is_supported(code):
                return code

        return self.default_language
