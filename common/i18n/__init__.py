"""
i18n module - JSON-file translations with default-language fallback.
"""

from common.i18n.service import I18nService

__all__ = ["I18nService"]
