"""Locale normalization facade over a translation engine.

Normalizes user and device locale strings into canonical ``language-REGION``
form, validated by an application supplied predicate, and exposes a small
translation API backed by an engine with ICU message formatting.

Usage:
    service = init(
        {"check_valid_locale": supported_locales_validator(["en-US", "sv-SE"])},
        {"lng": "en-US", "resources": load_resources("locales")},
    )
    service.set_language("sv_se")
    service.translate("files", {"count": 3})
"""

from locale_facade.accept_language import negotiate_locale, parse_accept_language
from locale_facade.context import FacadeContext, get_service
from locale_facade.core.exceptions import (
    LocaleFacadeError,
    MessageFormatError,
    NotInitializedError,
    ResourceLoadError,
)
from locale_facade.engine import TranslationEngine
from locale_facade.facade import I18nService, init
from locale_facade.icu import IcuFormatter, format_message
from locale_facade.normalize import (
    LOCALE_DIVIDERS,
    normalize_locale,
    supported_locales_validator,
)
from locale_facade.resources import load_resources
from locale_facade.types import AppOptions, EngineOptions, IcuOptions

__all__ = [
    "LOCALE_DIVIDERS",
    "AppOptions",
    "EngineOptions",
    "FacadeContext",
    "I18nService",
    "IcuFormatter",
    "IcuOptions",
    "LocaleFacadeError",
    "MessageFormatError",
    "NotInitializedError",
    "ResourceLoadError",
    "TranslationEngine",
    "format_message",
    "get_service",
    "init",
    "load_resources",
    "negotiate_locale",
    "normalize_locale",
    "parse_accept_language",
    "supported_locales_validator",
]
