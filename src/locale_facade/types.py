"""Configuration models and callback signatures.

Field names are snake_case; every model also accepts the camelCase keys
used in engine configuration files (``checkValidLocale``, ``fallbackLng``,
``parseMissingKeyHandler`` ...), so a plain mapping can be passed to ``init``.
"""

from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from locale_facade.core.config import settings

CheckValidLocale = Callable[[Any], bool]

# (key, default_value) -> text shown for a missing key
ParseMissingKeyHandler = Callable[[str, str | None], str]

# (languages, namespace, key, fallback_value, update_missing, options)
MissingKeyHandler = Callable[
    [Sequence[str], str, str, str, bool, Mapping[str, Any]], None
]

# (error, key, raw_result, options) -> replacement text
IcuParseErrorHandler = Callable[[Exception, str, str, Mapping[str, Any]], str]

Resources = dict[str, dict[str, Any]]


class _Options(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class AppOptions(_Options):
    """Application-level settings consumed by the facade itself."""

    check_valid_locale: CheckValidLocale | None = None


class EngineOptions(_Options):
    """Translation engine settings.

    Unknown fields are kept, so engine-specific options pass through.
    """

    model_config = ConfigDict(extra="allow")

    debug: bool = False
    lng: str | None = None
    fallback_lng: str | list[str] | Literal[False] | None = None
    save_missing: bool = False
    parse_missing_key_handler: ParseMissingKeyHandler | None = None
    missing_key_handler: MissingKeyHandler | Literal[False] | None = None
    resources: Resources = Field(default_factory=dict)
    ns: str | list[str] | None = None
    default_ns: str = Field(
        default_factory=lambda: settings.DEFAULT_NAMESPACE, alias="defaultNS"
    )
    ns_separator: str = Field(default_factory=lambda: settings.NS_SEPARATOR)
    key_separator: str = Field(default_factory=lambda: settings.KEY_SEPARATOR)
    # Directory of <locale>.json files loaded on demand
    load_path: Path | None = None


class IcuOptions(_Options):
    """ICU formatting extension settings."""

    error_handler: IcuParseErrorHandler | None = None

    # Compiled messages are cached per language/namespace/key
    memoize: bool = True
    # Also cache messages formatted from the key fallback
    memoize_fallback: bool = False
    # Space separated engine events that clear the cache
    bind_i18n: str = ""
    # Space separated store events that clear the cache
    bind_i18n_store: str = ""
