"""Facade configuration context and the current session.

``FacadeContext`` holds the delegates a facade consults on every call. Each
optional caller callback is resolved once, when the context is built, into a
concrete function: the caller's own, or the built-in default. Handles own
their context, so independent facades can coexist.

The module also tracks the most recently initialized service, for callers
that treat the facade as a process-wide session.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from locale_facade.core.exceptions import NotInitializedError
from locale_facade.normalize import resolve_locale_validator
from locale_facade.types import (
    AppOptions,
    CheckValidLocale,
    EngineOptions,
    IcuOptions,
    IcuParseErrorHandler,
    MissingKeyHandler,
    ParseMissingKeyHandler,
)

if TYPE_CHECKING:
    from locale_facade.facade import I18nService


def _resolve_parse_missing_key(
    provided: ParseMissingKeyHandler | None,
) -> ParseMissingKeyHandler:
    if provided is None:

        def show_key(key: str, default_value: str | None = None) -> str:  # noqa: ARG001
            return key

        return show_key

    def parse_missing_key(key: str, default_value: str | None = None) -> str:
        return provided(key, default_value)

    return parse_missing_key


def _resolve_missing_key(provided: MissingKeyHandler | None) -> MissingKeyHandler:
    if provided is None:

        def ignore_missing_key(
            languages: Sequence[str],
            namespace: str,
            key: str,
            fallback_value: str,
            update_missing: bool,
            options: Mapping[str, Any],
        ) -> None:
            return None

        return ignore_missing_key

    def missing_key(
        languages: Sequence[str],
        namespace: str,
        key: str,
        fallback_value: str,
        update_missing: bool,
        options: Mapping[str, Any],
    ) -> None:
        provided(languages, namespace, key, fallback_value, update_missing, options)

    return missing_key


def _resolve_parse_error(
    provided: IcuParseErrorHandler | None, debug: bool
) -> IcuParseErrorHandler:
    if provided is None:

        def hide_broken_message(
            error: Exception, key: str, res: str, options: Mapping[str, Any]
        ) -> str:
            return ""

        return hide_broken_message

    def parse_error(
        error: Exception, key: str, res: str, options: Mapping[str, Any]
    ) -> str:
        return provided(error, key, res, {**options, "debug": debug})

    return parse_error


@dataclass(frozen=True)
class FacadeContext:
    """Resolved delegates and flags for one facade instance."""

    is_valid_locale: CheckValidLocale
    parse_missing_key: ParseMissingKeyHandler
    missing_key: MissingKeyHandler
    parse_error: IcuParseErrorHandler
    debug: bool = False

    @classmethod
    def build(
        cls,
        app_options: AppOptions,
        engine_options: EngineOptions,
        icu_options: IcuOptions | None = None,
        debug: bool | None = None,
    ) -> "FacadeContext":
        """Resolve every optional delegate to a concrete function.

        Args:
            app_options: Supplies the locale validity predicate
            engine_options: Supplies the debug flag and missing-key handlers
            icu_options: Supplies the ICU parse-error handler
            debug: Overrides engine_options.debug when given
        """
        if debug is None:
            debug = engine_options.debug

        # i18n engines use False to switch the handler off
        missing_key_handler = engine_options.missing_key_handler or None
        error_handler = icu_options.error_handler if icu_options else None

        return cls(
            is_valid_locale=resolve_locale_validator(app_options.check_valid_locale),
            parse_missing_key=_resolve_parse_missing_key(
                engine_options.parse_missing_key_handler
            ),
            missing_key=_resolve_missing_key(missing_key_handler),
            parse_error=_resolve_parse_error(error_handler, debug),
            debug=debug,
        )


class _SessionState:
    """Latest service returned by ``init``."""

    service: ClassVar["I18nService | None"] = None


def get_service() -> "I18nService":
    """Return the service created by the latest ``init`` call.

    Raises:
        NotInitializedError: ``init`` hasn't been called yet.
    """
    service = _SessionState.service
    if service is None:
        raise NotInitializedError()
    return service


def set_service(service: "I18nService | None") -> None:
    """Make ``service`` the current session (None clears it)."""
    _SessionState.service = service
