"""The locale facade.

``init`` wires application configuration into a translation engine and
returns an ``I18nService`` handle with four operations: ``normalize_locale``,
``set_language``, ``get_language`` and ``translate``.
"""

import asyncio
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel

from locale_facade.context import FacadeContext, set_service
from locale_facade.core.logging import get_logger
from locale_facade.engine import TranslationEngine
from locale_facade.icu import IcuFormatter
from locale_facade.normalize import normalize_locale
from locale_facade.types import AppOptions, EngineOptions, IcuOptions

logger = get_logger(__name__)

OptionsT = TypeVar("OptionsT", bound=BaseModel)


class I18nService:
    """Facade handle bound to one configuration context and engine.

    Language switches run through the engine's asynchronous
    ``change_language``. Inside a running event loop ``set_language`` only
    schedules the switch, so ``get_language`` may still report the previous
    language until the loop gets to it. Outside an event loop the switch
    completes before ``set_language`` returns.
    """

    def __init__(self, context: FacadeContext, engine: TranslationEngine) -> None:
        self._context = context
        self._engine = engine
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def context(self) -> FacadeContext:
        return self._context

    @property
    def engine(self) -> TranslationEngine:
        return self._engine

    def normalize_locale(self, locale: str | None = None) -> str | None:
        """Normalize a locale string with this facade's validity predicate."""
        return normalize_locale(locale, self._context.is_valid_locale)

    def set_language(self, language: str | None = None) -> bool:
        """Switch the engine to ``language`` once normalized.

        Returns:
            True if a change was requested, False if the language is absent
            or isn't accepted.
        """
        if not language:
            return False

        normalized = self.normalize_locale(language)
        if normalized is None or not self._context.is_valid_locale(normalized):
            if self._context.debug:
                logger.debug("language_rejected", language=language)
            return False

        self._request_language_change(normalized)
        return True

    def _request_language_change(self, language: str) -> None:
        change = self._engine.change_language(language)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(change)
            return

        task = loop.create_task(change)
        self._pending.add(task)
        task.add_done_callback(self._language_change_done)

    def _language_change_done(self, task: "asyncio.Task[None]") -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "language_change_failed",
                error=str(task.exception()),
                exc_info=task.exception(),
            )

    def get_language(self) -> str | None:
        """The engine's active language, normalized."""
        return self.normalize_locale(self._engine.language)

    def translate(
        self, key: str, args: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> str:
        """Translate ``key`` in the active language.

        Example:
            service.translate("files", {"count": 3})
            service.translate("greeting", name="Ada")
        """
        return self._engine.t(key, {**(args or {}), **kwargs})


def _coerce(
    model: type[OptionsT], value: OptionsT | Mapping[str, Any] | None
) -> OptionsT:
    if value is None:
        return model()
    if isinstance(value, model):
        return value
    return model.model_validate(value)


def init(
    app_options: AppOptions | Mapping[str, Any] | None,
    engine_options: EngineOptions | Mapping[str, Any] | None,
    icu_options: IcuOptions | Mapping[str, Any] | None = None,
    debug: bool | None = None,
    *,
    engine: TranslationEngine | None = None,
) -> I18nService:
    """Initialize the translation engine and return a facade handle.

    Every call builds a fresh context; nothing is carried over from earlier
    calls. The returned service also becomes the current session
    (``get_service()``).

    Args:
        app_options: Locale validity predicate (``check_valid_locale``)
        engine_options: Engine settings, resources and missing-key handlers
        icu_options: ICU parse-error handler and cache settings
        debug: Overrides ``engine_options.debug`` when given
        engine: Engine to initialize. A new one is created by default.

    Returns:
        The facade handle.
    """
    app = _coerce(AppOptions, app_options)
    engine_settings = _coerce(EngineOptions, engine_options)
    icu = _coerce(IcuOptions, icu_options)

    context = FacadeContext.build(app, engine_settings, icu, debug)

    effective = engine_settings.model_copy(
        update={
            "parse_missing_key_handler": context.parse_missing_key,
            "missing_key_handler": context.missing_key,
            "debug": context.debug,
        }
    )

    if engine is None:
        engine = TranslationEngine()
    engine.use(
        IcuFormatter(
            context.parse_error,
            memoize=icu.memoize,
            memoize_fallback=icu.memoize_fallback,
            bind_i18n=icu.bind_i18n,
            bind_i18n_store=icu.bind_i18n_store,
        )
    )
    engine.init(effective)

    service = I18nService(context, engine)
    set_service(service)

    logger.info(
        "facade_initialized",
        language=engine.language,
        debug=context.debug,
        custom_validator=app.check_valid_locale is not None,
    )
    return service
