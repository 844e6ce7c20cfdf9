"""Translation engine.

Holds translation resources, the active language and the fallback chain, and
resolves keys to display text. Resource strings are kept in python-i18n's
translation container; each engine files its locales under its own scope, so
several engines can live in one process without seeing each other's strings.
A scope is dropped from the container by ``close()``, or when its engine is
garbage collected.

Message formatting is delegated to a pluggable formatter module registered
with ``use()`` (see ``locale_facade.icu.IcuFormatter``). Missing keys are
reported through the ``parse_missing_key_handler`` and ``missing_key_handler``
hooks from the engine options.
"""

import asyncio
from collections import defaultdict
from collections.abc import Callable, Mapping
from typing import Any, Protocol, Self
import uuid
import weakref

from i18n import translations as i18n_store  # type: ignore[import-untyped]

from locale_facade.core.logging import get_logger
from locale_facade.resources import load_locale_file, store_resources
from locale_facade.types import EngineOptions

logger = get_logger(__name__)

# Option keys that control the lookup rather than feed the message
DEFAULT_VALUE_KEYS = ("default_value", "defaultValue")


def _drop_scope(scope: str) -> None:
    prefix = f"{scope}/"
    for scoped in [name for name in i18n_store.container if name.startswith(prefix)]:
        del i18n_store.container[scoped]


class FormatterModule(Protocol):
    """A message formatting extension plugged into the engine."""

    type: str

    def init(self, engine: "TranslationEngine") -> None: ...

    def detach(self) -> None: ...

    def parse(
        self,
        res: str,
        options: Mapping[str, Any],
        lng: str | None,
        ns: str,
        key: str,
        *,
        resolved: bool = True,
    ) -> str: ...


class TranslationEngine:
    """Key lookup with language fallback and pluggable formatting.

    Usage:
        engine = TranslationEngine().use(IcuFormatter())
        engine.init({"lng": "en-US", "resources": {...}})
        engine.t("greeting", {"name": "Ada"})
    """

    def __init__(self) -> None:
        self._scope = uuid.uuid4().hex
        self._options = EngineOptions()
        self._language: str | None = None
        self._formatter: FormatterModule | None = None
        self._listeners: dict[str, list[Callable[..., Any]]] = defaultdict(list)
        self._loaded: set[str] = set()
        self._release = weakref.finalize(self, _drop_scope, self._scope)
        self.is_initialized = False

    # -- configuration -----------------------------------------------------

    def use(self, module: FormatterModule) -> Self:
        """Register an extension module. Only formatter modules are supported.

        A previously registered formatter is detached from the engine events.
        """
        if module.type != "i18nFormat":
            raise ValueError(f"Unsupported module type: {module.type}")
        if self._formatter is not None and self._formatter is not module:
            self._formatter.detach()
        self._formatter = module
        if self.is_initialized:
            module.init(self)
        return self

    def init(self, options: EngineOptions | Mapping[str, Any] | None = None) -> Self:
        """(Re)initialize the engine, replacing all resources and settings."""
        if options is None:
            options = EngineOptions()
        elif not isinstance(options, EngineOptions):
            options = EngineOptions.model_validate(options)

        self._clear_store()
        if not self._release.alive:
            self._release = weakref.finalize(self, _drop_scope, self._scope)
        self._options = options
        self._loaded = set()

        for lng, namespaces in options.resources.items():
            for ns, data in namespaces.items():
                self.add_resource_bundle(lng, ns, data, silent=True)
            self._loaded.add(lng)

        language = options.lng or next(iter(self.fallback_languages), None)
        if options.load_path is not None:
            for code in self._resolve_hierarchy(language):
                self._load_language(code)

        self._language = language
        if self._formatter is not None:
            self._formatter.init(self)
        self.is_initialized = True

        logger.info(
            "engine_initialized",
            language=language,
            fallback=self.fallback_languages,
            languages=sorted(self._loaded),
        )
        self.emit("initialized", options)
        return self

    def close(self) -> None:
        """Drop this engine's resources from the shared container."""
        if self._formatter is not None:
            self._formatter.detach()
        self._release()
        self._loaded = set()
        self.is_initialized = False

    @property
    def options(self) -> EngineOptions:
        return self._options

    @property
    def debug(self) -> bool:
        return self._options.debug

    @property
    def language(self) -> str | None:
        """The active language, exactly as it was requested."""
        return self._language

    @property
    def fallback_languages(self) -> list[str]:
        fallback = self._options.fallback_lng
        if not fallback:
            return []
        if isinstance(fallback, str):
            return [fallback]
        return list(fallback)

    @property
    def namespaces(self) -> set[str]:
        configured = self._options.ns
        if configured is None:
            names = set()
        elif isinstance(configured, str):
            names = {configured}
        else:
            names = set(configured)
        names.add(self._options.default_ns)
        for lng in self._store_locales():
            for store_key in i18n_store.container.get(self._scoped(lng), {}):
                names.add(store_key.split(self._options.key_separator, 1)[0])
        return names

    async def change_language(self, lng: str | None) -> None:
        """Switch the active language, loading its resource file if needed."""
        if not lng:
            return

        if self._options.load_path is not None:
            for code in self._resolve_hierarchy(lng):
                if code not in self._loaded:
                    await asyncio.to_thread(self._load_language, code)

        previous = self._language
        self._language = lng
        logger.info("language_changed", language=lng, previous=previous)
        self.emit("languageChanged", lng)

    # -- events ------------------------------------------------------------

    def on(self, event: str, callback: Callable[..., Any]) -> None:
        self._listeners[event].append(callback)

    def off(self, event: str, callback: Callable[..., Any] | None = None) -> None:
        if callback is None:
            self._listeners.pop(event, None)
        elif callback in self._listeners.get(event, []):
            self._listeners[event].remove(callback)

    def emit(self, event: str, *args: Any) -> None:
        for callback in list(self._listeners.get(event, [])):
            callback(*args)

    # -- resource store ----------------------------------------------------

    def _scoped(self, lng: str) -> str:
        return f"{self._scope}/{lng}"

    def _store_key(self, ns: str, key: str) -> str:
        # Same layout python-i18n uses for namespaced keys
        return f"{ns}{self._options.key_separator}{key}"

    def _store_locales(self) -> list[str]:
        prefix = f"{self._scope}/"
        return [
            scoped[len(prefix) :]
            for scoped in i18n_store.container
            if scoped.startswith(prefix)
        ]

    def _clear_store(self) -> None:
        _drop_scope(self._scope)

    def _load_language(self, lng: str) -> None:
        if lng in self._loaded or self._options.load_path is None:
            return
        data = load_locale_file(self._options.load_path, lng)
        if data is not None:
            self.add_resource_bundle(lng, self._options.default_ns, data)
        self._loaded.add(lng)

    def add_resource(self, lng: str, ns: str, key: str, value: str) -> None:
        i18n_store.add(self._store_key(ns, key), value, locale=self._scoped(lng))
        self.emit("added", lng, ns)

    def add_resources(self, lng: str, ns: str, resources: Mapping[str, str]) -> None:
        for key, value in resources.items():
            i18n_store.add(self._store_key(ns, key), value, locale=self._scoped(lng))
        self.emit("added", lng, ns)

    def add_resource_bundle(
        self,
        lng: str,
        ns: str,
        resources: Mapping[str, Any],
        *,
        silent: bool = False,
    ) -> None:
        """Add a (possibly nested) key map for one language and namespace."""
        store_resources(
            resources, ns, self._scoped(lng), self._options.key_separator
        )
        if not silent:
            self.emit("added", lng, ns)

    def remove_resource_bundle(self, lng: str, ns: str) -> None:
        bundle = i18n_store.container.get(self._scoped(lng), {})
        prefix = self._store_key(ns, "")
        for store_key in [k for k in bundle if k.startswith(prefix)]:
            del bundle[store_key]
        self.emit("removed", lng, ns)

    def has_resource_bundle(self, lng: str, ns: str) -> bool:
        bundle = i18n_store.container.get(self._scoped(lng), {})
        prefix = self._store_key(ns, "")
        return any(k.startswith(prefix) for k in bundle)

    def get_resource(self, lng: str, ns: str, key: str) -> str | None:
        store_key = self._store_key(ns, key)
        scoped = self._scoped(lng)
        if not i18n_store.has(store_key, scoped):
            return None
        value = i18n_store.get(store_key, scoped)
        # python-i18n keeps plural objects ({"one": ..., "other": ...}) whole
        if isinstance(value, Mapping):
            return None
        return str(value)

    # -- lookup ------------------------------------------------------------

    def _resolve_hierarchy(self, lng: str | None) -> list[str]:
        """Languages searched for a key: requested, its base language, fallbacks."""
        codes: list[str] = []
        if lng:
            codes.append(lng)
            base = lng.split("-", 1)[0]
            if base != lng:
                codes.append(base)
        for code in self.fallback_languages:
            if code not in codes:
                codes.append(code)
        return codes

    def _split_namespace(self, key: str, options: Mapping[str, Any]) -> tuple[str, str]:
        separator = self._options.ns_separator
        if separator and separator in key:
            ns, rest = key.split(separator, 1)
            if ns in self.namespaces:
                return ns, rest
        return options.get("ns") or self._options.default_ns, key

    def _format(
        self,
        res: str,
        options: Mapping[str, Any],
        lng: str | None,
        ns: str,
        key: str,
        *,
        resolved: bool,
    ) -> str:
        if self._formatter is None:
            return res
        return self._formatter.parse(res, options, lng, ns, key, resolved=resolved)

    def t(self, key: str, args: Mapping[str, Any] | None = None) -> str:
        """Translate ``key`` in the active language.

        Args:
            key: Translation key, optionally prefixed with "<namespace>:"
            args: Message arguments. "lng", "ns" and "default_value" control
                the lookup itself.

        Returns:
            The formatted message, or the missing-key fallback text.
        """
        options: dict[str, Any] = dict(args or {})
        ns, lookup_key = self._split_namespace(key, options)
        lng = options.get("lng") or self._language

        for code in self._resolve_hierarchy(lng):
            res = self.get_resource(code, ns, lookup_key)
            if res is not None:
                return self._format(res, options, code, ns, lookup_key, resolved=True)

        return self._missing(lookup_key, ns, lng, options)

    def _missing(
        self, key: str, ns: str, lng: str | None, options: dict[str, Any]
    ) -> str:
        default_value = next(
            (options[k] for k in DEFAULT_VALUE_KEYS if options.get(k) is not None),
            None,
        )
        fallback_value = default_value if default_value is not None else key

        if self.debug:
            logger.debug("translation_missing", key=key, namespace=ns, language=lng)

        handler = self._options.missing_key_handler
        if self._options.save_missing and handler:
            languages = self.fallback_languages or ([lng] if lng else [])
            handler(
                languages,
                ns,
                key,
                fallback_value,
                False,
                {**self._handler_options(), **options},
            )

        parse_handler = self._options.parse_missing_key_handler
        if parse_handler is not None:
            return parse_handler(key, default_value)
        if default_value is not None:
            return self._format(default_value, options, lng, ns, key, resolved=False)
        return key

    def _handler_options(self) -> dict[str, Any]:
        return self._options.model_dump(
            exclude={"resources", "parse_missing_key_handler", "missing_key_handler"}
        )
