import asyncio
import gc
import json
from pathlib import Path
from typing import Any
from unittest.mock import Mock

from i18n import translations as i18n_store  # type: ignore[import-untyped]
import pytest

from locale_facade import IcuFormatter, TranslationEngine

RESOURCES: dict[str, dict[str, Any]] = {
    "en-US": {
        "translation": {"HELLO": "Hello", "ONLY_EN": "English only"},
        "common": {"OK": "OK"},
    },
    "sv-SE": {"translation": {"HELLO": "Hej"}},
    "de": {"translation": {"BASE_ONLY": "Nur Basis"}},
}


@pytest.fixture
def engine() -> TranslationEngine:
    return TranslationEngine().init(
        {"lng": "sv-SE", "fallbackLng": "en-US", "resources": RESOURCES}
    )


def test_initial_language_comes_from_lng(engine: TranslationEngine) -> None:
    assert engine.is_initialized
    assert engine.language == "sv-SE"


def test_initial_language_defaults_to_first_fallback() -> None:
    engine = TranslationEngine().init({"fallbackLng": ["en-US", "sv-SE"]})

    assert engine.language == "en-US"
    assert engine.fallback_languages == ["en-US", "sv-SE"]


def test_lookup_falls_back_to_fallback_language(engine: TranslationEngine) -> None:
    assert engine.t("HELLO") == "Hej"
    assert engine.t("ONLY_EN") == "English only"


def test_lookup_tries_base_language() -> None:
    engine = TranslationEngine().init({"lng": "de-AT", "resources": RESOURCES})

    assert engine.t("BASE_ONLY") == "Nur Basis"


def test_lookup_with_explicit_language(engine: TranslationEngine) -> None:
    assert engine.t("HELLO", {"lng": "en-US"}) == "Hello"


def test_namespace_prefix_and_option(engine: TranslationEngine) -> None:
    assert engine.t("common:OK") == "OK"
    assert engine.t("OK", {"ns": "common"}) == "OK"
    assert "common" in engine.namespaces


def test_colon_in_key_without_known_namespace_is_part_of_key(
    engine: TranslationEngine,
) -> None:
    engine.add_resource("sv-SE", "translation", "time:label", "Tid")

    assert engine.t("time:label") == "Tid"


def test_missing_key_without_handlers_returns_key(engine: TranslationEngine) -> None:
    assert engine.t("NOPE") == "NOPE"


def test_missing_key_uses_default_value(engine: TranslationEngine) -> None:
    assert engine.t("NOPE", {"default_value": "Fallback"}) == "Fallback"
    assert engine.t("NOPE", {"defaultValue": "Other"}) == "Other"


def test_default_value_goes_through_formatter() -> None:
    engine = TranslationEngine().use(IcuFormatter()).init({"lng": "en-US"})

    assert engine.t("NOPE", {"default_value": "Hi {name}", "name": "Ada"}) == "Hi Ada"


def test_missing_key_handler_receives_fallback_languages() -> None:
    handler = Mock()
    engine = TranslationEngine().init(
        {
            "lng": "sv-SE",
            "fallbackLng": ["en-US"],
            "saveMissing": True,
            "missingKeyHandler": handler,
            "resources": RESOURCES,
        }
    )

    engine.t("NOPE", {"default_value": "Fallback"})

    languages, ns, key, fallback_value, update_missing, options = (
        handler.call_args.args
    )
    assert languages == ["en-US"]
    assert (ns, key, fallback_value, update_missing) == (
        "translation",
        "NOPE",
        "Fallback",
        False,
    )
    assert options["default_value"] == "Fallback"
    assert options["lng"] == "sv-SE"


def test_engines_do_not_share_resources() -> None:
    first = TranslationEngine().init(
        {"lng": "en-US", "resources": {"en-US": {"translation": {"K": "first"}}}}
    )
    second = TranslationEngine().init(
        {"lng": "en-US", "resources": {"en-US": {"translation": {"K": "second"}}}}
    )

    assert first.t("K") == "first"
    assert second.t("K") == "second"


def test_reinit_drops_previous_resources(engine: TranslationEngine) -> None:
    engine.init({"lng": "en-US", "resources": {"en-US": {"translation": {}}}})

    assert engine.t("HELLO") == "HELLO"
    assert not engine.has_resource_bundle("sv-SE", "translation")


def test_change_language_emits_event(engine: TranslationEngine) -> None:
    listener = Mock()
    engine.on("languageChanged", listener)

    asyncio.run(engine.change_language("en-US"))

    assert engine.language == "en-US"
    listener.assert_called_once_with("en-US")


def test_change_language_ignores_empty_value(engine: TranslationEngine) -> None:
    asyncio.run(engine.change_language(None))

    assert engine.language == "sv-SE"


def test_off_removes_listener(engine: TranslationEngine) -> None:
    listener = Mock()
    engine.on("added", listener)
    engine.off("added", listener)

    engine.add_resource("sv-SE", "translation", "NEW", "Ny")

    listener.assert_not_called()


def test_resource_bundle_management(engine: TranslationEngine) -> None:
    added = Mock()
    removed = Mock()
    engine.on("added", added)
    engine.on("removed", removed)

    engine.add_resource_bundle("hr-HR", "translation", {"menu": {"open": "Otvori"}})
    engine.add_resources("hr-HR", "extra", {"A": "a"})

    assert engine.get_resource("hr-HR", "translation", "menu.open") == "Otvori"
    assert engine.has_resource_bundle("hr-HR", "extra")
    assert added.call_count == 2

    engine.remove_resource_bundle("hr-HR", "extra")

    assert not engine.has_resource_bundle("hr-HR", "extra")
    assert engine.has_resource_bundle("hr-HR", "translation")
    removed.assert_called_once_with("hr-HR", "extra")


def test_use_rejects_non_formatter_modules() -> None:
    module = Mock(type="backend")

    with pytest.raises(ValueError, match="Unsupported module type"):
        TranslationEngine().use(module)


def test_load_path_loads_languages_on_demand(tmp_path: Path) -> None:
    (tmp_path / "en-US.json").write_text(
        json.dumps({"HELLO": "Hello"}), encoding="utf-8"
    )
    (tmp_path / "sv-SE.json").write_text(
        json.dumps({"HELLO": "Hej"}), encoding="utf-8"
    )

    engine = TranslationEngine().init({"lng": "en-US", "loadPath": tmp_path})

    assert engine.t("HELLO") == "Hello"
    assert not engine.has_resource_bundle("sv-SE", "translation")

    asyncio.run(engine.change_language("sv-SE"))

    assert engine.has_resource_bundle("sv-SE", "translation")
    assert engine.t("HELLO") == "Hej"


def test_load_path_skips_missing_files(tmp_path: Path) -> None:
    engine = TranslationEngine().init({"lng": "fi-FI", "loadPath": tmp_path})

    asyncio.run(engine.change_language("nb-NO"))

    assert engine.language == "nb-NO"
    assert engine.t("HELLO") == "HELLO"


def test_engine_options_pass_through_unknown_fields() -> None:
    engine = TranslationEngine().init({"lng": "en-US", "returnEmptyString": False})

    assert engine.options.model_extra == {"returnEmptyString": False}


def test_plural_objects_are_not_returned_as_text() -> None:
    engine = TranslationEngine().init(
        {
            "lng": "en-US",
            "resources": {
                "en-US": {"translation": {"FILES": {"one": "a file", "other": "files"}}}
            },
        }
    )

    assert engine.get_resource("en-US", "translation", "FILES") is None
    assert engine.t("FILES") == "FILES"


def _scopes() -> set[str]:
    return {name.split("/", 1)[0] for name in i18n_store.container}


def test_close_drops_engine_resources(engine: TranslationEngine) -> None:
    engine.close()

    assert not engine.has_resource_bundle("sv-SE", "translation")
    assert engine.t("HELLO") == "HELLO"
    assert not engine.is_initialized


def test_reinit_after_close_stores_resources_again(engine: TranslationEngine) -> None:
    engine.close()
    engine.init({"lng": "en-US", "resources": RESOURCES})

    assert engine.t("HELLO") == "Hello"


def test_discarded_engine_releases_its_resources() -> None:
    before = _scopes()
    engine = TranslationEngine().use(IcuFormatter(bind_i18n="languageChanged"))
    engine.init({"lng": "en-US", "resources": RESOURCES})
    assert len(_scopes() - before) == 1

    del engine
    gc.collect()

    assert _scopes() - before == set()


def test_use_detaches_previous_formatter() -> None:
    first = IcuFormatter(bind_i18n_store="added")
    second = IcuFormatter(bind_i18n_store="added")
    engine = TranslationEngine().use(first).init({"lng": "en-US"})
    engine.use(second)
    first.parse("{n} left", {"n": 1}, "en-US", "translation", "LEFT")

    engine.add_resource("en-US", "translation", "NEW", "new")

    assert first.cache_size == 1
    assert first.engine is None
    assert second.engine is engine
