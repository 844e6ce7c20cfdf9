from collections.abc import Iterator
from pathlib import Path
from typing import Any
from unittest.mock import Mock

import pytest

from locale_facade import (
    I18nService,
    init,
    load_resources,
    supported_locales_validator,
)
from locale_facade.context import set_service

FIXTURES_DIR = Path(__file__).parent / "fixtures"

EN_US = "en-US"
SV_SE = "sv-SE"
HR_HR = "hr-HR"
AR_AR = "ar-AR"
SUPPORTED_LOCALES = (EN_US, SV_SE, HR_HR, AR_AR)


@pytest.fixture(autouse=True)
def _clear_session() -> Iterator[None]:
    yield
    set_service(None)


@pytest.fixture
def resources() -> dict[str, dict[str, Any]]:
    return load_resources(FIXTURES_DIR)


@pytest.fixture
def check_valid_locale() -> Mock:
    return Mock(wraps=supported_locales_validator(SUPPORTED_LOCALES))


@pytest.fixture
def parse_missing_key_handler() -> Mock:
    return Mock(side_effect=lambda key, default_value=None: key)


@pytest.fixture
def missing_key_handler() -> Mock:
    return Mock(return_value=None)


@pytest.fixture
def icu_error_handler() -> Mock:
    return Mock(return_value="ICU_ERROR")


@pytest.fixture
def engine_options(
    resources: dict[str, dict[str, Any]],
    parse_missing_key_handler: Mock,
    missing_key_handler: Mock,
) -> dict[str, Any]:
    return {
        "debug": False,
        "fallbackLng": False,
        "lng": EN_US,
        "saveMissing": True,
        "parseMissingKeyHandler": parse_missing_key_handler,
        "missingKeyHandler": missing_key_handler,
        "resources": resources,
    }


@pytest.fixture
def service(
    check_valid_locale: Mock,
    engine_options: dict[str, Any],
    icu_error_handler: Mock,
) -> I18nService:
    return init(
        {"checkValidLocale": check_valid_locale},
        engine_options,
        {"errorHandler": icu_error_handler},
    )
