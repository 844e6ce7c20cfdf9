from collections.abc import Iterator

import pytest
import structlog

from locale_facade import LocaleFacadeError, NotInitializedError
from locale_facade.core.config import Settings
from locale_facade.core.logging import get_logger, setup_logging


@pytest.fixture
def _reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("LOCALE_FACADE_DEBUG", raising=False)

    config = Settings(_env_file=None)

    assert config.DEBUG is False
    assert config.DEFAULT_NAMESPACE == "translation"
    assert config.NS_SEPARATOR == ":"
    assert config.KEY_SEPARATOR == "."


def test_settings_read_prefixed_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOCALE_FACADE_DEBUG", "true")
    monkeypatch.setenv("LOCALE_FACADE_DEFAULT_NAMESPACE", "common")
    monkeypatch.setenv("LOCALE_FACADE_ENVIRONMENT", "production")

    config = Settings(_env_file=None)

    assert config.DEBUG is True
    assert config.DEFAULT_NAMESPACE == "common"
    assert config.ENVIRONMENT == "production"


@pytest.mark.usefixtures("_reset_structlog")
def test_setup_logging_configures_structlog() -> None:
    setup_logging(debug=True, json_logs=True)

    assert structlog.is_configured()
    get_logger("locale_facade.tests").info("logging_configured", ok=True)


def test_errors_serialize_for_logging() -> None:
    error = NotInitializedError()

    assert isinstance(error, LocaleFacadeError)
    assert error.to_dict() == {
        "error_code": "NOT_INITIALIZED",
        "message": "Locale facade is not initialized",
        "details": {},
    }
