"""Locale validation and normalization.

Turns user and device locale strings ("en_US", "EN/us", "sv.se") into the
canonical ``language-REGION`` form, using an application supplied predicate
to decide which locales are acceptable.
"""

from collections.abc import Iterable
from typing import Any

from locale_facade.types import CheckValidLocale

# Tried in this order; only the first one present in the input is used
LOCALE_DIVIDERS: tuple[str, ...] = ("_", "/", ":", ".")


def accept_any_locale(value: Any) -> bool:  # noqa: ARG001
    """Permissive predicate used when the application supplies none."""
    return True


def resolve_locale_validator(
    check_valid_locale: CheckValidLocale | None,
) -> CheckValidLocale:
    """Return the caller's predicate, or the permissive default."""
    if check_valid_locale is None:
        return accept_any_locale
    return check_valid_locale


def supported_locales_validator(locales: Iterable[str]) -> CheckValidLocale:
    """Build a predicate accepting exactly the given locale codes.

    Example:
        is_valid = supported_locales_validator(["en-US", "sv-SE"])
        is_valid("sv-SE")  # True
        is_valid("en-SE")  # False
    """
    supported: frozenset[str] = frozenset(locales)

    def is_supported_locale(value: Any) -> bool:
        return isinstance(value, str) and value in supported

    return is_supported_locale


def format_locale(language: str, region: str) -> str:
    """Join subtags as lowercase language, uppercase region."""
    return f"{language.lower()}-{region.upper()}"


def _normalize_with_divider(
    locale: str, divider: str, is_valid_locale: CheckValidLocale
) -> str | None:
    parts = locale.strip().split(divider)[:2]
    if len(parts) < 2 or not parts[0] or not parts[1]:
        return None

    candidate = format_locale(parts[0], parts[1])
    if is_valid_locale(candidate):
        return candidate
    return None


def normalize_locale(
    locale: str | None, is_valid_locale: CheckValidLocale = accept_any_locale
) -> str | None:
    """Normalize a raw locale string to ``language-REGION``.

    A locale the predicate already accepts is returned verbatim, even when
    it doesn't have the ``language-REGION`` shape. Otherwise the first
    divider from LOCALE_DIVIDERS found in the string splits it; the first two
    segments are case-normalized and joined with "-". Further segments are
    dropped. If that candidate is rejected, no other divider is tried.

    Args:
        locale: Raw locale string (e.g., "en_us", "EN/US/GB")
        is_valid_locale: Predicate deciding which locales are acceptable

    Returns:
        The accepted locale, or None if the input is empty or can't be
        normalized into an accepted locale.
    """
    if not locale:
        return None

    if is_valid_locale(locale):
        return locale

    for divider in LOCALE_DIVIDERS:
        if divider in locale:
            return _normalize_with_divider(locale, divider, is_valid_locale)

    return None

