"""ICU message formatting extension for the translation engine.

Evaluates ICU MessageFormat patterns:

    "Hello {name}"
    "{count, plural, =0 {No files} one {# file} other {# files}}"
    "{gender, select, female {She} male {He} other {They}} replied"
    "{place, selectordinal, one {#st} two {#nd} few {#rd} other {#th}}"
    "Due {due, date, long}, {ratio, number, percent} done"

Plural and ordinal categories, numbers and dates are resolved with Babel's
CLDR data for the message's language. Compiled messages are memoized per
language, namespace and key; the cache is cleared on the engine events
listed in ``bind_i18n`` / ``bind_i18n_store``.

A pattern that can't be parsed, or that references an argument the caller
didn't supply, raises MessageFormatError internally. The error goes to the
``parse_error_handler``, whose return value is displayed instead; without a
handler the raw pattern is returned.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from functools import lru_cache
from typing import TYPE_CHECKING, Any
import weakref

from babel import Locale, UnknownLocaleError
from babel.dates import format_date, format_time
from babel.numbers import format_decimal, format_percent

from locale_facade.core.exceptions import MessageFormatError
from locale_facade.core.logging import get_logger
from locale_facade.types import IcuParseErrorHandler

if TYPE_CHECKING:
    from locale_facade.engine import TranslationEngine

logger = get_logger(__name__)

PLURAL_TYPES = frozenset({"plural", "selectordinal"})
SIMPLE_TYPES = frozenset({"number", "date", "time"})

# Used for plural rules and number formats when the language is unknown
DEFAULT_FORMAT_LOCALE = "en"


@dataclass(frozen=True)
class Argument:
    name: str
    kind: str | None = None
    style: str | None = None


@dataclass(frozen=True)
class Choice:
    name: str
    kind: str
    options: dict[str, tuple["Node", ...]]
    offset: int = 0


@dataclass(frozen=True)
class Pound:
    """The ``#`` placeholder inside a plural branch."""


Node = str | Argument | Choice | Pound


class _Parser:
    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        self.pos = 0

    def error(self, message: str) -> MessageFormatError:
        return MessageFormatError(
            f"{message} at position {self.pos}", self.pattern, self.pos
        )

    def peek(self) -> str:
        return self.pattern[self.pos : self.pos + 1]

    def expect(self, char: str) -> None:
        if self.peek() != char:
            raise self.error(f"expected '{char}'")
        self.pos += 1

    def skip_whitespace(self) -> None:
        while self.pos < len(self.pattern) and self.pattern[self.pos].isspace():
            self.pos += 1

    def read_word(self) -> str:
        start = self.pos
        while self.pos < len(self.pattern):
            char = self.pattern[self.pos]
            if char.isspace() or char in "{},":
                break
            self.pos += 1
        return self.pattern[start : self.pos]

    def parse(self) -> tuple[Node, ...]:
        nodes = self.parse_message(in_plural=False)
        if self.pos < len(self.pattern):
            raise self.error("unexpected '}'")
        return nodes

    def parse_message(self, in_plural: bool) -> tuple[Node, ...]:
        nodes: list[Node] = []
        text: list[str] = []

        def flush() -> None:
            if text:
                nodes.append("".join(text))
                text.clear()

        while self.pos < len(self.pattern):
            char = self.pattern[self.pos]
            if char == "{":
                flush()
                nodes.append(self.parse_argument(in_plural))
            elif char == "}":
                break
            elif char == "#" and in_plural:
                flush()
                nodes.append(Pound())
                self.pos += 1
            elif char == "'":
                text.append(self.parse_quoted(in_plural))
            else:
                text.append(char)
                self.pos += 1

        flush()
        return tuple(nodes)

    def parse_quoted(self, in_plural: bool) -> str:
        """Apostrophe handling: '' is a literal apostrophe, '{...}' is literal text."""
        following = self.pattern[self.pos + 1 : self.pos + 2]
        if following == "'":
            self.pos += 2
            return "'"

        if not (following in ("{", "}", "|") or (following == "#" and in_plural)):
            self.pos += 1
            return "'"

        self.pos += 1
        quoted: list[str] = []
        while self.pos < len(self.pattern):
            char = self.pattern[self.pos]
            if char == "'":
                if self.pattern[self.pos + 1 : self.pos + 2] == "'":
                    quoted.append("'")
                    self.pos += 2
                    continue
                self.pos += 1
                break
            quoted.append(char)
            self.pos += 1
        return "".join(quoted)

    def parse_argument(self, in_plural: bool) -> Node:
        self.expect("{")
        self.skip_whitespace()
        name = self.read_word()
        if not name:
            raise self.error("missing argument name")
        self.skip_whitespace()
        if self.peek() == "}":
            self.pos += 1
            return Argument(name)

        self.expect(",")
        self.skip_whitespace()
        kind = self.read_word()
        self.skip_whitespace()

        if kind in SIMPLE_TYPES:
            style = None
            if self.peek() == ",":
                self.pos += 1
                style = self.read_style()
            self.expect("}")
            return Argument(name, kind, style)

        if kind in PLURAL_TYPES or kind == "select":
            self.expect(",")
            return self.parse_choice(name, kind, in_plural)

        raise self.error(f"unknown argument type '{kind}'")

    def read_style(self) -> str:
        start = self.pos
        while self.pos < len(self.pattern) and self.pattern[self.pos] != "}":
            if self.pattern[self.pos] == "{":
                raise self.error("unexpected '{' in argument style")
            self.pos += 1
        style = self.pattern[start : self.pos].strip()
        if not style:
            raise self.error("empty argument style")
        return style

    def parse_offset(self, selector: str) -> int:
        value = selector[len("offset:") :]
        if not value:
            self.skip_whitespace()
            value = self.read_word()
        try:
            return int(value)
        except ValueError:
            raise self.error(f"invalid plural offset '{value}'") from None

    def parse_choice(self, name: str, kind: str, in_plural: bool) -> Choice:
        options: dict[str, tuple[Node, ...]] = {}
        offset = 0
        branch_in_plural = in_plural or kind in PLURAL_TYPES

        while True:
            self.skip_whitespace()
            if self.pos >= len(self.pattern):
                raise self.error(f"unterminated {kind} argument '{name}'")
            if self.peek() == "}":
                self.pos += 1
                break

            selector = self.read_word()
            if not selector:
                raise self.error(f"missing selector in {kind} argument '{name}'")
            if kind == "plural" and selector.startswith("offset:") and not options:
                offset = self.parse_offset(selector)
                continue
            if selector in options:
                raise self.error(f"duplicate selector '{selector}'")

            self.skip_whitespace()
            self.expect("{")
            options[selector] = self.parse_message(branch_in_plural)
            self.expect("}")

        if "other" not in options:
            raise self.error(f"{kind} argument '{name}' has no 'other' option")
        return Choice(name, kind, options, offset)


@lru_cache(maxsize=64)
def babel_locale(lng: str | None) -> Locale:
    """Best Babel locale for a language tag: full tag, then base language."""
    candidates: list[str] = []
    if lng:
        tag = lng.replace("_", "-")
        candidates = [tag, tag.split("-", 1)[0]]
    candidates.append(DEFAULT_FORMAT_LOCALE)

    for candidate in candidates:
        try:
            return Locale.parse(candidate, sep="-")
        except (UnknownLocaleError, ValueError):
            continue
    return Locale(DEFAULT_FORMAT_LOCALE)


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float | Decimal) and not isinstance(value, bool)


def _value(values: Mapping[str, Any], name: str) -> Any:
    if name not in values:
        raise MessageFormatError(f"missing value for argument '{name}'")
    return values[name]


def _format_argument(node: Argument, values: Mapping[str, Any], locale: Locale) -> str:
    value = _value(values, node.name)
    try:
        if node.kind is None:
            if _is_number(value):
                return format_decimal(value, locale=locale)
            return str(value)

        if node.kind == "number":
            if not _is_number(value):
                raise MessageFormatError(f"argument '{node.name}' is not a number")
            if node.style == "percent":
                return format_percent(value, locale=locale)
            if node.style == "integer":
                return format_decimal(value, format="#,##0", locale=locale)
            return format_decimal(value, format=node.style, locale=locale)

        style = node.style or "medium"
        if node.kind == "date":
            if not isinstance(value, date):
                raise MessageFormatError(f"argument '{node.name}' is not a date")
            return format_date(value, format=style, locale=locale)

        if not isinstance(value, datetime | time):
            raise MessageFormatError(f"argument '{node.name}' is not a time")
        return format_time(value, format=style, locale=locale)
    except (ValueError, TypeError, AttributeError) as e:
        raise MessageFormatError(f"cannot format argument '{node.name}': {e}") from e


def _exact_match(
    options: dict[str, tuple[Node, ...]], value: Any
) -> tuple[Node, ...] | None:
    for selector, branch in options.items():
        if not selector.startswith("="):
            continue
        try:
            if Decimal(selector[1:]) == Decimal(str(value)):
                return branch
        except ArithmeticError:
            continue
    return None


def _format_choice(
    node: Choice, values: Mapping[str, Any], locale: Locale, pound: Any
) -> str:
    value = _value(values, node.name)

    if node.kind == "select":
        branch = node.options.get(str(value), node.options["other"])
        return _render(branch, values, locale, pound)

    if not _is_number(value):
        raise MessageFormatError(f"{node.kind} argument '{node.name}' is not a number")

    number = value - node.offset
    branch = _exact_match(node.options, value)
    if branch is None:
        if node.kind == "selectordinal":
            category = locale.ordinal_form(number)
        else:
            category = locale.plural_form(number)
        branch = node.options.get(category, node.options["other"])
    return _render(branch, values, locale, number)


def _render(
    nodes: tuple[Node, ...], values: Mapping[str, Any], locale: Locale, pound: Any
) -> str:
    parts: list[str] = []
    for node in nodes:
        if isinstance(node, str):
            parts.append(node)
        elif isinstance(node, Pound):
            parts.append("#" if pound is None else format_decimal(pound, locale=locale))
        elif isinstance(node, Argument):
            parts.append(_format_argument(node, values, locale))
        else:
            parts.append(_format_choice(node, values, locale, pound))
    return "".join(parts)


@dataclass(frozen=True)
class CompiledMessage:
    pattern: str
    nodes: tuple[Node, ...]

    def format(self, values: Mapping[str, Any] | None, lng: str | None) -> str:
        return _render(self.nodes, values or {}, babel_locale(lng), None)


def compile_message(pattern: str) -> CompiledMessage:
    """Parse an ICU message pattern.

    Raises:
        MessageFormatError: The pattern is malformed.
    """
    return CompiledMessage(pattern, _Parser(pattern).parse())


def format_message(
    pattern: str, values: Mapping[str, Any] | None = None, lng: str | None = None
) -> str:
    """Parse and format a pattern in one go.

    Example:
        format_message("{n, plural, one {# day} other {# days}}", {"n": 3}, "en-US")
        # Returns: "3 days"
    """
    return compile_message(pattern).format(values, lng)


class IcuFormatter:
    """Formatter module for ``TranslationEngine.use()``.

    Args:
        parse_error_handler: Called with (error, key, raw_result, options)
            when a message fails; its return value is displayed.
        memoize: Cache compiled messages per language/namespace/key.
        memoize_fallback: Also cache messages formatted from a default value.
        bind_i18n: Space separated engine events that clear the cache
            (e.g., "languageChanged").
        bind_i18n_store: Space separated store events that clear the cache
            (e.g., "added removed").
    """

    type = "i18nFormat"

    def __init__(
        self,
        parse_error_handler: IcuParseErrorHandler | None = None,
        *,
        memoize: bool = True,
        memoize_fallback: bool = False,
        bind_i18n: str = "",
        bind_i18n_store: str = "",
    ) -> None:
        self.parse_error_handler = parse_error_handler
        self.memoize = memoize
        self.memoize_fallback = memoize_fallback
        self.bind_i18n = bind_i18n
        self.bind_i18n_store = bind_i18n_store
        self._cache: dict[tuple[str | None, str, str], CompiledMessage] = {}
        self._engine_ref: weakref.ref[TranslationEngine] | None = None

    @property
    def engine(self) -> "TranslationEngine | None":
        """The engine this formatter is attached to, if it is still alive."""
        return self._engine_ref() if self._engine_ref is not None else None

    def init(self, engine: "TranslationEngine") -> None:
        self.detach()
        self._engine_ref = weakref.ref(engine)
        for event in (*self.bind_i18n.split(), *self.bind_i18n_store.split()):
            engine.on(event, self._on_cache_event)
        self.clear_cache()

    def detach(self) -> None:
        """Stop listening to the attached engine's events."""
        engine = self.engine
        self._engine_ref = None
        if engine is None:
            return
        for event in (*self.bind_i18n.split(), *self.bind_i18n_store.split()):
            engine.off(event, self._on_cache_event)

    def _on_cache_event(self, *_: Any) -> None:
        self.clear_cache()

    def clear_cache(self) -> None:
        self._cache.clear()

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def _compile(
        self, res: str, lng: str | None, ns: str, key: str, memoize: bool
    ) -> CompiledMessage:
        cache_key = (lng, ns, key)
        if memoize and cache_key in self._cache:
            return self._cache[cache_key]
        message = compile_message(res)
        if memoize:
            self._cache[cache_key] = message
        return message

    def parse(
        self,
        res: str,
        options: Mapping[str, Any],
        lng: str | None,
        ns: str,
        key: str,
        *,
        resolved: bool = True,
    ) -> str:
        memoize = self.memoize and (resolved or self.memoize_fallback)
        try:
            return self._compile(res, lng, ns, key, memoize).format(options, lng)
        except MessageFormatError as e:
            engine = self.engine
            if engine is not None and engine.debug:
                logger.debug(
                    "icu_format_failed", key=key, language=lng, error=e.message
                )
            if self.parse_error_handler is not None:
                return self.parse_error_handler(e, key, res, options)
            return res
