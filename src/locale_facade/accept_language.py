"""Accept-Language header negotiation.

Browsers and devices report preferred locales as a weighted list
("sv-SE,sv;q=0.9,en-US;q=0.8"). The tags are tried in preference order
through a normalizer, usually ``I18nService.normalize_locale``, and the first
one it accepts wins.
"""

from collections.abc import Callable


def parse_accept_language(header: str | None) -> list[str]:
    """Parse an Accept-Language header into tags, most preferred first.

    Handles formats like:
    - "en-US,en;q=0.9,es;q=0.8"
    - "fr"
    - "zh_CN, *;q=0.1"

    Tags with q=0 and the "*" wildcard are dropped. Tags with equal quality
    keep their header order.
    """
    if not header:
        return []

    weighted: list[tuple[str, float]] = []

    for entry in header.split(","):
        tag, _, params = entry.partition(";")
        tag = tag.strip()
        if not tag or tag == "*":
            continue

        quality = _quality(params)
        if quality > 0:
            weighted.append((tag, quality))

    weighted.sort(key=lambda item: item[1], reverse=True)
    return [tag for tag, _ in weighted]


def _quality(params: str) -> float:
    """Read ``q=<weight>`` from the parameters after a tag; 1.0 if absent or bad."""
    name, _, value = params.strip().partition("=")
    if name.strip() != "q":
        return 1.0
    try:
        return float(value)
    except ValueError:
        return 1.0


def negotiate_locale(
    header: str | None, normalize: Callable[[str | None], str | None]
) -> str | None:
    """Return the first header tag the normalizer accepts.

    Example:
        negotiate_locale("fr-CA,sv_se;q=0.8", service.normalize_locale)
        # Returns: "sv-SE" when only en-US and sv-SE are supported
    """
    for lang in parse_accept_language(header):
        normalized = normalize(lang)
        if normalized is not None:
            return normalized
    return None
