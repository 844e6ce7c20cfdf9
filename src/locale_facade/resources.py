"""Translation resource files.

Resources live in one JSON file per locale (``en-US.json``, ``sv-SE.json``),
holding either flat keys or nested objects. Files are read with python-i18n's
registered JSON loader and collected into the
``{locale: {namespace: {key: value}}}`` shape the engine consumes.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import i18n  # type: ignore[import-untyped]
from i18n import resource_loader  # type: ignore[import-untyped]

from locale_facade.core.config import settings
from locale_facade.core.exceptions import ResourceLoadError
from locale_facade.core.logging import get_logger

logger = get_logger(__name__)


def store_resources(
    data: Mapping[str, Any],
    namespace: str,
    locale: str,
    key_separator: str = settings.KEY_SEPARATOR,
) -> None:
    """Add a key map to python-i18n's translation container.

    Nested objects are stored as ``<namespace><sep><a><sep><b>`` keys.

    Example:
        store_resources({"menu": {"open": "Open"}}, "translation", "en-US")
        # container["en-US"]["translation.menu.open"] == "Open"
    """
    i18n.set("namespace_delimiter", key_separator)
    resource_loader.load_translation_dic(dict(data), namespace, locale)


def resource_file(path: Path, locale: str) -> Path:
    return path / f"{locale}.{settings.RESOURCE_FILE_FORMAT}"


def load_locale_file(path: Path, locale: str) -> dict[str, Any] | None:
    """Read one locale's resource file.

    Returns:
        The parsed key map, or None if the file doesn't exist.

    Raises:
        ResourceLoadError: The file exists but isn't a JSON object.
    """
    file_path = resource_file(path, locale)
    if not file_path.is_file():
        logger.debug("resource_file_missing", path=str(file_path), locale=locale)
        return None

    try:
        data = resource_loader.load_resource(str(file_path), None)
    except i18n.I18nFileLoadError as e:
        raise ResourceLoadError(str(file_path), str(e)) from e
    except (ValueError, AttributeError) as e:
        # JsonLoader fails with AttributeError while reporting a JSON syntax error
        cause = e.__context__ or e
        raise ResourceLoadError(str(file_path), f"invalid JSON: {cause}") from e

    if not isinstance(data, dict):
        raise ResourceLoadError(str(file_path), "top-level value must be an object")

    logger.debug("resource_file_loaded", path=str(file_path), keys=len(data))
    return data


def load_resources(
    path: str | Path, namespace: str | None = None
) -> dict[str, dict[str, Any]]:
    """Load every ``<locale>.json`` file in a directory.

    Args:
        path: Directory holding the resource files
        namespace: Namespace to file the keys under. Defaults to
            settings.DEFAULT_NAMESPACE.

    Returns:
        Resources keyed by locale, then namespace.

    Example:
        load_resources("locales")
        # Returns: {"en-US": {"translation": {...}}, "sv-SE": {...}}
    """
    directory = Path(path)
    ns = namespace or settings.DEFAULT_NAMESPACE
    resources: dict[str, dict[str, Any]] = {}

    for file_path in sorted(directory.glob(f"*.{settings.RESOURCE_FILE_FORMAT}")):
        data = load_locale_file(directory, file_path.stem)
        if data is not None:
            resources[file_path.stem] = {ns: data}

    return resources
