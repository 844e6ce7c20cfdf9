"""Exception hierarchy for the locale facade.

Normal misuse (unknown locales, missing keys, broken message patterns) never
raises: those paths resolve to ``None``, ``False`` or fallback text. The
exceptions here cover configuration mistakes, plus the formatter's internal
failure type that is handed to the parse-error delegate.
"""

from typing import Any


class LocaleFacadeError(Exception):
    """Base exception for all locale facade errors.

    - message: Human-readable description
    - error_code: Machine-readable code (e.g., "RESOURCE_LOAD_FAILED")
    - details: Optional dict with additional context
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dict for structured logging."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class NotInitializedError(LocaleFacadeError):
    """The current session was requested before ``init`` ran."""

    def __init__(self, message: str = "Locale facade is not initialized"):
        super().__init__(message, "NOT_INITIALIZED")


class ResourceLoadError(LocaleFacadeError):
    """A translation resource file exists but can't be read or parsed."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Failed to load resources from {path}: {reason}",
            "RESOURCE_LOAD_FAILED",
            {"path": path, "reason": reason},
        )


class MessageFormatError(LocaleFacadeError):
    """An ICU message pattern could not be parsed or formatted.

    Raised inside the formatter and passed to the parse-error handler;
    it never escapes ``translate``.
    """

    def __init__(
        self, message: str, pattern: str | None = None, position: int | None = None
    ):
        details: dict[str, Any] = {}
        if pattern is not None:
            details["pattern"] = pattern
        if position is not None:
            details["position"] = position
        self.pattern = pattern
        self.position = position
        super().__init__(message, "MESSAGE_FORMAT_ERROR", details)
