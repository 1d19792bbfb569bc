"""
Exception types raised by the scribe system

Construction-time misconfiguration fails loudly with these errors.
Runtime delivery failures never reach the caller of ``log``; they are
wrapped in SinkDegradedError and reported through the owning logger.
"""

from typing import Optional


class ScribeError(Exception):
    """Base class for all scribe errors."""


class UnknownLevelError(ScribeError, ValueError):
    """Level name or rank is not present in the level table."""

    def __init__(self, level, message: Optional[str] = None):
        self.level = level
        super().__init__(message or f"Invalid log level: {level}")


class InvalidFilterWindowError(ScribeError, ValueError):
    """Filter window whose minimum rank exceeds its maximum rank."""

    def __init__(self, min_level: str, max_level: str):
        self.min_level = min_level
        self.max_level = max_level
        super().__init__(
            f"Invalid filter window: '{min_level}' ranks above '{max_level}'"
        )


class SinkDegradedError(ScribeError):
    """
    A sink's underlying resource failed.

    Never raised to callers; passed to the degraded callback so the owning
    logger can report it.
    """

    def __init__(self, sink_name: str, cause: BaseException):
        self.sink_name = sink_name
        self.cause = cause
        super().__init__(f"Sink '{sink_name}' degraded: {cause}")
