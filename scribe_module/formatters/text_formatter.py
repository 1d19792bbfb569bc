"""
Human-readable text renderers

Pretty single-line output with an optional level tag, a time suffix and an
indented JSON block for structured metadata.
"""

import json
from typing import Any, Mapping, Optional

from scribe_module.core.log_record import Record
from scribe_module.formatters.base_formatter import BaseFormatter
from scribe_module.formatters.chrono import us_time

RESET = "\033[0m"

LEVEL_COLORS = {
    "error": "\033[31m",     # Red
    "warn": "\033[33m",      # Yellow
    "info": "\033[36m",      # Cyan
    "debug": "\033[37m",     # White
    "success": "\033[32m",   # Green
    "verbose": "\033[34m",   # Blue
    "internal": "\033[90m",  # Grey
    "box": "\033[35m",       # Magenta
}

DONT_TIMESTAMP_KEY = "dont_timestamp"


def colorize(text: str, level: str, enabled: bool = True) -> str:
    """Wrap text in the ANSI color of a level."""
    if not enabled:
        return text
    return f"{LEVEL_COLORS.get(level, RESET)}{text}{RESET}"


def _split_metadata(record: Record):
    """Return (data, dont_timestamp) with the control key removed."""
    data: Any = record.metadata
    dont_timestamp = False
    if isinstance(data, Mapping):
        dont_timestamp = bool(data.get(DONT_TIMESTAMP_KEY, False))
        data = {k: v for k, v in data.items() if k != DONT_TIMESTAMP_KEY}
        if not data:
            data = None
    return data, dont_timestamp


class PrettyRenderer(BaseFormatter):
    """
    Render records as decorated text.

    Without level tag::

        prefix -> message data -| 9:05:07 AM |-

    With level tag::

        prefix-[WARN]-> message data -| 9:05 AM |-
        [WARN]: message -| 9:05 AM |-
    """

    def __init__(self, with_level: bool = False, colored: bool = False):
        """
        Initialize pretty renderer.

        Args:
            with_level: Include the upper-cased level tag
            colored: Decorate tags with ANSI level colors
        """
        self.with_level = with_level
        self.colored = colored

    def format(self, record: Record) -> str:
        if self.with_level:
            return self._format_with_level(record)
        return self._format_plain(record)

    def _time(self, record: Record, include_seconds: bool) -> str:
        if record.timestamp is None:
            return ""
        return us_time(record.timestamp, include_seconds)

    def _format_plain(self, record: Record) -> str:
        data, dont_timestamp = _split_metadata(record)

        response = ""
        if record.prefix:
            response += f"{colorize(record.prefix, record.level, self.colored)} -> "
        response += record.message
        if data is None:
            return response.strip()

        if not isinstance(data, Mapping):
            response += f" {data}"
        if not dont_timestamp and record.timestamp is not None:
            response += f" -| {self._time(record, True)} |-"
        if isinstance(data, Mapping):
            response += "\n" + json.dumps(data, indent=2, default=str)

        return response.strip()

    def _format_with_level(self, record: Record) -> str:
        data, _ = _split_metadata(record)
        level_tag = f"[{record.level.upper()}]"

        if record.prefix:
            head = colorize(f"{record.prefix}-{level_tag}", record.level, self.colored) + "->"
        else:
            head = colorize(level_tag, record.level, self.colored) + ":"

        parts = [head, record.message]
        if data is not None:
            parts.append(data if isinstance(data, str) else json.dumps(data, default=str))
        if record.timestamp is not None:
            parts.append(f"-| {self._time(record, False)} |-")
        return " ".join(parts)

    def __repr__(self) -> str:
        return f"PrettyRenderer(with_level={self.with_level}, colored={self.colored})"


class MessageRenderer(BaseFormatter):
    """Render only the message text."""

    def format(self, record: Record) -> str:
        return record.message

    def __repr__(self) -> str:
        return "MessageRenderer()"
