"""
JSON formatter for structured logging

Formats records as one JSON object per line
"""

import json
from datetime import datetime
from typing import Any, Dict, Optional

from scribe_module.core.log_record import Record
from scribe_module.formatters.base_formatter import BaseFormatter
from scribe_module.formatters.chrono import us_date


class JSONRenderer(BaseFormatter):
    """
    Render records as JSON objects.

    Produces structured output suitable for file streams and log aggregation.
    """

    TIMESTAMP_STYLES = ("iso", "us_date")

    def __init__(
        self,
        timestamp_style: str = "iso",
        indent: Optional[int] = None,
        ensure_ascii: bool = False,
    ):
        """
        Initialize JSON renderer.

        Args:
            timestamp_style: "iso" for ISO-8601, "us_date" for
                             "MM/DD/YYYY, hh:mm AM"
            indent: JSON indentation (None for compact, 2 for readable)
            ensure_ascii: Escape non-ASCII characters

        Example:
            # One line per record
            renderer = JSONRenderer()

            # Human-friendly timestamps as in the file streams
            renderer = JSONRenderer(timestamp_style="us_date")
        """
        if timestamp_style not in self.TIMESTAMP_STYLES:
            raise ValueError(f"timestamp_style must be one of {self.TIMESTAMP_STYLES}")
        self.timestamp_style = timestamp_style
        self.indent = indent
        self.ensure_ascii = ensure_ascii

    def _format_timestamp(self, timestamp: Optional[datetime]) -> Optional[str]:
        if timestamp is None:
            return None
        if self.timestamp_style == "us_date":
            return us_date(timestamp)
        return timestamp.isoformat()

    def format(self, record: Record) -> str:
        """
        Format record as JSON.

        Args:
            record: Record to format

        Returns:
            JSON string
        """
        log_dict: Dict[str, Any] = {
            "timestamp": self._format_timestamp(record.timestamp),
            "level": record.level,
            "message": record.message,
        }

        if record.service:
            log_dict["service"] = record.service

        if record.prefix:
            log_dict["prefix"] = record.prefix

        if record.metadata is not None:
            log_dict["meta"] = record.metadata

        return json.dumps(
            log_dict,
            indent=self.indent,
            ensure_ascii=self.ensure_ascii,
            default=str,
        )

    def __repr__(self) -> str:
        """String representation."""
        return f"JSONRenderer(timestamp_style={self.timestamp_style}, indent={self.indent})"
