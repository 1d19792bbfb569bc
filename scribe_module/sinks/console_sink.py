"""Console sink with per-level badges and framed boxes"""

import json
import sys
import threading
import traceback
from typing import Mapping, Optional

from scribe_module.formatters.pipeline import RenderedRecord
from scribe_module.formatters.text_formatter import colorize
from scribe_module.sinks.base_sink import BaseSink

LEVEL_BADGES = {
    "error": "✖",
    "warn": "⚠",
    "info": "ℹ",
    "verbose": "ℹ",
    "debug": "⚙",
    "success": "✔",
    "internal": "",
}


class ConsoleSink(BaseSink):
    """
    Write records to a console stream.

    Each level gets a badge; ``box`` records are drawn inside a frame whose
    title comes from a ``name`` key in mapping metadata.
    """

    def __init__(
        self,
        stream=None,
        colored: bool = True,
        name: Optional[str] = None,
    ):
        """
        Initialize console sink.

        Args:
            stream: Output stream (default: sys.stderr)
            colored: Use ANSI color codes
            name: Sink name used in degraded reports
        """
        super().__init__(name or "console")
        self.stream = stream or sys.stderr
        self.colored = colored
        self._lock = threading.Lock()

    def _emit(self, rendered: RenderedRecord) -> None:
        record = rendered.record
        text = str(rendered.payload)

        if record.level == "box":
            title = None
            if isinstance(record.metadata, Mapping) and isinstance(record.metadata.get("name"), str):
                title = record.metadata["name"]
            output = self._frame(text, title)
        else:
            badge = LEVEL_BADGES.get(record.level, "")
            output = f"{badge} {text}" if badge else text
            if (
                record.level == "error"
                and isinstance(record.metadata, Mapping)
                and record.metadata.get("includes_trace")
            ):
                trace = "".join(traceback.format_stack()[:-3])
                output += "\n" + json.dumps(record.metadata, indent=2, default=str) + "\n" + trace

        output = colorize(output, record.level, self.colored)
        with self._lock:
            self.stream.write(output + "\n")
            self.stream.flush()

    @staticmethod
    def _frame(text: str, title: Optional[str] = None, padding: int = 2) -> str:
        """Draw text inside a double-line frame."""
        lines = text.splitlines() or [""]
        title_text = f" {title} " if title else ""
        width = max([len(line) for line in lines] + [len(title_text)]) + padding * 2

        top = "╔" + title_text.center(width, "═") + "╗"
        blank = "║" + " " * width + "║"
        body = ["║" + " " * padding + line.ljust(width - padding) + "║" for line in lines]
        bottom = "╚" + "═" * width + "╝"
        return "\n".join([top, blank] + body + [blank, bottom])

    def flush(self) -> None:
        """Flush stream."""
        with self._lock:
            self.stream.flush()

    def _release(self) -> None:
        # process streams stay open; only flush
        if not getattr(self.stream, "closed", False):
            self.stream.flush()
