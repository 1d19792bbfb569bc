"""
Formatters module

Pipeline, enrichment stages and renderers.
"""

from scribe_module.formatters.base_formatter import BaseFormatter
from scribe_module.formatters.pipeline import FormatPipeline, RenderedRecord
from scribe_module.formatters.timestamp_stage import TimestampStage
from scribe_module.formatters.json_formatter import JSONRenderer
from scribe_module.formatters.text_formatter import MessageRenderer, PrettyRenderer
from scribe_module.formatters.presets import (
    filter_levels_for_console,
    filter_levels_then_json,
    filter_then_pretty,
    filter_then_pretty_with_level,
)

__all__ = [
    "BaseFormatter",
    "FormatPipeline",
    "RenderedRecord",
    "TimestampStage",
    "JSONRenderer",
    "PrettyRenderer",
    "MessageRenderer",
    "filter_levels_for_console",
    "filter_levels_then_json",
    "filter_then_pretty",
    "filter_then_pretty_with_level",
]
