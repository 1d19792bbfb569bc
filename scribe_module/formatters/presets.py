"""
Ready-made pipelines

Each factory returns a new FormatPipeline that filters on a level window
before rendering.
"""

from typing import Optional

from scribe_module.core.log_level import LevelTable
from scribe_module.filters.level_filter import LevelFilter
from scribe_module.formatters.json_formatter import JSONRenderer
from scribe_module.formatters.pipeline import FormatPipeline
from scribe_module.formatters.text_formatter import MessageRenderer, PrettyRenderer
from scribe_module.formatters.timestamp_stage import TimestampStage


def filter_levels_for_console(
    min_level: str,
    max_level: Optional[str] = None,
    table: Optional[LevelTable] = None,
) -> FormatPipeline:
    """Level filter, timestamp and bare message (console and broadcast)."""
    return FormatPipeline(
        [LevelFilter(min_level, max_level, table), TimestampStage()],
        MessageRenderer(),
    )


def filter_levels_then_json(
    min_level: str,
    max_level: Optional[str] = None,
    table: Optional[LevelTable] = None,
    timestamp_style: str = "us_date",
) -> FormatPipeline:
    """Level filter, timestamp and one JSON object per record."""
    return FormatPipeline(
        [LevelFilter(min_level, max_level, table), TimestampStage()],
        JSONRenderer(timestamp_style=timestamp_style),
    )


def filter_then_pretty(
    min_level: str,
    max_level: Optional[str] = None,
    table: Optional[LevelTable] = None,
    colored: bool = False,
) -> FormatPipeline:
    """Level filter, timestamp and decorated text."""
    return FormatPipeline(
        [LevelFilter(min_level, max_level, table), TimestampStage()],
        PrettyRenderer(with_level=False, colored=colored),
    )


def filter_then_pretty_with_level(
    min_level: str,
    max_level: Optional[str] = None,
    table: Optional[LevelTable] = None,
    colored: bool = False,
) -> FormatPipeline:
    """Level filter, timestamp and decorated text tagged with the level."""
    return FormatPipeline(
        [LevelFilter(min_level, max_level, table), TimestampStage()],
        PrettyRenderer(with_level=True, colored=colored),
    )
