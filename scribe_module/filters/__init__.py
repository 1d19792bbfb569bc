"""
Record filters module

Provides filter stages for format pipelines.
"""

from scribe_module.filters.base_filter import BaseFilter
from scribe_module.filters.level_filter import FilterWindow, LevelFilter, accepts
from scribe_module.filters.callback_filter import CallbackFilter

__all__ = [
    "BaseFilter",
    "FilterWindow",
    "LevelFilter",
    "CallbackFilter",
    "accepts",
]
