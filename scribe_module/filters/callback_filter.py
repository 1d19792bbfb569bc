"""
Callback-based filter

Filters records using custom predicate functions
"""

import logging
from typing import Callable

from scribe_module.core.log_record import Record
from scribe_module.filters.base_filter import BaseFilter

logger = logging.getLogger(__name__)


class CallbackFilter(BaseFilter):
    """
    Filter records using a custom callback function.
    """

    def __init__(self, callback: Callable[[Record], bool]):
        """
        Initialize callback filter.

        Args:
            callback: Function that takes a Record and returns bool.
                      Should return True to keep the record.

        Example:
            # Keep only records from one service
            stage = CallbackFilter(lambda record: record.service == "api")

            # Keep records carrying structured metadata
            stage = CallbackFilter(lambda record: record.metadata_kind == "mapping")
        """
        if not callable(callback):
            raise TypeError("callback must be callable")

        self.callback = callback

    def should_log(self, record: Record) -> bool:
        """
        Use callback to determine if record should be logged.

        A callback that raises rejects the record.
        """
        try:
            return bool(self.callback(record))
        except Exception as e:
            logger.debug("Filter callback %r failed: %s", self.callback, e)
            return False

    def __repr__(self) -> str:
        """String representation."""
        callback_name = getattr(self.callback, '__name__', repr(self.callback))
        return f"CallbackFilter(callback={callback_name})"
