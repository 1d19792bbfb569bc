"""
Base filter interface
"""

from abc import abstractmethod
from typing import Optional

from scribe_module.core.log_record import Record
from scribe_module.core.stage import BaseStage


class BaseFilter(BaseStage):
    """
    Abstract base class for record filters.

    Filters are pipeline stages that either pass a record through unchanged
    or reject it.
    """

    @abstractmethod
    def should_log(self, record: Record) -> bool:
        """
        Determine if a record should be logged.

        Args:
            record: The record to filter

        Returns:
            True if the record should be logged, False otherwise
        """
        pass

    def process(self, record: Record) -> Optional[Record]:
        return record if self.should_log(record) else None
