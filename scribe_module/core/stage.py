"""
Pipeline stage interface
"""

from abc import ABC, abstractmethod
from typing import Optional

from scribe_module.core.log_record import Record


class BaseStage(ABC):
    """
    Abstract base class for pipeline stages.

    A stage receives a record and returns either a (possibly new) record or
    None to reject it. Stages never mutate the record they receive.
    """

    @abstractmethod
    def process(self, record: Record) -> Optional[Record]:
        """
        Transform or reject a record.

        Args:
            record: The record to process

        Returns:
            The record to pass on, or None to drop it
        """
        pass

    def __call__(self, record: Record) -> Optional[Record]:
        """Allow stages to be callable."""
        return self.process(record)
