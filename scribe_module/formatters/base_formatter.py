"""
Base renderer interface
"""

from abc import ABC, abstractmethod
from typing import Any

from scribe_module.core.log_record import Record


class BaseFormatter(ABC):
    """
    Abstract base class for renderers.

    The renderer is the final pipeline stage. It converts a record into the
    sink-specific form: a string for human sinks, a JSON string for machine
    sinks.
    """

    @abstractmethod
    def format(self, record: Record) -> Any:
        """
        Render a record.

        Args:
            record: The record to render

        Returns:
            Rendered form of the record
        """
        pass

    def __call__(self, record: Record) -> Any:
        """Allow formatters to be callable."""
        return self.format(record)
