"""Timestamp enrichment stage"""

from datetime import datetime
from typing import Callable, Optional

from scribe_module.core.log_record import Record
from scribe_module.core.stage import BaseStage


class TimestampStage(BaseStage):
    """
    Stamp records that carry no timestamp yet.

    Returns a new record; the input is left untouched.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize timestamp stage.

        Args:
            clock: Callable returning the current time (default: datetime.now)
        """
        self.clock = clock or datetime.now

    def process(self, record: Record) -> Optional[Record]:
        if record.timestamp is not None:
            return record
        return record.with_timestamp(self.clock())

    def __repr__(self) -> str:
        return "TimestampStage()"
