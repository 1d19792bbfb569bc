"""
Level window filter

Accepts records whose level rank falls inside an inclusive [min, max] window.
"""

from dataclasses import dataclass
from typing import Optional

from scribe_module.core.log_level import LevelTable, get_default_table
from scribe_module.core.log_record import Record
from scribe_module.errors import InvalidFilterWindowError, UnknownLevelError
from scribe_module.filters.base_filter import BaseFilter


@dataclass(frozen=True)
class FilterWindow:
    """
    Inclusive level window.

    ``max_level`` defaults to the highest-ranked level of the table the
    window is resolved against.
    """

    min_level: str
    max_level: Optional[str] = None

    def resolve(self, table: LevelTable) -> "ResolvedWindow":
        """
        Resolve level names to ranks.

        Raises:
            UnknownLevelError: If either bound is not in the table
            InvalidFilterWindowError: If min ranks above max
        """
        max_name = self.max_level if self.max_level is not None else table.highest()
        min_rank = table.rank_of(self.min_level)
        max_rank = table.rank_of(max_name)
        if min_rank > max_rank:
            raise InvalidFilterWindowError(self.min_level, max_name)
        return ResolvedWindow(min_rank=min_rank, max_rank=max_rank)


@dataclass(frozen=True)
class ResolvedWindow:
    """Window bounds as ranks."""

    min_rank: int
    max_rank: int


def accepts(record: Record, window: FilterWindow, table: Optional[LevelTable] = None) -> bool:
    """
    Check a record against a window.

    Unknown record levels never pass. A misconfigured window raises.
    """
    table = table or get_default_table()
    resolved = window.resolve(table)
    try:
        rank = table.rank_of(record.level)
    except UnknownLevelError:
        return False
    return resolved.min_rank <= rank <= resolved.max_rank


class LevelFilter(BaseFilter):
    """
    Filter records based on a level window.

    The window is validated once at construction.
    """

    def __init__(
        self,
        min_level: str,
        max_level: Optional[str] = None,
        table: Optional[LevelTable] = None,
    ):
        """
        Initialize level filter.

        Args:
            min_level: Most severe level allowed through (inclusive)
            max_level: Least severe level allowed through (inclusive).
                       Defaults to the table's highest-ranked level.
            table: Level table (default: the process default table)

        Raises:
            UnknownLevelError: If a bound is not in the table
            InvalidFilterWindowError: If min_level ranks above max_level

        Example:
            # Only warn, info and debug
            stage = LevelFilter("warn", "debug")

            # Errors only
            stage = LevelFilter("error", "error")
        """
        self.table = table or get_default_table()
        self.window = FilterWindow(min_level, max_level)
        self._resolved = self.window.resolve(self.table)

    def should_log(self, record: Record) -> bool:
        """
        Check if the record's level is within the window.

        Returns:
            False for levels missing from the table
        """
        try:
            rank = self.table.rank_of(record.level)
        except UnknownLevelError:
            return False
        return self._resolved.min_rank <= rank <= self._resolved.max_rank

    def __repr__(self) -> str:
        """String representation."""
        return f"LevelFilter(min={self.window.min_level}, max={self.window.max_level})"
