"""
Level table

Ordered severity levels with numeric ranks. Lower rank means more severe,
so ``error`` ranks 0 and ``box`` ranks 7 in the default table.
"""

import threading
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from scribe_module.errors import UnknownLevelError


DEFAULT_LEVELS: Tuple[Tuple[str, int], ...] = (
    ("error", 0),
    ("warn", 1),
    ("info", 2),
    ("debug", 3),
    ("success", 4),
    ("verbose", 5),
    ("internal", 6),
    ("box", 7),
)


class LevelTable:
    """
    Immutable ordered table of (name, rank) pairs.

    Ranks are strictly increasing and names are unique. A table is never
    mutated after construction; use replace_default_table() to swap the
    process default wholesale.
    """

    def __init__(self, levels):
        """
        Initialize level table.

        Args:
            levels: Iterable of (name, rank) pairs

        Raises:
            ValueError: If the table is empty, names repeat or ranks repeat
        """
        pairs = sorted(((str(name).lower(), int(rank)) for name, rank in levels),
                       key=lambda pair: pair[1])
        if not pairs:
            raise ValueError("level table cannot be empty")

        self._by_name: Dict[str, int] = {}
        self._by_rank: Dict[int, str] = {}
        for name, rank in pairs:
            if name in self._by_name:
                raise ValueError(f"duplicate level name: {name}")
            if rank in self._by_rank:
                raise ValueError(f"duplicate level rank: {rank}")
            self._by_name[name] = rank
            self._by_rank[rank] = name

        self._levels: Tuple[Tuple[str, int], ...] = tuple(pairs)

    @classmethod
    def default(cls) -> "LevelTable":
        """Create the default table (error..box)."""
        return cls(DEFAULT_LEVELS)

    @classmethod
    def from_mapping(cls, levels: Mapping[str, int]) -> "LevelTable":
        """Create a table from a name to rank mapping."""
        return cls(levels.items())

    def rank_of(self, name: str) -> int:
        """
        Get the rank for a level name.

        Args:
            name: Level name (case-insensitive)

        Returns:
            Integer rank

        Raises:
            UnknownLevelError: If the name is not a string or not in the table
        """
        if not isinstance(name, str):
            raise UnknownLevelError(
                name, f"LogLevel expected a string, but got {type(name).__name__}"
            )
        try:
            return self._by_name[name.lower()]
        except KeyError:
            raise UnknownLevelError(name.lower()) from None

    def name_of(self, rank: int) -> str:
        """
        Get the level name for a rank.

        Raises:
            UnknownLevelError: If no level has that rank
        """
        try:
            return self._by_rank[rank]
        except (KeyError, TypeError):
            raise UnknownLevelError(rank, f"No log level with rank {rank}") from None

    def names(self) -> List[str]:
        """Level names in rank order."""
        return [name for name, _ in self._levels]

    def highest(self) -> str:
        """Name of the level with the largest rank."""
        return self._levels[-1][0]

    def lowest(self) -> str:
        """Name of the level with the smallest rank."""
        return self._levels[0][0]

    def __contains__(self, name) -> bool:
        return isinstance(name, str) and name.lower() in self._by_name

    def __iter__(self) -> Iterator[Tuple[str, int]]:
        return iter(self._levels)

    def __len__(self) -> int:
        return len(self._levels)

    def __eq__(self, other) -> bool:
        if not isinstance(other, LevelTable):
            return NotImplemented
        return self._levels == other._levels

    def __hash__(self) -> int:
        return hash(self._levels)

    def __repr__(self) -> str:
        return f"LevelTable({dict(self._levels)})"


_default_table: Optional[LevelTable] = None
_default_lock = threading.Lock()


def get_default_table() -> LevelTable:
    """Return the process default table, initializing it on first use."""
    global _default_table
    with _default_lock:
        if _default_table is None:
            _default_table = LevelTable.default()
        return _default_table


def init_default_table(table: Optional[LevelTable] = None) -> LevelTable:
    """
    Initialize the process default table once.

    Args:
        table: Table to install (default: LevelTable.default())

    Returns:
        The installed table

    Raises:
        RuntimeError: If the default table was already initialized
    """
    global _default_table
    with _default_lock:
        if _default_table is not None:
            raise RuntimeError("default level table already initialized")
        _default_table = table or LevelTable.default()
        return _default_table


def replace_default_table(table: LevelTable) -> Optional[LevelTable]:
    """
    Swap the process default table wholesale.

    Pipelines built before the swap keep the table they were built with.

    Returns:
        The previous table, or None if none was installed
    """
    global _default_table
    if not isinstance(table, LevelTable):
        raise TypeError("table must be a LevelTable")
    with _default_lock:
        previous = _default_table
        _default_table = table
        return previous
