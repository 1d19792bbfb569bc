"""
Date-partitioned rotating file sink

Writes one rendered record per line to a path built from a template whose
``%DATE%`` placeholder is replaced by the current date key. Within a date
partition the file rolls to numbered backups once it exceeds the size
limit; old partitions and backups are pruned by age or count.
"""

import glob
import gzip
import re
import shutil
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Union

from scribe_module.formatters.pipeline import RenderedRecord
from scribe_module.sinks.base_sink import BaseSink

DATE_PLACEHOLDER = "%DATE%"

_SIZE_UNITS = {"": 1, "k": 1024, "m": 1024 ** 2, "g": 1024 ** 3}


def parse_size(value: Union[int, str, None]) -> Optional[int]:
    """
    Parse a size limit such as ``"20m"`` into bytes.

    Returns:
        Number of bytes, or None for no limit
    """
    if value is None:
        return None
    if isinstance(value, int):
        return value
    match = re.fullmatch(r"\s*(\d+)\s*([kmg]?)b?\s*", value.lower())
    if not match:
        raise ValueError(f"Invalid size: {value!r}")
    return int(match.group(1)) * _SIZE_UNITS[match.group(2)]


@dataclass(frozen=True)
class Retention:
    """Either keep files younger than ``days`` or keep the newest ``count``."""

    days: Optional[int] = None
    count: Optional[int] = None


def parse_retention(value: Union[int, str, None]) -> Retention:
    """
    Parse a retention limit: ``"14d"`` keeps 14 days, ``"5"`` keeps 5 files.
    """
    if value is None:
        return Retention()
    if isinstance(value, int):
        return Retention(count=value)
    match = re.fullmatch(r"\s*(\d+)\s*(d?)\s*", value.lower())
    if not match:
        raise ValueError(f"Invalid retention: {value!r}")
    amount = int(match.group(1))
    return Retention(days=amount) if match.group(2) else Retention(count=amount)


@dataclass(frozen=True)
class RotationPolicy:
    """
    Rotation and retention settings handed to RotatingFileSink.
    """

    date_pattern: str = "%m-%d-%Y"
    max_size: Union[int, str, None] = "20m"
    max_files: Union[int, str, None] = "14d"
    zipped_archive: bool = True

    def __post_init__(self):
        """Validate policy after initialization."""
        size = parse_size(self.max_size)
        if size is not None and size <= 0:
            raise ValueError("max_size must be positive")
        parse_retention(self.max_files)

    @property
    def max_bytes(self) -> Optional[int]:
        return parse_size(self.max_size)

    @property
    def retention(self) -> Retention:
        return parse_retention(self.max_files)


class RotatingFileSink(BaseSink):
    """
    Write rendered records to date-partitioned, size-rotated files.

    Example:
        sink = RotatingFileSink(
            "logs/api/%DATE%/error-logs.log",
            RotationPolicy(max_size="20m", max_files="14d"),
        )
    """

    def __init__(
        self,
        path_template: str,
        policy: Optional[RotationPolicy] = None,
        encoding: str = "utf-8",
        clock: Optional[Callable[[], datetime]] = None,
        name: Optional[str] = None,
    ):
        """
        Initialize rotating file sink.

        Args:
            path_template: File path, optionally containing %DATE%
            policy: Rotation and retention settings
            encoding: File encoding (default: 'utf-8')
            clock: Callable returning the current time
            name: Sink name used in degraded reports
        """
        super().__init__(name or f"file:{path_template}")
        self.path_template = str(path_template)
        self.policy = policy or RotationPolicy()
        self.encoding = encoding
        self.clock = clock or datetime.now
        self._lock = threading.Lock()
        self._file = None
        self._date_key: Optional[str] = None
        self._path: Optional[Path] = None

    @property
    def current_path(self) -> Optional[Path]:
        """Path of the file currently being written."""
        return self._path

    def _path_for(self, date_key: str) -> Path:
        return Path(self.path_template.replace(DATE_PLACEHOLDER, date_key))

    def _open(self, date_key: str) -> None:
        """Open the file for a date partition (caller must hold lock)."""
        self._close_file()
        self._date_key = date_key
        self._path = self._path_for(date_key)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self._path, "a", encoding=self.encoding)
        self._prune()

    def _close_file(self) -> None:
        if self._file:
            self._file.close()
            self._file = None

    def _should_rotate(self) -> bool:
        """Check if file should be rotated (caller must hold lock)."""
        max_bytes = self.policy.max_bytes
        if not self._file or max_bytes is None:
            return False
        return self._file.tell() >= max_bytes

    def _backup_path(self, index: int, zipped: bool) -> Path:
        suffix = f".{index}.gz" if zipped else f".{index}"
        return Path(str(self._path) + suffix)

    def _do_rotate(self) -> None:
        """Move the active file to numbered backups (caller must hold lock)."""
        self._close_file()

        index = 1
        while self._backup_path(index, False).exists() or self._backup_path(index, True).exists():
            index += 1
        for i in range(index - 1, 0, -1):
            for zipped in (False, True):
                src = self._backup_path(i, zipped)
                if src.exists():
                    src.rename(self._backup_path(i + 1, zipped))

        backup = self._backup_path(1, False)
        self._path.rename(backup)
        if self.policy.zipped_archive:
            with open(backup, "rb") as src, gzip.open(self._backup_path(1, True), "wb") as dst:
                shutil.copyfileobj(src, dst)
            backup.unlink()

        self._file = open(self._path, "a", encoding=self.encoding)
        self._prune()

    def _candidates(self) -> List[Path]:
        """Every file this sink ever produced, except the active one."""
        pattern = glob.escape(self.path_template).replace(glob.escape(DATE_PLACEHOLDER), "*")
        paths = {Path(p) for p in glob.glob(pattern) + glob.glob(pattern + ".*")}
        paths.discard(self._path)
        return [p for p in paths if p.is_file()]

    def _prune(self) -> None:
        """Apply the retention policy (caller must hold lock)."""
        retention = self.policy.retention
        if retention.days is None and retention.count is None:
            return

        candidates = sorted(self._candidates(), key=lambda p: p.stat().st_mtime, reverse=True)
        if retention.days is not None:
            cutoff = time.time() - retention.days * 86400
            expired = [p for p in candidates if p.stat().st_mtime < cutoff]
        else:
            # the active file counts against the limit
            expired = candidates[max(retention.count - 1, 0):]

        for path in expired:
            path.unlink()
            if DATE_PLACEHOLDER in str(Path(self.path_template).parent):
                try:
                    path.parent.rmdir()
                except OSError:
                    pass  # partition still has files

    def _emit(self, rendered: RenderedRecord) -> None:
        with self._lock:
            date_key = self.clock().strftime(self.policy.date_pattern)
            if self._file is None or date_key != self._date_key:
                self._open(date_key)
            elif self._should_rotate():
                self._do_rotate()
            self._file.write(f"{rendered.payload}\n")
            self._file.flush()

    def flush(self) -> None:
        """Flush file buffer."""
        with self._lock:
            if self._file:
                self._file.flush()

    def _release(self) -> None:
        with self._lock:
            self._close_file()
