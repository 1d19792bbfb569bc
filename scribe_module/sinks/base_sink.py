"""
Base sink

Sinks consume rendered records. write() never raises: failures are caught,
counted and handed to the degraded callback installed by the owner.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Optional

from scribe_module.errors import SinkDegradedError

if TYPE_CHECKING:
    from scribe_module.formatters.pipeline import RenderedRecord

DegradedCallback = Callable[["BaseSink", SinkDegradedError], None]


@dataclass
class SinkStats:
    """
    Statistics for sink health monitoring.
    """

    records_written: int = 0
    records_failed: int = 0
    last_error: Optional[str] = None
    last_error_time: Optional[datetime] = None
    degraded: bool = False

    def record_success(self) -> None:
        """Record a successful write."""
        self.records_written += 1
        self.degraded = False

    def record_failure(self, error: str) -> None:
        """Record a failed write."""
        self.records_failed += 1
        self.last_error = error
        self.last_error_time = datetime.now()
        self.degraded = True

    def to_dict(self) -> dict:
        """Convert stats to dictionary for serialization."""
        return {
            "records_written": self.records_written,
            "records_failed": self.records_failed,
            "last_error": self.last_error,
            "last_error_time": (
                self.last_error_time.isoformat() if self.last_error_time else None
            ),
            "degraded": self.degraded,
        }


class BaseSink(ABC):
    """
    Abstract base class for sinks.

    Subclasses implement _emit(); close() is idempotent and calls _release()
    once.

    Thread Safety:
        Stats and the closed flag are guarded by an internal lock.
    """

    def __init__(self, name: Optional[str] = None):
        self.name = name or type(self).__name__
        self._stats = SinkStats()
        self._stats_lock = threading.Lock()
        self._closed = False
        self._close_lock = threading.Lock()
        self._on_degraded: Optional[DegradedCallback] = None

    @property
    def closed(self) -> bool:
        return self._closed

    def set_degraded_callback(self, callback: Optional[DegradedCallback]) -> None:
        """Install the callback notified when a write fails."""
        self._on_degraded = callback

    @abstractmethod
    def _emit(self, rendered: "RenderedRecord") -> None:
        """Deliver a rendered record. May raise; write() catches."""
        pass

    def _release(self) -> None:
        """Release held resources. Called once by close()."""

    def write(self, rendered: "RenderedRecord") -> None:
        """
        Write a rendered record.

        Args:
            rendered: Pipeline output for this sink
        """
        if self._closed:
            return

        try:
            self._emit(rendered)
        except Exception as e:
            self._degrade(e)
            return

        with self._stats_lock:
            self._stats.record_success()

    def _degrade(self, error: BaseException) -> None:
        with self._stats_lock:
            self._stats.record_failure(str(error))

        callback = self._on_degraded
        if callback is not None:
            try:
                callback(self, SinkDegradedError(self.name, error))
            except Exception:
                pass  # Best effort

    def flush(self) -> None:
        """Flush buffered output."""

    def close(self) -> None:
        """Close sink and release resources."""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        self._release()

    def get_stats(self) -> SinkStats:
        """
        Get sink statistics.

        Returns:
            Copy of current statistics
        """
        with self._stats_lock:
            return replace(self._stats)

    def __enter__(self) -> "BaseSink":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
