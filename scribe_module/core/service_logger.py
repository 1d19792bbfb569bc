"""
ServiceLogger - a named logger fanning records out to its transports
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, List, Mapping, Optional

from scribe_module.core.log_level import LevelTable, get_default_table
from scribe_module.core.log_record import Metadata, Record
from scribe_module.core.transport import Transport
from scribe_module.errors import SinkDegradedError
from scribe_module.sinks.base_sink import BaseSink

DEGRADED_REPORT_LEVEL = "warn"


class ServiceLogger:
    """
    Logger bound to one service.

    log() never raises: unknown levels are dropped and sink failures are
    reported back through this logger at most once per
    ``degraded_report_interval`` seconds per sink.
    """

    def __init__(
        self,
        service: str,
        transports: Optional[List[Transport]] = None,
        table: Optional[LevelTable] = None,
        default_metadata: Optional[Mapping[str, Any]] = None,
        degraded_report_interval: float = 60.0,
        clock: Optional[Callable[[], float]] = None,
    ):
        if degraded_report_interval <= 0:
            raise ValueError("degraded_report_interval must be positive")
        self.service = service
        self.table = table or get_default_table()
        self.default_metadata = dict(default_metadata or {})
        self.degraded_report_interval = degraded_report_interval
        self._clock = clock or time.monotonic

        self._transports: List[Transport] = []
        self._metrics = {"logged": 0, "unknown_level": 0, "degraded_reports": 0, "suppressed_reports": 0}
        self._lock = threading.Lock()
        self._last_report: Dict[str, float] = {}
        self._reporting = threading.local()
        self._closed = False

        for transport in transports or []:
            self.add_transport(transport)

    def add_transport(self, transport: Transport) -> None:
        """Attach a transport and route its sink failures to this logger."""
        if transport.owns_sink:
            transport.sink.set_degraded_callback(self._on_sink_degraded)
        self._transports.append(transport)

    @property
    def transports(self) -> List[Transport]:
        return list(self._transports)

    @property
    def closed(self) -> bool:
        return self._closed

    def _merge_metadata(self, metadata: Any) -> Metadata:
        if not self.default_metadata:
            return metadata
        if metadata is None:
            return dict(self.default_metadata)
        if isinstance(metadata, Mapping):
            return {**self.default_metadata, **metadata}
        return metadata

    def log(self, level: str, message: str, metadata: Any = None, prefix: Optional[str] = None) -> None:
        """
        Log a message.

        Args:
            level: Level name from the level table
            message: Log message
            metadata: None, a string or a mapping
            prefix: Optional label shown before the message
        """
        if self._closed:
            return
        if level not in self.table:
            with self._lock:
                self._metrics["unknown_level"] += 1
            return

        record = Record(
            level=level,
            message=message,
            metadata=self._merge_metadata(metadata),
            service=self.service,
            prefix=prefix,
        )
        with self._lock:
            self._metrics["logged"] += 1

        for transport in self._transports:
            try:
                transport.dispatch(record)
            except Exception as e:
                self._on_sink_degraded(transport.sink, SinkDegradedError(transport.name, e))

    def error(self, message: str, metadata: Any = None, **kwargs) -> None:
        """Log error message."""
        self.log("error", message, metadata, **kwargs)

    def warn(self, message: str, metadata: Any = None, **kwargs) -> None:
        """Log warning message."""
        self.log("warn", message, metadata, **kwargs)

    def info(self, message: str, metadata: Any = None, **kwargs) -> None:
        """Log info message."""
        self.log("info", message, metadata, **kwargs)

    def debug(self, message: str, metadata: Any = None, **kwargs) -> None:
        """Log debug message."""
        self.log("debug", message, metadata, **kwargs)

    def success(self, message: str, metadata: Any = None, **kwargs) -> None:
        """Log success message."""
        self.log("success", message, metadata, **kwargs)

    def verbose(self, message: str, metadata: Any = None, **kwargs) -> None:
        """Log verbose message."""
        self.log("verbose", message, metadata, **kwargs)

    def internal(self, message: str, metadata: Any = None, **kwargs) -> None:
        """Log internal message."""
        self.log("internal", message, metadata, **kwargs)

    def box(self, message: str, metadata: Any = None, **kwargs) -> None:
        """Log a message drawn inside a box."""
        self.log("box", message, metadata, **kwargs)

    def _on_sink_degraded(self, sink: BaseSink, error: SinkDegradedError) -> None:
        """Report a sink failure through this logger, rate-limited per sink."""
        if getattr(self._reporting, "active", False):
            return

        now = self._clock()
        with self._lock:
            last = self._last_report.get(error.sink_name)
            if last is not None and now - last < self.degraded_report_interval:
                self._metrics["suppressed_reports"] += 1
                return
            self._last_report[error.sink_name] = now
            self._metrics["degraded_reports"] += 1

        self._reporting.active = True
        try:
            self.log(
                DEGRADED_REPORT_LEVEL,
                str(error),
                {"sink": error.sink_name, "error": str(error.cause)},
                prefix="scribe",
            )
        finally:
            self._reporting.active = False

    def flush(self) -> None:
        """Flush all pending records."""
        for transport in self._transports:
            transport.flush()

    def close(self) -> None:
        """Close every transport and the sinks it owns. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        for transport in self._transports:
            transport.close()

    def get_metrics(self) -> dict:
        """Get logging metrics, including per-transport counters."""
        with self._lock:
            metrics: Dict[str, Any] = self._metrics.copy()
        metrics["transports"] = {t.name: t.get_metrics() for t in self._transports}
        return metrics

    def __repr__(self) -> str:
        return f"ServiceLogger(service={self.service!r}, transports={len(self._transports)})"
