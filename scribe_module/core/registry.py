"""
LoggerRegistry - the process-wide map of service name to ServiceLogger

Only the registry creates and destroys ServiceLogger entries. Removing a
service closes its transports and the sinks they own before returning.
"""

from __future__ import annotations

import atexit
import threading
from typing import Dict, Iterable, List, Optional, TextIO

from scribe_module.core.log_level import LevelTable, get_default_table
from scribe_module.core.logger_builder import ServiceLoggerBuilder
from scribe_module.core.logger_config import RegistryConfig
from scribe_module.core.service_logger import ServiceLogger
from scribe_module.sinks.broadcast_sink import BroadcastSink


class LoggerRegistry:
    """
    Hands out one ServiceLogger per service.

    Adding a service that is already registered is a no-op that returns
    False; the existing logger is kept.

    Example:
        registry = LoggerRegistry(["Server", "Redis"])
        registry.get("Redis").info("connected")
        registry.remove("Server")  # True
    """

    def __init__(
        self,
        services: Iterable[str] = (),
        config: Optional[RegistryConfig] = None,
        broadcast: Optional[BroadcastSink] = None,
        table: Optional[LevelTable] = None,
        console_stream: Optional[TextIO] = None,
    ):
        """
        Initialize registry.

        Args:
            services: Services to register immediately
            config: Mode, file and dispatch settings
            broadcast: Shared broadcast sink for development loggers.
                       The registry closes it in close().
            table: Level table for every logger (default: process default)
            console_stream: Stream for development console output
        """
        self._config = config or RegistryConfig.default()
        self._broadcast = broadcast
        self._table = table or get_default_table()
        self._console_stream = console_stream
        self._loggers: Dict[str, ServiceLogger] = {}
        self._lock = threading.RLock()
        self._closed = False

        for service in services:
            self.add(service)

        atexit.register(self.close)

    @property
    def config(self) -> RegistryConfig:
        return self._config

    @property
    def broadcast(self) -> Optional[BroadcastSink]:
        return self._broadcast

    def _create_logger(self, service: str) -> ServiceLogger:
        builder = (ServiceLoggerBuilder(service)
            .with_config(self._config)
            .with_table(self._table)
            .with_broadcast(self._broadcast))
        if self._console_stream is not None:
            builder.with_console_stream(self._console_stream)
        return builder.build()

    def add(self, service: str) -> bool:
        """
        Register a service.

        Returns:
            True if a logger was created, False if the service already
            exists or the registry is closed
        """
        with self._lock:
            if self._closed or service in self._loggers:
                return False
            self._loggers[service] = self._create_logger(service)
            return True

    def remove(self, service: str) -> bool:
        """
        Remove a service and close its sinks.

        Returns:
            True if the service was present, False otherwise
        """
        with self._lock:
            service_logger = self._loggers.pop(service, None)
        if service_logger is None:
            return False
        service_logger.close()
        return True

    def get(self, service: str) -> Optional[ServiceLogger]:
        """
        Get the logger for a service.

        Returns:
            The logger, or None if the service is not registered
        """
        with self._lock:
            return self._loggers.get(service)

    def get_all_services(self) -> List[str]:
        """Snapshot of registered service names."""
        with self._lock:
            return list(self._loggers.keys())

    def get_all_loggers(self) -> Dict[str, ServiceLogger]:
        """Snapshot of service name to logger."""
        with self._lock:
            return dict(self._loggers)

    def flush(self) -> None:
        """Flush every logger."""
        for service_logger in self.get_all_loggers().values():
            service_logger.flush()

    def close(self) -> None:
        """Close every logger and the broadcast sink. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            loggers = list(self._loggers.values())
            self._loggers.clear()

        for service_logger in loggers:
            service_logger.close()
        if self._broadcast is not None:
            self._broadcast.close()

    def __contains__(self, service: str) -> bool:
        with self._lock:
            return service in self._loggers

    def __len__(self) -> int:
        with self._lock:
            return len(self._loggers)

    def __enter__(self) -> "LoggerRegistry":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"LoggerRegistry(services={self.get_all_services()}, mode={self._config.mode})"
