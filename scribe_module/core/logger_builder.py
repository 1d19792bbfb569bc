"""ServiceLogger builder pattern"""

from dataclasses import replace
from typing import List, Optional, TextIO

from scribe_module.core.log_level import LevelTable, get_default_table
from scribe_module.core.logger_config import Mode, RegistryConfig
from scribe_module.core.service_logger import ServiceLogger
from scribe_module.core.transport import Transport
from scribe_module.formatters.presets import filter_levels_for_console, filter_levels_then_json
from scribe_module.sinks.base_sink import BaseSink
from scribe_module.sinks.broadcast_sink import BroadcastSink
from scribe_module.sinks.console_sink import ConsoleSink
from scribe_module.sinks.rotating_file_sink import RotatingFileSink

ERROR_LOG_NAME = "error-logs.log"
GENERAL_LOG_NAME = "general-logs.log"


class ServiceLoggerBuilder:
    """
    Builder pattern for service logger construction.

    Production loggers get two rotating JSON file streams: errors only, and
    a general stream for warn..debug. Development loggers get a console
    stream (error..internal), a console box stream, and the shared
    broadcast sink when one is supplied.
    """

    def __init__(self, service: str):
        if not isinstance(service, str) or not service:
            raise ValueError("service must be a non-empty string")
        self._service = service
        self._config = RegistryConfig()
        self._table: Optional[LevelTable] = None
        self._broadcast: Optional[BroadcastSink] = None
        self._console_stream: Optional[TextIO] = None
        self._custom_transports: List[Transport] = []
        self._defaults = True

    def with_config(self, config: RegistryConfig) -> "ServiceLoggerBuilder":
        """Use a registry configuration."""
        self._config = config
        return self

    def with_mode(self, mode) -> "ServiceLoggerBuilder":
        """Select the default sink set."""
        mode = mode if isinstance(mode, Mode) else Mode.from_string(mode)
        self._config = replace(self._config, mode=mode)
        return self

    def with_table(self, table: LevelTable) -> "ServiceLoggerBuilder":
        """Use a specific level table instead of the process default."""
        self._table = table
        return self

    def with_broadcast(self, sink: Optional[BroadcastSink]) -> "ServiceLoggerBuilder":
        """
        Attach a shared broadcast sink (development mode only).

        The logger does not own the sink and will not close it.
        """
        self._broadcast = sink
        return self

    def with_console_stream(self, stream: TextIO) -> "ServiceLoggerBuilder":
        """Send console output to a specific stream."""
        self._console_stream = stream
        return self

    def without_defaults(self) -> "ServiceLoggerBuilder":
        """Skip the mode's default transports."""
        self._defaults = False
        return self

    def add_transport(self, transport: Transport) -> "ServiceLoggerBuilder":
        """
        Add a custom transport.

        Args:
            transport: Transport instance

        Returns:
            Self for method chaining
        """
        self._custom_transports.append(transport)
        return self

    def add_sink(self, name: str, sink: BaseSink, pipeline, owns_sink: bool = True) -> "ServiceLoggerBuilder":
        """Wrap a sink and pipeline in a transport using the configured dispatch."""
        return self.add_transport(self._transport(name, pipeline, sink, owns_sink))

    def _transport(self, name: str, pipeline, sink: BaseSink, owns_sink: bool = True) -> Transport:
        return Transport(
            name=f"{self._service}:{name}",
            pipeline=pipeline,
            sink=sink,
            owns_sink=owns_sink,
            async_mode=self._config.async_mode,
            queue_size=self._config.queue_size,
        )

    def _production_transports(self, table: LevelTable) -> List[Transport]:
        directory = self._config.log_directory / self._service / "%DATE%"
        policy = self._config.rotation
        return [
            self._transport(
                "error-file",
                filter_levels_then_json("error", "error", table),
                RotatingFileSink(str(directory / ERROR_LOG_NAME), policy, name=f"{self._service}:error-file"),
            ),
            self._transport(
                "general-file",
                filter_levels_then_json("warn", "debug", table),
                RotatingFileSink(str(directory / GENERAL_LOG_NAME), policy, name=f"{self._service}:general-file"),
            ),
        ]

    def _development_transports(self, table: LevelTable) -> List[Transport]:
        colored = self._config.colored_output
        transports = [
            self._transport(
                "console",
                filter_levels_for_console("error", "internal", table),
                ConsoleSink(self._console_stream, colored=colored, name=f"{self._service}:console"),
            ),
            self._transport(
                "console-box",
                filter_levels_for_console("box", "box", table),
                ConsoleSink(self._console_stream, colored=colored, name=f"{self._service}:console-box"),
            ),
        ]
        if self._broadcast is not None:
            transports.append(self._transport(
                "broadcast",
                filter_levels_for_console("error", "box", table),
                self._broadcast,
                owns_sink=False,
            ))
        return transports

    def build(self) -> ServiceLogger:
        """Build and return configured service logger."""
        table = self._table or get_default_table()

        transports: List[Transport] = []
        if self._defaults:
            if self._config.is_production:
                transports.extend(self._production_transports(table))
            else:
                transports.extend(self._development_transports(table))
        transports.extend(self._custom_transports)

        return ServiceLogger(
            self._service,
            transports=transports,
            table=table,
            default_metadata=self._config.default_metadata,
            degraded_report_interval=self._config.degraded_report_interval,
        )
