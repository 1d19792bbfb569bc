"""
Core module for the scribe system

This module contains the fundamental classes:
- LevelTable: Ordered severity levels
- Record: Immutable log record
- ServiceLogger: Logger bound to one service
- ServiceLoggerBuilder: Builder for service loggers
- LoggerRegistry: Service name to logger map
- RegistryConfig: Configuration management
"""

from scribe_module.core.log_level import (
    LevelTable,
    get_default_table,
    init_default_table,
    replace_default_table,
)
from scribe_module.core.log_record import Record
from scribe_module.core.logger_config import Mode, RegistryConfig
from scribe_module.core.transport import Transport
from scribe_module.core.service_logger import ServiceLogger
from scribe_module.core.logger_builder import ServiceLoggerBuilder
from scribe_module.core.registry import LoggerRegistry

__all__ = [
    "LevelTable",
    "get_default_table",
    "init_default_table",
    "replace_default_table",
    "Record",
    "Mode",
    "RegistryConfig",
    "Transport",
    "ServiceLogger",
    "ServiceLoggerBuilder",
    "LoggerRegistry",
]
