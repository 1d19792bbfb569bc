"""
BSD 3-Clause License

Copyright (c) 2021, 🍀☀🌕🌥 🌊
All rights reserved.

Python Scribe Logger - Multi-service logging with level-windowed pipelines,
rotating file streams and live websocket broadcast
"""

__version__ = "1.0.0"
__author__ = "kcenon"
__email__ = "kcenon@naver.com"

from scribe_module.core.log_level import LevelTable
from scribe_module.core.log_record import Record
from scribe_module.core.logger_config import Mode, RegistryConfig
from scribe_module.core.service_logger import ServiceLogger
from scribe_module.core.logger_builder import ServiceLoggerBuilder
from scribe_module.core.registry import LoggerRegistry
from scribe_module.errors import (
    InvalidFilterWindowError,
    ScribeError,
    SinkDegradedError,
    UnknownLevelError,
)

# Import submodules (not all classes by default)
from scribe_module import filters
from scribe_module import formatters
from scribe_module import sinks

__all__ = [
    "LevelTable",
    "Record",
    "Mode",
    "RegistryConfig",
    "ServiceLogger",
    "ServiceLoggerBuilder",
    "LoggerRegistry",
    "ScribeError",
    "UnknownLevelError",
    "InvalidFilterWindowError",
    "SinkDegradedError",
    "filters",
    "formatters",
    "sinks",
]
