"""Sinks module - terminal consumers of rendered records"""

from scribe_module.sinks.base_sink import BaseSink, SinkStats
from scribe_module.sinks.console_sink import ConsoleSink
from scribe_module.sinks.rotating_file_sink import RotatingFileSink, RotationPolicy
from scribe_module.sinks.broadcast_sink import BroadcastSink, BroadcastStats, Subscriber
from scribe_module.sinks.websocket_server import WebSocketBroadcastServer

__all__ = [
    "BaseSink",
    "SinkStats",
    "ConsoleSink",
    "RotatingFileSink",
    "RotationPolicy",
    "BroadcastSink",
    "BroadcastStats",
    "Subscriber",
    "WebSocketBroadcastServer",
]
