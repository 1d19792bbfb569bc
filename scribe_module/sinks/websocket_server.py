"""
WebSocket host for a BroadcastSink

Accepts websocket clients with the threaded ``websockets.sync`` server and
wires their lifecycle into a BroadcastSink: accepted connections become
subscribers, inbound text frames are relayed to the other subscribers and
closed connections are detached. Liveness probing uses websocket ping/pong
control frames, which never reach application code.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from websockets.exceptions import ConnectionClosed
from websockets.sync.server import ServerConnection, serve

from scribe_module.sinks.broadcast_sink import BroadcastSink

logger = logging.getLogger(__name__)


class WebSocketConnection:
    """Adapt a websockets ServerConnection to the sink's Connection protocol."""

    def __init__(self, websocket: ServerConnection):
        self.websocket = websocket

    @property
    def id(self) -> str:
        return str(self.websocket.id)

    def send(self, message: str) -> None:
        self.websocket.send(message)

    def ping(self) -> threading.Event:
        return self.websocket.ping()

    def close(self) -> None:
        self.websocket.close()

    def __repr__(self) -> str:
        return f"WebSocketConnection(id={self.id})"


class WebSocketBroadcastServer:
    """
    Serve a BroadcastSink over websockets.

    The server runs serve_forever() on a daemon thread. close() shuts the
    server down and notifies the sink, which closes every connection once.

    Example:
        sink = BroadcastSink()
        server = WebSocketBroadcastServer(sink, host="0.0.0.0", port=8765)
        server.start()
        ...
        server.close()
    """

    def __init__(
        self,
        sink: BroadcastSink,
        host: str = "127.0.0.1",
        port: int = 8765,
        close_timeout: float = 1.0,
    ):
        """
        Initialize server.

        Args:
            sink: Broadcast sink receiving the connections
            host: Interface to bind
            port: Port to bind (0 picks a free port)
            close_timeout: Seconds to wait for a closing handshake
        """
        self.sink = sink
        self.host = host
        self.port = port
        self.close_timeout = close_timeout

        self._server = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._closed = False

    @property
    def bound_port(self) -> Optional[int]:
        """Actual listening port once started."""
        if self._server is None:
            return None
        return self._server.socket.getsockname()[1]

    @property
    def url(self) -> Optional[str]:
        port = self.bound_port
        return f"ws://{self.host}:{port}" if port is not None else None

    def start(self) -> "WebSocketBroadcastServer":
        """Bind and start serving in the background."""
        with self._lock:
            if self._closed:
                raise RuntimeError("server already closed")
            if self._server is not None:
                return self

            # ping_interval=None: the sink runs its own liveness rounds
            self._server = serve(
                self._handle,
                self.host,
                self.port,
                ping_interval=None,
                close_timeout=self.close_timeout,
            )
            self._thread = threading.Thread(
                target=self._server.serve_forever,
                name="broadcast-server",
                daemon=True,
            )
            self._thread.start()

        logger.info("Broadcast server listening on %s", self.url)
        return self

    def _handle(self, websocket: ServerConnection) -> None:
        connection = WebSocketConnection(websocket)
        subscriber = self.sink.attach(connection, subscriber_id=connection.id)
        if subscriber is None:
            return

        try:
            for message in websocket:
                if isinstance(message, bytes):
                    message = message.decode("utf-8", errors="replace")
                self.sink.relay(subscriber, message)
        except ConnectionClosed:
            pass
        finally:
            self.sink.detach(subscriber)

    def close(self) -> None:
        """Stop accepting clients and shut the sink down. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            server = self._server
            thread = self._thread

        if server is not None:
            server.shutdown()
        if thread is not None:
            thread.join(timeout=5.0)
        self.sink.handle_host_closed()

    def __enter__(self) -> "WebSocketBroadcastServer":
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
