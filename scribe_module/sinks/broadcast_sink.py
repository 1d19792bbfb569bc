"""
Broadcast sink for live log streaming

Pushes every rendered record to all live subscriber connections, relays
inbound subscriber messages to the other subscribers and evicts silently
dead peers through periodic liveness probes.

Liveness protocol:
    Every probe round first collects the answers to the previous round's
    pings, then evicts subscribers that have missed MAX_MISSED_PROBES
    consecutive probes, then pings the survivors. A single lost pong never
    evicts a healthy peer.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, List, Optional, Protocol

from scribe_module.formatters.pipeline import RenderedRecord
from scribe_module.sinks.base_sink import BaseSink
from scribe_module.sinks.periodic_timer import PeriodicTimer

logger = logging.getLogger(__name__)

DEFAULT_PROBE_INTERVAL = 30.0
JOIN_NOTICE = "Client connected"
MAX_MISSED_PROBES = 2


class PongWaiter(Protocol):
    """Handle returned by a ping; set once the matching pong arrives."""

    def is_set(self) -> bool:
        ...


class Connection(Protocol):
    """
    Transport-neutral subscriber connection.

    send() and ping() may raise when the peer is gone.
    """

    def send(self, message: str) -> None:
        ...

    def ping(self) -> Optional[PongWaiter]:
        ...

    def close(self) -> None:
        ...


@dataclass(eq=False)
class Subscriber:
    """A live connection attached to a BroadcastSink."""

    connection: Connection
    id: str
    is_alive: bool = True
    missed_probes: int = 0
    connected_at: datetime = field(default_factory=datetime.now)
    last_pong_at: datetime = field(default_factory=datetime.now)
    _pending_pong: Optional[PongWaiter] = field(default=None, repr=False)

    def mark_alive(self) -> None:
        """Record a liveness response."""
        self.is_alive = True
        self.missed_probes = 0
        self.last_pong_at = datetime.now()
        self._pending_pong = None

    def collect_pong(self) -> None:
        """Settle the outstanding probe: answered resets the miss count."""
        waiter = self._pending_pong
        if waiter is None:
            return
        if waiter.is_set():
            self.mark_alive()
        else:
            self.is_alive = False
            self.missed_probes += 1
            self._pending_pong = None


@dataclass
class BroadcastStats:
    """
    Statistics for broadcast monitoring.
    """

    subscribers_joined: int = 0
    subscribers_evicted: int = 0
    subscribers_left: int = 0
    records_broadcast: int = 0
    messages_relayed: int = 0
    probes_sent: int = 0
    probe_rounds: int = 0

    def to_dict(self) -> dict:
        """Convert stats to dictionary for serialization."""
        return {
            "subscribers_joined": self.subscribers_joined,
            "subscribers_evicted": self.subscribers_evicted,
            "subscribers_left": self.subscribers_left,
            "records_broadcast": self.records_broadcast,
            "messages_relayed": self.messages_relayed,
            "probes_sent": self.probes_sent,
            "probe_rounds": self.probe_rounds,
        }


class BroadcastSink(BaseSink):
    """
    Sink multiplexing records to live subscriber connections.

    Features:
    - Join notices to the other subscribers on accept
    - Relay of inbound messages to everyone but the sender
    - Two-round liveness probing with eviction of dead peers
    - Idempotent shutdown from close() or a host-closed notification

    Delivery is best-effort and at-most-once; nothing is buffered for
    subscribers that are gone.

    Thread Safety:
        The subscriber set is guarded by one lock. Sends happen on
        snapshots taken under the lock, never while holding it.

    Example:
        sink = BroadcastSink(probe_interval=30.0)
        server = WebSocketBroadcastServer(sink, port=8765)
        server.start()
    """

    def __init__(
        self,
        probe_interval: float = DEFAULT_PROBE_INTERVAL,
        join_notice: Optional[str] = JOIN_NOTICE,
        max_missed_probes: int = MAX_MISSED_PROBES,
        auto_start: bool = True,
        name: Optional[str] = None,
    ):
        """
        Initialize broadcast sink.

        Args:
            probe_interval: Seconds between liveness probe rounds
            join_notice: Text sent to existing subscribers when one joins
                         (None disables the notice)
            max_missed_probes: Consecutive unanswered probes before eviction
            auto_start: Start the liveness timer immediately
            name: Sink name used in degraded reports
        """
        super().__init__(name or "broadcast")
        self.probe_interval = probe_interval
        if max_missed_probes < 1:
            raise ValueError("max_missed_probes must be at least 1")
        self.join_notice = join_notice
        self.max_missed_probes = max_missed_probes

        self._subscribers: Dict[str, Subscriber] = {}
        self._lock = threading.RLock()
        self._ids = itertools.count(1)
        self._broadcast_stats = BroadcastStats()
        self._timer = PeriodicTimer(probe_interval, self.run_probe_round, name=f"{self.name}-liveness")

        if auto_start:
            self._timer.start()

    def start(self) -> None:
        """Start the liveness timer."""
        self._timer.start()

    # -- subscriber lifecycle --------------------------------------------

    def attach(self, connection: Connection, subscriber_id: Optional[str] = None) -> Optional[Subscriber]:
        """
        Register an inbound connection.

        Args:
            connection: The accepted connection
            subscriber_id: Identifier (default: sequential number)

        Returns:
            The new Subscriber, or None if the sink is closed (the
            connection is closed in that case)
        """
        with self._lock:
            if self._closed:
                subscriber = None
            else:
                subscriber = Subscriber(
                    connection=connection,
                    id=subscriber_id or str(next(self._ids)),
                )
                others = list(self._subscribers.values())
                self._subscribers[subscriber.id] = subscriber
                self._broadcast_stats.subscribers_joined += 1

        if subscriber is None:
            self._close_connection(connection)
            return None

        logger.debug("Subscriber %s joined (%d live)", subscriber.id, self.subscriber_count())
        if self.join_notice is not None:
            self._send_all(others, self.join_notice)
        return subscriber

    def detach(self, subscriber: Subscriber, close_connection: bool = False) -> bool:
        """
        Remove a subscriber whose connection ended.

        Returns:
            True if the subscriber was still registered
        """
        with self._lock:
            removed = self._subscribers.pop(subscriber.id, None) is not None
            if removed:
                self._broadcast_stats.subscribers_left += 1

        if removed and close_connection:
            self._close_connection(subscriber.connection)
        return removed

    def mark_alive(self, subscriber: Subscriber) -> None:
        """Record a liveness response delivered out of band."""
        with self._lock:
            subscriber.mark_alive()

    def _evict(self, subscriber: Subscriber) -> None:
        with self._lock:
            removed = self._subscribers.pop(subscriber.id, None) is not None
            if removed:
                self._broadcast_stats.subscribers_evicted += 1

        if removed:
            logger.debug("Evicting subscriber %s", subscriber.id)
            self._close_connection(subscriber.connection)

    @staticmethod
    def _close_connection(connection: Connection) -> None:
        try:
            connection.close()
        except Exception as e:
            logger.debug("Closing connection failed: %s", e)

    # -- delivery ----------------------------------------------------------

    def _send_all(self, targets: List[Subscriber], message: str) -> int:
        """Send to each target, evicting those whose connection fails."""
        delivered = 0
        for subscriber in targets:
            try:
                subscriber.connection.send(message)
                delivered += 1
            except Exception:
                self._evict(subscriber)
        return delivered

    def broadcast(self, message: str) -> int:
        """
        Send a message to every live subscriber.

        Returns:
            Number of subscribers that received it
        """
        if self._closed:
            return 0
        targets = self.subscribers()
        delivered = self._send_all(targets, message)
        with self._lock:
            self._broadcast_stats.records_broadcast += 1
        return delivered

    def _emit(self, rendered: RenderedRecord) -> None:
        self.broadcast(str(rendered.payload))

    def relay(self, sender: Subscriber, message: str) -> int:
        """
        Relay an inbound message to all subscribers except the sender.

        Returns:
            Number of subscribers that received it
        """
        if self._closed:
            return 0
        with self._lock:
            targets = [s for s in self._subscribers.values() if s.id != sender.id]
            self._broadcast_stats.messages_relayed += 1
        return self._send_all(targets, message)

    # -- liveness ----------------------------------------------------------

    def run_probe_round(self) -> List[Subscriber]:
        """
        Run one liveness round.

        Subscribers that have missed ``max_missed_probes`` consecutive
        probes are evicted before any probe of this round is sent.

        Returns:
            The subscribers evicted in this round
        """
        with self._lock:
            if self._closed:
                return []
            dead: List[Subscriber] = []
            live: List[Subscriber] = []
            for subscriber in self._subscribers.values():
                subscriber.collect_pong()
                if subscriber.missed_probes >= self.max_missed_probes:
                    dead.append(subscriber)
                else:
                    live.append(subscriber)
            self._broadcast_stats.probe_rounds += 1

        for subscriber in dead:
            self._evict(subscriber)

        for subscriber in live:
            try:
                waiter = subscriber.connection.ping()
            except Exception:
                self._evict(subscriber)
                continue
            with self._lock:
                subscriber._pending_pong = waiter
                self._broadcast_stats.probes_sent += 1

        return dead

    # -- inspection and shutdown ------------------------------------------

    def subscribers(self) -> List[Subscriber]:
        """Snapshot of the live subscribers."""
        with self._lock:
            return list(self._subscribers.values())

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def get_broadcast_stats(self) -> BroadcastStats:
        """
        Get broadcast statistics.

        Returns:
            Copy of current statistics
        """
        with self._lock:
            return replace(self._broadcast_stats)

    def handle_host_closed(self) -> None:
        """Notification that the hosting server is shutting down."""
        self.close()

    def _release(self) -> None:
        self._timer.cancel()
        with self._lock:
            subscribers = list(self._subscribers.values())
            self._subscribers.clear()
        for subscriber in subscribers:
            self._close_connection(subscriber.connection)
