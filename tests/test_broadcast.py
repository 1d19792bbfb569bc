"""Tests for the broadcast sink and its liveness timer"""

import threading
import time
from unittest.mock import Mock, patch

import pytest

from scribe_module.core.log_record import Record
from scribe_module.formatters.pipeline import RenderedRecord
from scribe_module.sinks import BroadcastSink
from scribe_module.sinks.broadcast_sink import JOIN_NOTICE
from scribe_module.sinks.periodic_timer import PeriodicTimer


class FakeConnection:
    """In-memory connection; answers pings while ``responsive``."""

    def __init__(self, responsive=True, fail_send=False):
        self.responsive = responsive
        self.fail_send = fail_send
        self.sent = []
        self.pings = 0
        self.close_calls = 0

    def send(self, message):
        if self.fail_send:
            raise ConnectionError("peer gone")
        self.sent.append(message)

    def ping(self):
        self.pings += 1
        waiter = threading.Event()
        if self.responsive:
            waiter.set()
        return waiter

    def close(self):
        self.close_calls += 1


@pytest.fixture
def sink():
    sink = BroadcastSink(auto_start=False)
    yield sink
    sink.close()


def rendered(message, level="info"):
    return RenderedRecord(record=Record(level, message), payload=message)


class TestSubscribers:
    """Test attach, detach and join notices."""

    def test_join_notice_goes_to_others_only(self, sink):
        first, second = FakeConnection(), FakeConnection()

        sink.attach(first)
        sink.attach(second)

        assert first.sent == [JOIN_NOTICE]
        assert second.sent == []
        assert sink.subscriber_count() == 2

    def test_join_notice_disabled(self):
        sink = BroadcastSink(join_notice=None, auto_start=False)
        first = FakeConnection()
        sink.attach(first)
        sink.attach(FakeConnection())
        assert first.sent == []
        sink.close()

    def test_sequential_ids(self, sink):
        assert sink.attach(FakeConnection()).id == "1"
        assert sink.attach(FakeConnection()).id == "2"

    def test_detach(self, sink):
        connection = FakeConnection()
        subscriber = sink.attach(connection)

        assert sink.detach(subscriber) is True
        assert sink.detach(subscriber) is False
        assert sink.subscriber_count() == 0
        assert connection.close_calls == 0
        assert sink.get_broadcast_stats().subscribers_left == 1

    def test_attach_after_close_rejects_connection(self, sink):
        sink.close()
        connection = FakeConnection()

        assert sink.attach(connection) is None
        assert connection.close_calls == 1


class TestDelivery:
    """Test broadcast and relay."""

    def test_write_reaches_every_subscriber(self, sink):
        connections = [FakeConnection() for _ in range(3)]
        for connection in connections:
            sink.attach(connection)

        sink.write(rendered("hello"))

        for connection in connections:
            assert connection.sent[-1] == "hello"

    def test_relay_skips_sender(self, sink):
        a, b, c = FakeConnection(), FakeConnection(), FakeConnection()
        sender = sink.attach(a)
        sink.attach(b)
        sink.attach(c)

        delivered = sink.relay(sender, "ping from a")

        assert delivered == 2
        assert "ping from a" not in a.sent
        assert b.sent[-1] == "ping from a"
        assert c.sent[-1] == "ping from a"

    def test_send_failure_evicts(self, sink):
        good, bad = FakeConnection(), FakeConnection(fail_send=True)
        sink.attach(good)
        sink.attach(bad)

        delivered = sink.broadcast("record")

        assert delivered == 1
        assert sink.subscriber_count() == 1
        assert bad.close_calls == 1
        assert sink.get_broadcast_stats().subscribers_evicted == 1

    def test_broadcast_without_subscribers(self, sink):
        assert sink.broadcast("nobody") == 0
        assert sink.get_stats().records_failed == 0

    def test_broadcast_after_close(self, sink):
        connection = FakeConnection()
        sink.attach(connection)
        sink.close()
        assert sink.broadcast("late") == 0
        assert "late" not in connection.sent


class TestLiveness:
    """Test two-round probing."""

    def test_responsive_subscriber_survives(self, sink):
        connection = FakeConnection()
        sink.attach(connection)

        for _ in range(5):
            assert sink.run_probe_round() == []

        assert sink.subscriber_count() == 1
        assert connection.pings == 5

    def test_single_lost_pong_tolerated(self, sink):
        connection = FakeConnection()
        subscriber = sink.attach(connection)

        sink.run_probe_round()
        connection.responsive = False
        sink.run_probe_round()
        connection.responsive = True
        sink.run_probe_round()

        assert sink.subscriber_count() == 1
        assert connection.close_calls == 0
        assert subscriber.missed_probes == 1

        sink.run_probe_round()
        assert subscriber.missed_probes == 0
        assert subscriber.is_alive

    def test_two_consecutive_misses_evicted_before_ping(self, sink):
        connection = FakeConnection()
        subscriber = sink.attach(connection)

        sink.run_probe_round()
        connection.responsive = False
        sink.run_probe_round()
        assert sink.run_probe_round() == []
        evicted = sink.run_probe_round()

        assert evicted == [subscriber]
        assert sink.subscriber_count() == 0
        assert connection.close_calls == 1
        assert connection.pings == 3

    def test_silent_from_start_evicted_on_third_round(self, sink):
        connection = FakeConnection(responsive=False)
        subscriber = sink.attach(connection)

        sink.run_probe_round()
        sink.run_probe_round()
        assert sink.subscriber_count() == 1

        assert sink.run_probe_round() == [subscriber]
        assert connection.pings == 2

    def test_alternating_misses_never_evict(self, sink):
        connection = FakeConnection()
        sink.attach(connection)

        for round_number in range(10):
            connection.responsive = round_number % 2 == 0
            sink.run_probe_round()

        assert sink.subscriber_count() == 1
        assert connection.close_calls == 0

    def test_late_pong_restores(self, sink):
        connection = FakeConnection(responsive=False)
        subscriber = sink.attach(connection)

        sink.run_probe_round()
        sink.run_probe_round()
        sink.mark_alive(subscriber)
        sink.run_probe_round()
        sink.run_probe_round()

        assert sink.subscriber_count() == 1
        assert subscriber.missed_probes == 1
        assert connection.pings == 4

    def test_single_miss_limit(self):
        sink = BroadcastSink(max_missed_probes=1, auto_start=False)
        connection = FakeConnection(responsive=False)
        sink.attach(connection)

        sink.run_probe_round()
        sink.run_probe_round()

        assert sink.subscriber_count() == 0
        sink.close()

    def test_invalid_miss_limit(self):
        with pytest.raises(ValueError):
            BroadcastSink(max_missed_probes=0, auto_start=False)

    def test_ping_failure_evicts(self, sink):
        connection = FakeConnection()
        connection.ping = Mock(side_effect=ConnectionError("gone"))
        sink.attach(connection)

        sink.run_probe_round()

        assert sink.subscriber_count() == 0
        assert connection.close_calls == 1

    def test_round_counts(self, sink):
        sink.attach(FakeConnection())
        sink.run_probe_round()
        sink.run_probe_round()

        stats = sink.get_broadcast_stats()
        assert stats.probe_rounds == 2
        assert stats.probes_sent == 2

    def test_three_subscribers_one_goes_silent(self, sink):
        connections = [FakeConnection() for _ in range(3)]
        for connection in connections:
            sink.attach(connection)

        sink.write(rendered("deployed", level="success"))
        for connection in connections:
            assert connection.sent[-1] == "deployed"

        connections[1].responsive = False
        sink.run_probe_round()
        sink.run_probe_round()
        sink.run_probe_round()

        assert sink.subscriber_count() == 2
        assert connections[1].close_calls == 1

        sink.write(rendered("after"))
        assert connections[0].sent[-1] == "after"
        assert connections[2].sent[-1] == "after"
        assert "after" not in connections[1].sent

    def test_round_after_close_is_noop(self, sink):
        connection = FakeConnection()
        sink.attach(connection)
        sink.close()
        assert sink.run_probe_round() == []
        assert connection.pings == 0


class TestShutdown:
    """Test idempotent shutdown."""

    def test_close_twice(self, sink):
        connections = [FakeConnection(), FakeConnection()]
        for connection in connections:
            sink.attach(connection)

        with patch.object(sink._timer, "cancel", wraps=sink._timer.cancel) as cancel:
            sink.close()
            sink.close()

        cancel.assert_called_once()
        assert [c.close_calls for c in connections] == [1, 1]
        assert sink.subscriber_count() == 0

    def test_host_closed_then_close(self, sink):
        connection = FakeConnection()
        sink.attach(connection)

        with patch.object(sink._timer, "cancel", wraps=sink._timer.cancel) as cancel:
            sink.handle_host_closed()
            sink.close()
            sink.handle_host_closed()

        cancel.assert_called_once()
        assert connection.close_calls == 1

    def test_auto_started_timer_stops(self):
        sink = BroadcastSink(probe_interval=60.0)
        assert sink._timer.running
        sink.close()
        assert sink._timer.cancelled
        assert not sink._timer.running


class TestPeriodicTimer:
    """Test the background timer."""

    def test_runs_callback(self):
        fired = threading.Event()
        timer = PeriodicTimer(0.01, fired.set)
        timer.start()
        try:
            assert fired.wait(2.0)
        finally:
            timer.cancel()

    def test_cancel_is_idempotent(self):
        timer = PeriodicTimer(0.01, lambda: None)
        timer.start()
        assert timer.cancel() is True
        assert timer.cancel() is False

    def test_no_start_after_cancel(self):
        timer = PeriodicTimer(0.01, lambda: None)
        timer.cancel()
        timer.start()
        assert not timer.running

    def test_failing_callback_keeps_ticking(self):
        calls = []

        def flaky():
            calls.append(time.monotonic())
            raise RuntimeError("boom")

        timer = PeriodicTimer(0.01, flaky)
        timer.start()
        deadline = time.monotonic() + 2.0
        while len(calls) < 3 and time.monotonic() < deadline:
            time.sleep(0.01)
        timer.cancel()
        assert len(calls) >= 3

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            PeriodicTimer(0, lambda: None)


class TestConcurrentMembership:
    """Test the subscriber set under concurrent joins, leaves and probe rounds."""

    def run_threads(self, targets):
        errors = []

        def guarded(target):
            try:
                target()
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=guarded, args=(target,)) for target in targets]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10.0)
        return errors

    def test_joins_and_leaves_during_probe_rounds(self, sink):
        joiner_count, per_joiner = 4, 10
        connections = {}
        attached = []
        stop = threading.Event()

        def prober():
            while not stop.is_set():
                sink.run_probe_round()

        def traffic():
            while not stop.is_set():
                sink.broadcast("record")
                for subscriber in sink.subscribers()[:2]:
                    sink.relay(subscriber, "relay")

        def joiner():
            for _ in range(per_joiner):
                connection = FakeConnection()
                subscriber = sink.attach(connection)
                connections[subscriber.id] = connection
                attached.append(subscriber)

        background = [threading.Thread(target=prober), threading.Thread(target=traffic)]
        for thread in background:
            thread.start()
        try:
            errors = self.run_threads([joiner] * joiner_count)
        finally:
            stop.set()
            for thread in background:
                thread.join(timeout=10.0)

        total = joiner_count * per_joiner
        assert errors == []
        assert sink.subscriber_count() == total
        assert sink.get_broadcast_stats().subscribers_evicted == 0

        # ids are assigned in join order; each peer hears about every later join once
        for subscriber_id, connection in connections.items():
            later_joins = total - int(subscriber_id)
            assert connection.sent.count(JOIN_NOTICE) == later_joins

        leaving = attached[::2]
        stop.clear()
        prober_thread = threading.Thread(target=prober)
        prober_thread.start()
        try:
            errors = self.run_threads(
                [lambda chunk=leaving[i::4]: [sink.detach(s) for s in chunk] for i in range(4)]
            )
        finally:
            stop.set()
            prober_thread.join(timeout=10.0)

        assert errors == []
        stats = sink.get_broadcast_stats()
        assert stats.subscribers_left == len(leaving)
        assert sink.subscriber_count() == total - stats.subscribers_left - stats.subscribers_evicted
        assert sink.subscriber_count() == total - len(leaving)
        remaining = {s.id for s in sink.subscribers()}
        assert remaining == {s.id for s in attached[1::2]}
