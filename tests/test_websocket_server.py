"""Integration tests for the websocket broadcast host"""

import time

import pytest
from websockets.exceptions import ConnectionClosed
from websockets.sync.client import connect

from scribe_module.sinks import BroadcastSink, WebSocketBroadcastServer
from scribe_module.sinks.broadcast_sink import JOIN_NOTICE


def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def server():
    sink = BroadcastSink(auto_start=False)
    server = WebSocketBroadcastServer(sink, port=0).start()
    yield server
    server.close()


class TestWebSocketBroadcastServer:
    """Test the server against real websocket clients."""

    def test_bound_port_and_url(self, server):
        assert server.bound_port > 0
        assert server.url == f"ws://127.0.0.1:{server.bound_port}"

    def test_join_relay_and_broadcast(self, server):
        sink = server.sink
        with connect(server.url, open_timeout=2) as first:
            assert wait_for(lambda: sink.subscriber_count() == 1)

            with connect(server.url, open_timeout=2) as second:
                assert first.recv(timeout=2) == JOIN_NOTICE

                second.send("hello from second")
                assert first.recv(timeout=2) == "hello from second"

                assert sink.broadcast("record") == 2
                assert first.recv(timeout=2) == "record"
                assert second.recv(timeout=2) == "record"

            assert wait_for(lambda: sink.subscriber_count() == 1)

    def test_client_answers_probes(self, server):
        sink = server.sink
        with connect(server.url, open_timeout=2):
            assert wait_for(lambda: sink.subscriber_count() == 1)

            sink.run_probe_round()
            subscriber = sink.subscribers()[0]
            assert wait_for(lambda: subscriber._pending_pong.is_set())
            sink.run_probe_round()

            assert sink.subscriber_count() == 1

    def test_close_disconnects_clients(self, server):
        with connect(server.url, open_timeout=2) as client:
            assert wait_for(lambda: server.sink.subscriber_count() == 1)

            server.close()
            server.close()

            with pytest.raises(ConnectionClosed):
                client.recv(timeout=2)

        assert server.sink.closed
        assert server.sink.subscriber_count() == 0

    def test_start_after_close_fails(self, server):
        server.close()
        with pytest.raises(RuntimeError):
            server.start()
