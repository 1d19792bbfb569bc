"""
Transport - a pipeline bound to a sink

The pipeline runs in the caller's thread. Accepted records are handed to a
per-transport worker thread in async mode so a slow sink never holds up the
other sinks of the same logger.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from typing import Optional

from scribe_module.core.log_record import Record
from scribe_module.formatters.pipeline import FormatPipeline, RenderedRecord
from scribe_module.sinks.base_sink import BaseSink

logger = logging.getLogger(__name__)

_STOP = object()


class Transport:
    """
    Deliver records from one pipeline to one sink.

    A full queue drops the record and counts it; dispatch never blocks the
    caller.
    """

    def __init__(
        self,
        name: str,
        pipeline: FormatPipeline,
        sink: BaseSink,
        owns_sink: bool = True,
        async_mode: bool = True,
        queue_size: int = 10000,
        close_timeout: float = 5.0,
    ):
        """
        Initialize transport.

        Args:
            name: Transport name
            pipeline: Filter, enrich and render stages
            sink: Destination sink
            owns_sink: Close the sink when the transport closes
            async_mode: Deliver on a dedicated worker thread
            queue_size: Worker queue capacity
            close_timeout: Seconds close() waits for the worker to drain
        """
        self.name = name
        self.pipeline = pipeline
        self.sink = sink
        self.owns_sink = owns_sink
        self.async_mode = async_mode
        self.close_timeout = close_timeout

        self._metrics = {"accepted": 0, "rejected": 0, "dropped": 0, "delivered": 0}
        self._metrics_lock = threading.Lock()
        self._closed = False
        self._close_lock = threading.Lock()
        self._queue: Optional[queue.Queue] = None
        self._worker: Optional[threading.Thread] = None

        if async_mode:
            self._queue = queue.Queue(maxsize=queue_size)
            self._worker = threading.Thread(
                target=self._process_queue,
                name=f"{name}-worker",
                daemon=True,
            )
            self._worker.start()

    def _count(self, key: str) -> None:
        with self._metrics_lock:
            self._metrics[key] += 1

    def _process_queue(self) -> None:
        """Deliver queued records (worker thread)."""
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._deliver(item)
                if self._closed and self._queue.empty():
                    return
            finally:
                # Always mark task as done to prevent queue.join() deadlock
                self._queue.task_done()

    def _deliver(self, rendered: RenderedRecord) -> None:
        if self.sink.closed:
            self._count("dropped")
            return
        self.sink.write(rendered)
        self._count("delivered")

    def dispatch(self, record: Record) -> bool:
        """
        Run the pipeline and hand the result to the sink.

        Returns:
            True if the record was accepted by the pipeline
        """
        if self._closed:
            return False

        rendered = self.pipeline.run(record)
        if rendered is None:
            self._count("rejected")
            return False

        if self._queue is None:
            self._count("accepted")
            self._deliver(rendered)
            return True

        # nothing may be queued behind the stop sentinel
        with self._close_lock:
            if self._closed:
                return False
            self._count("accepted")
            try:
                self._queue.put_nowait(rendered)
            except queue.Full:
                self._count("dropped")
        return True

    def flush(self, timeout: float = 1.0) -> None:
        """Wait for queued records to be delivered, then flush the sink."""
        if self._queue is not None and not self._closed:
            deadline = time.monotonic() + timeout
            while self._queue.unfinished_tasks and time.monotonic() < deadline:
                time.sleep(0.01)  # 10ms polling interval
        self.sink.flush()

    def close(self) -> None:
        """Stop the worker after draining and close the sink if owned."""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        if self._worker is not None:
            try:
                self._queue.put_nowait(_STOP)
            except queue.Full:
                pass  # worker exits once the queue drains
            self._worker.join(timeout=self.close_timeout)
            if self._worker.is_alive():
                logger.warning("Transport %s: sink still busy after %.1fs, closing anyway",
                               self.name, self.close_timeout)

        if self.owns_sink:
            self.sink.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def get_metrics(self) -> dict:
        """Get transport metrics."""
        with self._metrics_lock:
            return self._metrics.copy()

    def __repr__(self) -> str:
        return f"Transport(name={self.name!r}, sink={self.sink!r})"
