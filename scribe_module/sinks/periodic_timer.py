"""Cancellable periodic background timer"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTimer:
    """
    Run a callback every ``interval`` seconds on a daemon thread.

    cancel() is idempotent: only the first call stops the timer, later calls
    return False.
    """

    def __init__(self, interval: float, callback: Callable[[], None], name: str = "periodic-timer"):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.callback = callback
        self.name = name
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._cancelled = False

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> None:
        """Start ticking. Does nothing if already started or cancelled."""
        with self._lock:
            if self._thread is not None or self._cancelled:
                return
            self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
            self._thread.start()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.callback()
            except Exception:
                logger.exception("Periodic callback %s failed", self.name)

    def cancel(self) -> bool:
        """
        Stop the timer.

        Returns:
            True if this call cancelled the timer, False if it was already
            cancelled
        """
        with self._lock:
            if self._cancelled:
                return False
            self._cancelled = True
            self._stop.set()
            thread = self._thread

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=5.0)
        return True
