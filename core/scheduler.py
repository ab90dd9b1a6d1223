"""
Fixed-interval background task with a cancellation token.

Each PeriodicTask runs its callback on a dedicated daemon thread. A tick
always runs to completion before the next one is scheduled, so ticks of
the same task never overlap. Cancellation is checked before every tick.
"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Runs ``callback`` every ``interval`` seconds until stopped.

    Exceptions raised by the callback are logged and the task keeps going;
    a single bad tick never stops future ticks.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        callback: Callable[[], None],
    ):
        """
        Initialize the task (does not start it).

        Args:
            name: Thread name, used in logs.
            interval: Seconds between the end of one tick and the start of the next.
            callback: Work performed on each tick.
        """
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.name = name
        self.interval = interval
        self._callback = callback
        self._stop_event = threading.Event()
        self._wake_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self.tick_count = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        """
        Start ticking. Returns False if already running.
        """
        with self._lock:
            if self.is_running:
                return False
            self._stop_event = threading.Event()
            self._wake_event.clear()
            self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
            self._thread.start()
        logger.debug(f"{self.name} started (every {self.interval}s)")
        return True

    def stop(self, timeout: float = 2.0) -> None:
        """
        Cancel the task and wait for an in-flight tick to finish.
        """
        with self._lock:
            thread = self._thread
            self._stop_event.set()
            self._wake_event.set()
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning(f"{self.name} did not stop within timeout")
        with self._lock:
            if self._thread is thread:
                self._thread = None
        logger.debug(f"{self.name} stopped")

    def wake(self) -> None:
        """Run the next tick now instead of waiting for the interval."""
        self._wake_event.set()

    def _wait(self, seconds: float, stop_event: threading.Event) -> None:
        if seconds > 0 and not stop_event.is_set():
            self._wake_event.wait(seconds)
        self._wake_event.clear()

    def _run(self) -> None:
        stop_event = self._stop_event
        while not stop_event.is_set():
            try:
                self._callback()
            except Exception as e:
                logger.error(f"{self.name} tick failed: {e}", exc_info=True)
            self.tick_count += 1
            self._wait(self.interval, stop_event)
