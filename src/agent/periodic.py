# src/agent/periodic.py
"""
Fixed-rate background timer.

PeriodicTask calls a function every `interval_s` seconds on a named daemon
thread. Slots are anchored to the start time, so a slow call does not shift
later slots; slots that pass while the call is still running are skipped
rather than fired back-to-back.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional


log = logging.getLogger(__name__)


class PeriodicTask:
    """Run `fn()` every `interval_s` seconds until stop() is called."""

    def __init__(
        self,
        fn: Callable[[], None],
        interval_s: float,
        *,
        name: str = "PeriodicTask",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval_s <= 0:
            raise ValueError(f"interval_s must be positive, got {interval_s}")
        self._fn = fn
        self._interval = float(interval_s)
        self._name = name
        self._clock = clock
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def interval_s(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the timer thread. Calling start() twice is a no-op."""
        if self.running:
            return
        self._stop.clear()
        t = threading.Thread(target=self._run, name=self._name)
        t.daemon = True
        self._thread = t
        t.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop the timer and wait for the thread to exit.

        Stopping from inside `fn` is allowed; the join is skipped then.
        """
        self._stop.set()
        t = self._thread
        if t is not None and t is not threading.current_thread():
            t.join(timeout)
        self._thread = None

    def _run(self) -> None:
        next_at = self._clock() + self._interval
        while not self._stop.wait(max(0.0, next_at - self._clock())):
            try:
                self._fn()
            except Exception:
                log.exception("%s: periodic call failed", self._name)

            now = self._clock()
            next_at += self._interval
            if next_at <= now:
                missed = int((now - next_at) // self._interval) + 1
                next_at += missed * self._interval
