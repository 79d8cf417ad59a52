# EventBus for monitoring events
"""
Event bus for agent telemetry.

Provides a minimal, thread-safe, in-process pub/sub mechanism:

- Subscribers receive MonitoringEvent objects.
- Used by:
    - ClawCraftAgent (lifecycle, dispatcher, decision loop)
    - File-based logger
    - Scripts that want a live view of several agents
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Callable, List

from .events import MonitoringEvent


log = logging.getLogger(__name__)

SubscriberFn = Callable[[MonitoringEvent], None]


class EventBus:
    """
    Simple in-process event bus for monitoring events.

    - Thread-safe: subscriber list protected by a Lock.
    - Each publish iterates over a snapshot of subscribers, so subscribers
      may call back into the bus.
    - A failing subscriber is logged and does not stop delivery to others.
    """

    def __init__(self) -> None:
        self._subscribers: List[SubscriberFn] = []
        self._lock = Lock()

    def subscribe(self, fn: SubscriberFn) -> None:
        """Register a subscriber to receive MonitoringEvent instances."""
        with self._lock:
            self._subscribers.append(fn)

    def unsubscribe(self, fn: SubscriberFn) -> None:
        """
        Remove a previously registered subscriber.

        Safe to call even if `fn` is not present.
        """
        with self._lock:
            if fn in self._subscribers:
                self._subscribers.remove(fn)

    def publish(self, event: MonitoringEvent) -> None:
        """Publish a MonitoringEvent to all subscribers."""
        with self._lock:
            subscribers = list(self._subscribers)

        for fn in subscribers:
            try:
                fn(event)
            except Exception:
                log.exception("Monitoring subscriber %r failed", fn)

    def clear(self) -> None:
        """Drop all subscribers. Mostly useful for tests."""
        with self._lock:
            self._subscribers.clear()
