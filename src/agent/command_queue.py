# src/agent/command_queue.py
"""
Server command queue and its rate-limited dispatcher.

Commands are opaque strings (usually slash-commands such as
"/setblock 0 64 0 minecraft:stone") that are sent to the server as chat
lines. They are released one at a time, never faster than the cooldown,
so bursts of building commands do not trip server spam protection.

- enqueue() never fails and works before connect().
- Order is FIFO; each command is sent exactly once.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from threading import Lock
from typing import Callable, Deque, List, Optional

from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event
from .periodic import PeriodicTask


log = logging.getLogger(__name__)

SendFn = Callable[[str], None]

DEFAULT_COOLDOWN_S = 0.5
DEFAULT_TICK_INTERVAL_S = 0.6


class CommandQueue:
    """Unbounded, thread-safe FIFO of command strings."""

    def __init__(self) -> None:
        self._items: Deque[str] = deque()
        self._lock = Lock()

    def enqueue(self, command: str) -> None:
        with self._lock:
            self._items.append(command)

    def pop(self) -> Optional[str]:
        """Remove and return the oldest command, or None when empty."""
        with self._lock:
            if not self._items:
                return None
            return self._items.popleft()

    def push_front(self, command: str) -> None:
        """Put a command back at the head (used when a send fails)."""
        with self._lock:
            self._items.appendleft(command)

    def pending(self) -> List[str]:
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class CommandDispatcher:
    """
    Release at most one queued command per tick, subject to a cooldown.

    tick() is the whole policy; start()/stop() only drive it from a
    PeriodicTask. Tests call tick() directly with an injected clock.
    """

    def __init__(
        self,
        queue: CommandQueue,
        send: SendFn,
        *,
        cooldown_s: float = DEFAULT_COOLDOWN_S,
        interval_s: float = DEFAULT_TICK_INTERVAL_S,
        clock: Callable[[], float] = time.monotonic,
        monitor: Optional[EventBus] = None,
        agent_name: Optional[str] = None,
    ) -> None:
        self._queue = queue
        self._send = send
        self._cooldown = cooldown_s
        self._interval = interval_s
        self._clock = clock
        self._monitor = monitor
        self._agent_name = agent_name
        self._last_sent_at: Optional[float] = None
        self._lock = Lock()
        self._task: Optional[PeriodicTask] = None

    @property
    def running(self) -> bool:
        return self._task is not None and self._task.running

    def tick(self) -> Optional[str]:
        """
        Send the head of the queue if the cooldown has elapsed.

        Returns the command that was sent, or None. On a send failure the
        command goes back to the head of the queue and the error propagates.
        """
        with self._lock:
            now = self._clock()
            if self._last_sent_at is not None and now - self._last_sent_at < self._cooldown:
                return None

            command = self._queue.pop()
            if command is None:
                return None

            try:
                self._send(command)
            except Exception:
                self._queue.push_front(command)
                raise
            self._last_sent_at = now

        log.debug("[%s] dispatched command %r", self._agent_name, command)
        log_event(
            bus=self._monitor,
            module="agent.command_queue",
            event_type=EventType.COMMAND_DISPATCHED,
            message="Command dispatched",
            payload={"command": command, "remaining": len(self._queue)},
            correlation_id=self._agent_name,
        )
        return command

    def start(self) -> None:
        if self.running:
            return
        name = f"CommandDispatcher[{self._agent_name}]" if self._agent_name else "CommandDispatcher"
        self._task = PeriodicTask(self.tick, self._interval, name=name)
        self._task.start()

    def stop(self) -> None:
        if self._task is not None:
            self._task.stop()
            self._task = None
