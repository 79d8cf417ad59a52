# src/agent/chat_gate.py
"""
Rate-limited outgoing chat.

One message per cooldown window; messages longer than `max_length` are
truncated. A rejected call performs no I/O and leaves the window where it
was, so a caller retrying in a tight loop cannot push it forward.
"""

from __future__ import annotations

import logging
import time
from threading import Lock
from typing import Callable, Optional


log = logging.getLogger(__name__)

DEFAULT_CHAT_COOLDOWN_S = 5.0
DEFAULT_MAX_CHAT_LENGTH = 100


class ChatGate:
    def __init__(
        self,
        send: Callable[[str], None],
        *,
        cooldown_s: float = DEFAULT_CHAT_COOLDOWN_S,
        max_length: int = DEFAULT_MAX_CHAT_LENGTH,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._send = send
        self._cooldown = cooldown_s
        self._max_length = max_length
        self._clock = clock
        self._last_sent_at: Optional[float] = None
        self._lock = Lock()

    def ready(self) -> bool:
        """True when a chat() call right now would be accepted."""
        with self._lock:
            return self._ready(self._clock())

    def _ready(self, now: float) -> bool:
        return self._last_sent_at is None or now - self._last_sent_at >= self._cooldown

    def chat(self, message: str) -> bool:
        """Send `message` if the cooldown allows it. Returns whether it was sent."""
        with self._lock:
            now = self._clock()
            if not self._ready(now):
                log.debug("Chat rejected by cooldown: %r", message[:30])
                return False
            self._send(message[: self._max_length])
            self._last_sent_at = now
        return True
