# src/agent/events.py
"""
Typed event surface exposed by ClawCraftAgent.

Handler signatures per event:

    SPAWN   handler()
    CHAT    handler(username: str, message: str)
    HEALTH  handler(health: float, food: float)
    DEATH   handler()
    KICKED  handler(reason: str)
    END     handler(reason: str)
    ERROR   handler(error: Exception)

Handlers run on the connection's reader thread. They must not block on
world requests (goto, mine, ...) directly; hand that work to another
thread instead.
"""

from __future__ import annotations

import logging
from enum import Enum
from threading import Lock
from typing import Any, Callable, Dict, List, Tuple, Union


log = logging.getLogger(__name__)

Handler = Callable[..., None]


class AgentEvent(str, Enum):
    SPAWN = "spawn"
    CHAT = "chat"
    HEALTH = "health"
    DEATH = "death"
    KICKED = "kicked"
    END = "end"
    ERROR = "error"


class AgentEvents:
    """Small synchronous pub/sub keyed by AgentEvent."""

    def __init__(self) -> None:
        # (handler, once)
        self._handlers: Dict[AgentEvent, List[Tuple[Handler, bool]]] = {}
        self._lock = Lock()

    def on(self, event: Union[AgentEvent, str], handler: Handler) -> Handler:
        """Register `handler`; returns it so on() can be used as a decorator helper."""
        self._add(AgentEvent(event), handler, once=False)
        return handler

    def once(self, event: Union[AgentEvent, str], handler: Handler) -> Handler:
        self._add(AgentEvent(event), handler, once=True)
        return handler

    def off(self, event: Union[AgentEvent, str], handler: Handler) -> None:
        key = AgentEvent(event)
        with self._lock:
            entries = self._handlers.get(key, [])
            self._handlers[key] = [e for e in entries if e[0] is not handler]

    def _add(self, event: AgentEvent, handler: Handler, once: bool) -> None:
        with self._lock:
            self._handlers.setdefault(event, []).append((handler, once))

    def emit(self, event: Union[AgentEvent, str], *args: Any) -> int:
        """
        Call every handler for `event` in registration order.

        Returns the number of handlers called. A failing handler is logged
        and the rest still run.
        """
        key = AgentEvent(event)
        with self._lock:
            entries = list(self._handlers.get(key, []))
            if any(once for _, once in entries):
                self._handlers[key] = [e for e in entries if not e[1]]

        for handler, _ in entries:
            try:
                handler(*args)
            except Exception:
                log.exception("Handler %r for %s event failed", handler, key.value)
        return len(entries)

    def handler_count(self, event: Union[AgentEvent, str]) -> int:
        with self._lock:
            return len(self._handlers.get(AgentEvent(event), []))
