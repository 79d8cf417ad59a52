# JSON logger subscribing to EventBus
"""
Structured telemetry logging.

Provides:
- JsonFileLogger: subscribes to an EventBus and writes MonitoringEvents as JSONL.
- log_event: convenience helper for publishing MonitoringEvents via the EventBus.

Usage:

    from pathlib import Path
    from monitoring.bus import EventBus
    from monitoring.logger import JsonFileLogger

    bus = EventBus()
    sink = JsonFileLogger(Path("logs/agents/events.log"), bus)
    agent = ClawCraftAgent(config, monitor=bus)
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Optional

from .bus import EventBus
from .events import EventType, MonitoringEvent


log = logging.getLogger(__name__)


# ============================================================
# JSONL File Logger
# ============================================================

class JsonFileLogger:
    """
    JSON-lines logger for MonitoringEvent instances.

    - Subscribes to an EventBus and writes one JSON object per line.
    - Ensures UTF-8 encoding.
    - Ensures parent directory exists.
    - Writes are serialized; events arrive from several agent threads.
    """

    def __init__(self, path: Path, bus: EventBus) -> None:
        self._path = path
        self._bus = bus
        path.parent.mkdir(parents=True, exist_ok=True)
        self._file = path.open("a", encoding="utf-8")
        self._lock = Lock()
        bus.subscribe(self._on_event)

    @property
    def path(self) -> Path:
        return self._path

    def _on_event(self, event: MonitoringEvent) -> None:
        line = json.dumps(event.to_dict(), ensure_ascii=False, default=str)
        with self._lock:
            if self._file.closed:
                return
            try:
                self._file.write(line + "\n")
                self._file.flush()
            except OSError:
                log.warning("Dropping monitoring event; write to %s failed", self._path)

    def close(self) -> None:
        """Unsubscribe and close the underlying file handle."""
        self._bus.unsubscribe(self._on_event)
        with self._lock:
            self._file.close()


# ============================================================
# Convenience helper for emitting events
# ============================================================

def log_event(
    bus: Optional[EventBus],
    module: str,
    event_type: EventType,
    message: str,
    payload: Optional[Dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> None:
    """
    Create and publish a MonitoringEvent.

    A None bus is accepted and ignored so callers can hold an optional
    monitor without branching at every call site.

        log_event(
            bus=self._monitor,
            module="agent.decision_loop",
            event_type=EventType.DECISION_MADE,
            message="Oracle chose mine",
            payload={"action": action.to_dict()},
            correlation_id=agent_name,
        )
    """
    if bus is None:
        return
    event = MonitoringEvent(
        ts=time.time(),
        module=module,
        event_type=event_type,
        message=message,
        payload=payload or {},
        correlation_id=correlation_id,
    )
    bus.publish(event)
