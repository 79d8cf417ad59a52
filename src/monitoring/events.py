# path: src/monitoring/events.py
"""
Event schemas for agent telemetry.

This module defines:
- EventType enum
- MonitoringEvent (structured runtime events)

All events are JSON-serializable via `.to_dict()` and are intended
for use with monitoring.bus.EventBus and monitoring.logger.JsonFileLogger.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from enum import Enum, auto
from typing import Any, Dict, Optional


# ============================================================
# Event Types
# ============================================================

class EventType(Enum):
    """Typed monitoring events emitted by the agent runtime."""

    # Lifecycle transitions (disconnected -> connecting -> active ...)
    AGENT_STATE_CHANGE = auto()

    # A queued command left the command queue
    COMMAND_DISPATCHED = auto()

    # Decision loop chose an action (reflex or oracle)
    DECISION_MADE = auto()

    # A decision tick fired while the previous one was still running
    TICK_SKIPPED = auto()

    # Low-level action execution (BotCore)
    ACTION_EXECUTED = auto()

    # Oracle failed and the loop fell back to "wait"
    ORACLE_FALLBACK = auto()

    # Generic log messages
    LOG = auto()


# ============================================================
# Monitoring Event Structure
# ============================================================

@dataclass
class MonitoringEvent:
    """
    Runtime event emitted by the agent, decision loop, dispatcher or oracle.

    All fields must be JSON-safe.
    """

    ts: float                   # UNIX timestamp (seconds)
    module: str                 # Source module string ("agent.decision_loop", ...)
    event_type: EventType
    message: str                # Short human-readable description
    payload: Dict[str, Any]
    correlation_id: Optional[str] = None  # Agent name, for multi-agent processes

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-safe dict for loggers."""
        data = asdict(self)
        data["event_type"] = self.event_type.name
        return data
