# src/bot_core/tracing.py
"""
Tracing for bot_core.

A thin, structured logging layer around action execution so that
monitoring and debugging tools can consume consistent traces.

It does NOT:
- Call LLMs
- Make control decisions
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, List, Optional

from contracts.types import Action, ActionResult
from .snapshot import RawWorldSnapshot


@dataclass
class ActionTraceRecord:
    """Structured record of a single action execution."""

    timestamp: float           # wall-clock time (time.time())
    duration_s: float          # execution duration in seconds

    action_type: Optional[str]
    params: dict[str, Any]

    success: bool
    error: Optional[str]

    # Minimal world context at decision time
    health: float
    food: float
    position: dict[str, float]


class ActionTracer:
    """
    In-memory action tracer with logging.

    Responsibilities:
    - Keep a rolling buffer of recent ActionTraceRecord entries.
    - Emit a single structured log line per action (info level).
    """

    def __init__(
        self,
        *,
        logger: Optional[logging.Logger] = None,
        max_records: int = 1_000,
    ) -> None:
        self._logger = logger or logging.getLogger("bot_core.action")
        self._records: Deque[ActionTraceRecord] = deque(maxlen=max_records)

    def record(
        self,
        *,
        action: Action,
        snapshot: RawWorldSnapshot,
        result: ActionResult,
        duration_s: float,
    ) -> ActionTraceRecord:
        """Record a trace for a completed action, successful or not."""
        record = ActionTraceRecord(
            timestamp=time.time(),
            duration_s=duration_s,
            action_type=getattr(action, "type", None),
            params=dict(getattr(action, "params", {}) or {}),
            success=bool(result.success),
            error=result.error,
            health=snapshot.health,
            food=snapshot.food,
            position={
                "x": float(snapshot.player_pos.get("x", 0.0)),
                "y": float(snapshot.player_pos.get("y", 0.0)),
                "z": float(snapshot.player_pos.get("z", 0.0)),
            },
        )
        self._records.append(record)

        self._logger.info(
            "action_exec type=%s success=%s error=%s duration=%.4fs "
            "hp=%.1f food=%.1f pos=(%.1f,%.1f,%.1f)",
            record.action_type,
            record.success,
            record.error,
            record.duration_s,
            record.health,
            record.food,
            record.position["x"],
            record.position["y"],
            record.position["z"],
        )
        return record

    def get_records(self) -> List[ActionTraceRecord]:
        """Return a snapshot of all currently buffered records."""
        return list(self._records)
