# src/bot_core/core.py
"""
Concrete BotCore implementation.

This module wires together:
- WorldConnection (bridge transport)
- WorldTracker (incremental raw world state)
- ActionExecutor (Action -> bridge calls)
- ActionTracer (logging for actions)

Public surface (for the agent runtime):
    class BotCoreImpl(BotCore):
        observe() -> RawWorldSnapshot
        vitals() -> (health, food)
        get_state_snapshot() -> StateSnapshot
        execute_action(Action) -> ActionResult

Design constraints:
- No message or transport details leak to callers.
- All action-related failures return ActionResult with explicit error codes.
- Connection lifecycle (login, spawn, end) is owned by the agent runtime,
  not by this class.
"""

from __future__ import annotations

import logging
import random
from time import perf_counter
from typing import Optional, Tuple

from contracts.bot_core import BotCore
from contracts.types import Action, ActionResult, StateSnapshot
from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event
from .actions import ActionExecutor, ActionExecutorConfig, ChatFn
from .net import WorldConnection
from .snapshot import RawWorldSnapshot, to_state_snapshot
from .tracing import ActionTracer
from .world_tracker import WorldTracker


log = logging.getLogger(__name__)


class BotCoreImpl(BotCore):
    """
    Agent body over a WorldConnection.

    Orchestrates:
        - WorldTracker (RawWorldSnapshot)
        - ActionExecutor (actions)
        - ActionTracer (traces)
    """

    def __init__(
        self,
        client: WorldConnection,
        *,
        chat_fn: Optional[ChatFn] = None,
        action_config: Optional[ActionExecutorConfig] = None,
        tracer: Optional[ActionTracer] = None,
        rng: Optional[random.Random] = None,
        monitor: Optional[EventBus] = None,
        agent_name: Optional[str] = None,
    ) -> None:
        self._client = client
        self._monitor = monitor
        self._agent_name = agent_name
        self._tracker = WorldTracker(client)
        self._executor = ActionExecutor(
            client,
            self._tracker.build_snapshot,
            chat_fn=chat_fn,
            config=action_config,
            rng=rng,
        )
        self._tracer: ActionTracer = tracer or ActionTracer()

    @property
    def client(self) -> WorldConnection:
        return self._client

    @property
    def tracker(self) -> WorldTracker:
        return self._tracker

    @property
    def executor(self) -> ActionExecutor:
        return self._executor

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def observe(self) -> RawWorldSnapshot:
        """Return a raw snapshot of the tracked world state."""
        return self._tracker.build_snapshot()

    def vitals(self) -> Tuple[float, float]:
        return self._tracker.vitals()

    def get_state_snapshot(self) -> StateSnapshot:
        return to_state_snapshot(self._tracker.build_snapshot())

    # ------------------------------------------------------------------
    # Action execution
    # ------------------------------------------------------------------

    def execute_action(self, action: Action) -> ActionResult:
        """
        Execute a single Action and record a trace for it.

        The executor already converts failures into ActionResult; tracing
        problems are logged and never reach the caller.
        """
        raw = self._tracker.build_snapshot()

        start = perf_counter()
        result = self._executor.execute(action)
        duration = perf_counter() - start

        try:
            self._tracer.record(action=action, snapshot=raw, result=result, duration_s=duration)
        except Exception:
            log.exception("Action tracing failed")

        log_event(
            bus=self._monitor,
            module="bot_core.core",
            event_type=EventType.ACTION_EXECUTED,
            message=f"{action.type} {'ok' if result.success else result.error}",
            payload={
                "action": action.to_dict(),
                "success": result.success,
                "error": result.error,
                "duration_s": round(duration, 4),
            },
            correlation_id=self._agent_name,
        )
        return result

    def get_action_traces(self) -> list:
        """Return recorded action traces (ActionTraceRecord)."""
        return self._tracer.get_records()
