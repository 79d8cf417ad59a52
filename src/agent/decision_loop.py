# src/agent/decision_loop.py
"""
Periodic decide-act loop.

Each tick:
  1. If the previous tick is still running, skip (never queue).
  2. health < critical_health  -> flee
  3. food   < low_food         -> eat
  4. otherwise snapshot -> oracle -> execute

Reflexes are hard-coded and never consult the oracle. Without an oracle
the loop explores north. Oracle and execution failures are logged at
debug level and never stop the loop.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from threading import Lock
from typing import Optional

from contracts.bot_core import BotCore, DecisionOracle
from contracts.types import Action
from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event
from .periodic import PeriodicTask


log = logging.getLogger(__name__)

DEFAULT_LOOP_INTERVAL_S = 2.0
CRITICAL_HEALTH = 8
LOW_FOOD = 14


def default_action() -> Action:
    """Action used when no oracle is configured."""
    return Action.explore("north")


class TickOutcome(str, Enum):
    SKIPPED = "skipped"
    FLEE = "flee"
    EAT = "eat"
    DECIDED = "decided"
    FAILED = "failed"


class DecisionLoop:
    """
    Drive one agent body from a DecisionOracle.

    tick() is safe to call from any thread; at most one tick body runs at
    a time. start() fires tick() every `interval_s` on a fresh worker
    thread, so a slow oracle call makes later firings skip instead of
    stalling the timer.
    """

    def __init__(
        self,
        body: BotCore,
        oracle: Optional[DecisionOracle] = None,
        *,
        interval_s: float = DEFAULT_LOOP_INTERVAL_S,
        critical_health: float = CRITICAL_HEALTH,
        low_food: float = LOW_FOOD,
        monitor: Optional[EventBus] = None,
        agent_name: Optional[str] = None,
    ) -> None:
        self._body = body
        self._oracle = oracle
        self._interval = interval_s
        self._critical_health = critical_health
        self._low_food = low_food
        self._monitor = monitor
        self._agent_name = agent_name

        self._lock = Lock()
        self._thinking = False
        self._task: Optional[PeriodicTask] = None

        self.ticks_executed = 0
        self.ticks_skipped = 0
        self.last_action: Optional[Action] = None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def thinking(self) -> bool:
        with self._lock:
            return self._thinking

    @property
    def running(self) -> bool:
        return self._task is not None and self._task.running

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self) -> TickOutcome:
        with self._lock:
            if self._thinking:
                self.ticks_skipped += 1
                skipped = True
            else:
                self._thinking = True
                skipped = False

        if skipped:
            log_event(
                bus=self._monitor,
                module="agent.decision_loop",
                event_type=EventType.TICK_SKIPPED,
                message="Previous decision still running",
                correlation_id=self._agent_name,
            )
            return TickOutcome.SKIPPED

        try:
            return self._tick_body()
        except Exception as exc:
            log.debug("[%s] decision tick failed: %r", self._agent_name, exc, exc_info=True)
            return TickOutcome.FAILED
        finally:
            with self._lock:
                self._thinking = False
                self.ticks_executed += 1

    def _tick_body(self) -> TickOutcome:
        health, food = self._body.vitals()

        if health < self._critical_health:
            self._act(Action.flee(), "reflex", health=health, food=food)
            return TickOutcome.FLEE

        if food < self._low_food:
            self._act(Action.eat(), "reflex", health=health, food=food)
            return TickOutcome.EAT

        snapshot = self._body.get_state_snapshot()
        if self._oracle is None:
            action = default_action()
            source = "default"
        else:
            action = self._consult_oracle(snapshot)
            source = "oracle"

        self._act(action, source, health=health, food=food)
        return TickOutcome.DECIDED

    def _consult_oracle(self, snapshot) -> Action:
        assert self._oracle is not None
        try:
            return self._oracle.decide(snapshot)
        except Exception as exc:
            log.debug("[%s] oracle failed: %r", self._agent_name, exc)
            log_event(
                bus=self._monitor,
                module="agent.decision_loop",
                event_type=EventType.ORACLE_FALLBACK,
                message="Oracle failed; waiting",
                payload={"error": repr(exc)},
                correlation_id=self._agent_name,
            )
            return Action.wait()

    def _act(self, action: Action, source: str, **vitals: float) -> None:
        self.last_action = action
        log.debug("[%s] %s action: %s %r", self._agent_name, source, action.type, action.params)
        log_event(
            bus=self._monitor,
            module="agent.decision_loop",
            event_type=EventType.DECISION_MADE,
            message=f"{source} chose {action.type}",
            payload={"source": source, "action": action.to_dict(), **vitals},
            correlation_id=self._agent_name,
        )

        result = self._body.execute_action(action)
        if not result.success:
            log.debug("[%s] action %s failed: %s", self._agent_name, action.type, result.error)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _fire(self) -> None:
        t = threading.Thread(
            target=self.tick,
            name=f"DecisionTick[{self._agent_name}]",
        )
        t.daemon = True
        t.start()

    def start(self) -> None:
        if self.running:
            return
        name = f"DecisionLoop[{self._agent_name}]" if self._agent_name else "DecisionLoop"
        self._task = PeriodicTask(self._fire, self._interval, name=name)
        self._task.start()

    def stop(self) -> None:
        """Stop scheduling new ticks. An in-flight tick runs to completion."""
        if self._task is not None:
            self._task.stop()
            self._task = None
