# tests/test_decision_loop.py
"""
Tests for agent.decision_loop.DecisionLoop.

Covers:
- reflex priority (flee > eat > oracle), oracle never called on reflex ticks
- default action without an oracle
- oracle failure falls back to wait
- execution errors never escape tick()
- overlapping ticks are dropped, not queued
- telemetry
"""

from __future__ import annotations

import threading
from typing import List

from agent.decision_loop import DecisionLoop, TickOutcome
from contracts.types import Action
from fakes.fake_runtime import FakeBody, ScriptedOracle, wait_until
from monitoring.bus import EventBus
from monitoring.events import EventType, MonitoringEvent


def test_critical_health_flees_without_oracle_regardless_of_food() -> None:
    body = FakeBody(health=5, food=2)
    oracle = ScriptedOracle()
    loop = DecisionLoop(body, oracle)

    assert loop.tick() is TickOutcome.FLEE
    assert [a.type for a in body.executed] == ["flee"]
    assert oracle.calls == []


def test_low_food_eats_without_oracle() -> None:
    body = FakeBody(health=8, food=13)
    oracle = ScriptedOracle()
    loop = DecisionLoop(body, oracle)

    assert loop.tick() is TickOutcome.EAT
    assert [a.type for a in body.executed] == ["eat"]
    assert oracle.calls == []


def test_nominal_tick_asks_oracle_and_executes_its_action() -> None:
    body = FakeBody(health=20, food=14)
    oracle = ScriptedOracle(Action.craft("planks", 4))
    loop = DecisionLoop(body, oracle)

    assert loop.tick() is TickOutcome.DECIDED
    assert len(oracle.calls) == 1
    assert oracle.calls[0].food == 14
    assert body.executed == [Action.craft("planks", 4)]
    assert loop.last_action == Action.craft("planks", 4)


def test_no_oracle_explores_north() -> None:
    body = FakeBody()
    loop = DecisionLoop(body, None)

    loop.tick()
    assert body.executed == [Action.explore("north")]


def test_oracle_exception_falls_back_to_wait() -> None:
    body = FakeBody()
    bus = EventBus()
    events: List[MonitoringEvent] = []
    bus.subscribe(events.append)

    loop = DecisionLoop(body, ScriptedOracle(error=RuntimeError("rate limited")), monitor=bus)

    assert loop.tick() is TickOutcome.DECIDED
    assert body.executed == [Action.wait()]
    assert EventType.ORACLE_FALLBACK in [e.event_type for e in events]


def test_execution_error_is_swallowed_and_flag_reset() -> None:
    body = FakeBody()
    body.raise_on_execute = RuntimeError("pathfinder exploded")
    loop = DecisionLoop(body, ScriptedOracle())

    assert loop.tick() is TickOutcome.FAILED
    assert loop.thinking is False

    body.raise_on_execute = None
    assert loop.tick() is TickOutcome.DECIDED
    assert loop.ticks_executed == 2


def test_tick_while_thinking_is_dropped() -> None:
    body = FakeBody()
    body.gate = threading.Event()
    loop = DecisionLoop(body, ScriptedOracle())

    worker = threading.Thread(target=loop.tick)
    worker.start()
    assert body.entered.wait(2.0)
    assert loop.thinking is True

    # Overlapping ticks produce zero extra executions.
    assert loop.tick() is TickOutcome.SKIPPED
    assert loop.tick() is TickOutcome.SKIPPED
    assert len(body.executed) == 1

    body.gate.set()
    worker.join(2.0)

    assert loop.ticks_skipped == 2
    assert loop.ticks_executed == 1
    assert loop.thinking is False


def test_decision_event_published() -> None:
    body = FakeBody(health=4)
    bus = EventBus()
    events: List[MonitoringEvent] = []
    bus.subscribe(events.append)

    DecisionLoop(body, None, monitor=bus, agent_name="Bob").tick()

    decided = [e for e in events if e.event_type is EventType.DECISION_MADE]
    assert len(decided) == 1
    assert decided[0].payload["source"] == "reflex"
    assert decided[0].payload["action"] == {"action": "flee"}
    assert decided[0].correlation_id == "Bob"


def test_start_runs_ticks_until_stop() -> None:
    body = FakeBody()
    loop = DecisionLoop(body, None, interval_s=0.02)

    loop.start()
    try:
        assert wait_until(lambda: len(body.executed) >= 2)
    finally:
        loop.stop()
    assert not loop.running
