# tests/test_agent_lifecycle.py
"""
ClawCraftAgent lifecycle against an in-memory WorldConnection.

Covers:
- login payload and name normalization
- spawn setup (movement config, builder gamemode, manual type has no loop)
- pre-spawn failures (server error, kick, transport, timeout)
- post-spawn kick / end -> disconnected
- chat / health event fan-out, own chat filtered
- queued commands flushed in FIFO order after spawn
"""

from __future__ import annotations

import threading
import time
from typing import Any, List, Optional

import pytest

from agent import (
    AgentConfig,
    AgentConnectionError,
    AgentError,
    AgentEvent,
    ClawCraftAgent,
    LifecycleState,
)
from bot_core import WorldConnectionError
from bot_core.testing import FakeWorldConnection
from fakes.fake_runtime import ScriptedOracle, wait_until
from monitoring.bus import EventBus
from monitoring.events import EventType, MonitoringEvent


SPAWN = ("spawn", {"x": 10.4, "y": 64.0, "z": -3.6, "entity_id": 1})


def make_agent(
    conn: FakeWorldConnection,
    *,
    name: str = "Test Bot",
    agent_type: str = "survival",
    monitor: Optional[EventBus] = None,
    oracle: Any = None,
) -> ClawCraftAgent:
    config = AgentConfig(name=name, type=agent_type, loop_interval_s=0.05)
    return ClawCraftAgent(config, oracle=oracle, connection_factory=lambda _cfg: conn, monitor=monitor)


@pytest.fixture
def agents() -> List[ClawCraftAgent]:
    created: List[ClawCraftAgent] = []
    yield created
    for agent in created:
        agent.disconnect()


def test_login_uses_normalized_name_and_server_address(agents) -> None:
    conn = FakeWorldConnection(login_events=[SPAWN])
    agent = make_agent(conn)
    agents.append(agent)

    agent.connect(timeout=1.0)

    login = conn.packets_of("login")
    assert len(login) == 1
    assert login[0]["username"] == "Test_Bot"
    assert login[0]["host"] == "89.167.28.237"
    assert login[0]["port"] == 25565
    assert login[0]["version"] == "1.21.4"
    assert agent.state is LifecycleState.ACTIVE
    assert agent.spawned


def test_spawn_configures_movement_and_starts_loop(agents) -> None:
    conn = FakeWorldConnection(login_events=[SPAWN])
    agent = make_agent(conn)
    agents.append(agent)

    spawned: List[bool] = []
    agent.on(AgentEvent.SPAWN, lambda: spawned.append(True))
    agent.connect(timeout=1.0)

    assert conn.packets_of("configure_movements") == [{"can_dig": True}]
    assert spawned == [True]
    assert agent.dispatcher.running
    assert agent.decision_loop is not None and agent.decision_loop.running

    # No oracle: the loop explores north (a set_goal 30 blocks toward -z).
    assert wait_until(lambda: len(conn.packets_of("set_goal")) >= 1)
    goal = conn.packets_of("set_goal")[0]
    assert goal["z"] == pytest.approx(-33.6)


def test_builder_switches_to_creative(agents) -> None:
    conn = FakeWorldConnection(login_events=[SPAWN])
    agent = make_agent(conn, name="Builder", agent_type="builder")
    agents.append(agent)

    agent.connect(timeout=1.0)

    assert wait_until(lambda: "/gamemode creative Builder" in conn.chat_lines())


def test_manual_agent_has_no_loop_but_flushes_commands_in_order(agents) -> None:
    conn = FakeWorldConnection(login_events=[SPAWN])
    agent = make_agent(conn, name="Hand", agent_type="manual", oracle=ScriptedOracle())
    agents.append(agent)

    # Queued before connect: kept until the dispatcher runs.
    agent.setblock(1, 64, 2, "stone")
    agent.connect(timeout=1.0)
    agent.fill(0, 64, 0, 2, 64, 2, "minecraft:glass")
    agent.queue_command("/time set day")

    assert agent.decision_loop is not None
    assert not agent.decision_loop.running

    expected = [
        "/setblock 1 64 2 minecraft:stone",
        "/fill 0 64 0 2 64 2 minecraft:glass",
        "/time set day",
    ]
    assert wait_until(lambda: len(conn.chat_lines()) >= 3, timeout=5.0)
    assert conn.chat_lines() == expected
    assert conn.packets_of("set_goal") == []


def test_error_before_spawn_raises_and_marks_errored() -> None:
    conn = FakeWorldConnection(login_events=[("error", {"message": "Invalid session"})])
    agent = make_agent(conn)

    errors: List[Exception] = []
    agent.on("error", errors.append)

    with pytest.raises(AgentConnectionError) as excinfo:
        agent.connect(timeout=1.0)

    assert excinfo.value.reason == "server_error"
    assert "Invalid session" in str(excinfo.value)
    assert agent.state is LifecycleState.ERRORED
    assert not conn.connected
    assert len(errors) == 1


def test_kick_before_spawn_raises() -> None:
    conn = FakeWorldConnection(login_events=[("kicked", {"reason": "whitelist"})])
    agent = make_agent(conn)

    with pytest.raises(AgentConnectionError) as excinfo:
        agent.connect(timeout=1.0)
    assert excinfo.value.reason == "kicked"


def test_transport_failure_raises() -> None:
    conn = FakeWorldConnection()
    conn.connect_error = WorldConnectionError("connection refused")
    agent = make_agent(conn)

    with pytest.raises(AgentConnectionError):
        agent.connect(timeout=1.0)
    assert agent.state is LifecycleState.ERRORED


def test_connect_times_out_without_spawn() -> None:
    conn = FakeWorldConnection()
    agent = make_agent(conn)

    with pytest.raises(AgentConnectionError) as excinfo:
        agent.connect(timeout=0.05)
    assert excinfo.value.reason == "timeout"
    assert agent.state is LifecycleState.ERRORED


def test_disconnect_while_waiting_for_spawn_wakes_connect() -> None:
    conn = FakeWorldConnection()
    agent = make_agent(conn, name="Slow")
    timer = threading.Timer(0.2, agent.disconnect)
    timer.start()

    started = time.monotonic()
    with pytest.raises(AgentConnectionError) as excinfo:
        agent.connect(timeout=5.0)
    timer.join()

    assert time.monotonic() - started < 2.0
    assert excinfo.value.reason == "disconnected"
    assert agent.state is LifecycleState.DISCONNECTED
    assert not conn.connected


def test_kick_after_spawn_disconnects_and_stops_loops() -> None:
    conn = FakeWorldConnection(login_events=[SPAWN])
    agent = make_agent(conn)
    reasons: List[str] = []
    agent.on(AgentEvent.KICKED, reasons.append)

    agent.connect(timeout=1.0)
    loop = agent.decision_loop
    conn.emit("kicked", {"reason": "spam"})

    assert reasons == ["spam"]
    assert agent.state is LifecycleState.DISCONNECTED
    assert not agent.dispatcher.running
    assert loop is not None and not loop.running
    assert not conn.connected


def test_chat_events_skip_own_messages(agents) -> None:
    conn = FakeWorldConnection(login_events=[SPAWN])
    agent = make_agent(conn, agent_type="manual")
    agents.append(agent)
    heard: List[tuple] = []
    agent.on(AgentEvent.CHAT, lambda user, msg: heard.append((user, msg)))

    agent.connect(timeout=1.0)
    conn.emit("chat", {"username": "Test_Bot", "message": "echo"})
    conn.emit("chat", {"username": "Steve", "message": "hello"})

    assert heard == [("Steve", "hello")]


def test_health_event_reports_tracked_vitals(agents) -> None:
    conn = FakeWorldConnection(login_events=[SPAWN])
    agent = make_agent(conn, agent_type="manual")
    agents.append(agent)
    vitals: List[tuple] = []
    agent.on("health", lambda h, f: vitals.append((h, f)))

    agent.connect(timeout=1.0)
    conn.emit("health", {"health": 6.5, "food": 12})

    assert vitals == [(6.5, 12.0)]


def test_direct_helpers_require_connection() -> None:
    agent = make_agent(FakeWorldConnection())

    assert agent.get_state() is None
    with pytest.raises(AgentError):
        agent.mine("oak_log")
    with pytest.raises(AgentError):
        agent.chat("hi")


def test_direct_helpers_after_spawn(agents) -> None:
    conn = FakeWorldConnection(
        login_events=[SPAWN],
        replies={"find_block": {"position": {"x": 11, "y": 63, "z": -4}}},
    )
    agent = make_agent(conn, agent_type="manual")
    agents.append(agent)
    agent.connect(timeout=1.0)

    result = agent.mine("oak_log")
    assert result.success
    assert conn.requests_of("dig") == [{"x": 11, "y": 63, "z": -4}]

    assert agent.chat("hello world") is True
    assert agent.chat("too soon") is False
    assert "hello world" in conn.chat_lines()

    state = agent.get_state()
    assert state is not None
    assert state["position"] == {"x": 10, "y": 64, "z": -4}
    assert state["health"] == 20


def test_disconnect_sends_quit_and_publishes_states() -> None:
    bus = EventBus()
    events: List[MonitoringEvent] = []
    bus.subscribe(events.append)

    conn = FakeWorldConnection(login_events=[SPAWN])
    agent = make_agent(conn, agent_type="manual", monitor=bus)
    agent.connect(timeout=1.0)
    agent.disconnect()

    assert conn.packets_of("quit") == [{}]
    assert agent.state is LifecycleState.DISCONNECTED

    transitions = [
        e.payload["to"] for e in events if e.event_type is EventType.AGENT_STATE_CHANGE
    ]
    assert transitions == ["connecting", "active", "disconnected"]


def test_events_from_replaced_connection_are_ignored() -> None:
    first = FakeWorldConnection(login_events=[SPAWN])
    second = FakeWorldConnection(login_events=[SPAWN])
    conns = iter([first, second])

    config = AgentConfig(name="Re", type="manual")
    agent = ClawCraftAgent(config, connection_factory=lambda _cfg: next(conns))
    kicks: List[str] = []
    agent.on(AgentEvent.KICKED, kicks.append)

    agent.connect(timeout=1.0)
    agent.disconnect()
    agent.connect(timeout=1.0)
    try:
        first.emit("kicked", {"reason": "stale"})
        assert kicks == []
        assert agent.state is LifecycleState.ACTIVE
    finally:
        agent.disconnect()
