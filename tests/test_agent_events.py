# tests/test_agent_events.py

from __future__ import annotations

from typing import List

import pytest

from agent.events import AgentEvent, AgentEvents


def test_handlers_called_in_registration_order_with_args() -> None:
    events = AgentEvents()
    seen: List[str] = []

    events.on(AgentEvent.CHAT, lambda user, msg: seen.append(f"a:{user}:{msg}"))
    events.on("chat", lambda user, msg: seen.append(f"b:{user}:{msg}"))

    assert events.emit(AgentEvent.CHAT, "Steve", "hi") == 2
    assert seen == ["a:Steve:hi", "b:Steve:hi"]


def test_once_handler_fires_a_single_time() -> None:
    events = AgentEvents()
    calls: List[int] = []
    events.once(AgentEvent.SPAWN, lambda: calls.append(1))

    events.emit(AgentEvent.SPAWN)
    events.emit(AgentEvent.SPAWN)

    assert calls == [1]
    assert events.handler_count(AgentEvent.SPAWN) == 0


def test_off_removes_handler() -> None:
    events = AgentEvents()
    calls: List[str] = []

    def handler(reason: str) -> None:
        calls.append(reason)

    events.on(AgentEvent.KICKED, handler)
    events.off(AgentEvent.KICKED, handler)

    assert events.emit(AgentEvent.KICKED, "spam") == 0
    assert calls == []


def test_failing_handler_does_not_block_others() -> None:
    events = AgentEvents()
    calls: List[str] = []

    def broken(_err: Exception) -> None:
        raise RuntimeError("handler bug")

    events.on(AgentEvent.ERROR, broken)
    events.on(AgentEvent.ERROR, lambda err: calls.append(str(err)))

    events.emit(AgentEvent.ERROR, ValueError("boom"))
    assert calls == ["boom"]


def test_unknown_event_name_rejected() -> None:
    events = AgentEvents()
    with pytest.raises(ValueError):
        events.on("teleport", lambda: None)
