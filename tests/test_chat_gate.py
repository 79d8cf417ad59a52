# tests/test_chat_gate.py

from __future__ import annotations

from typing import List

from agent.chat_gate import ChatGate
from fakes.fake_runtime import FakeClock


def test_second_chat_within_cooldown_is_rejected_without_io() -> None:
    clock = FakeClock()
    sent: List[str] = []
    gate = ChatGate(sent.append, clock=clock)

    assert gate.chat("a") is True
    assert gate.chat("b") is False
    assert sent == ["a"]


def test_rejection_does_not_reset_cooldown() -> None:
    clock = FakeClock()
    sent: List[str] = []
    gate = ChatGate(sent.append, cooldown_s=5.0, clock=clock)

    gate.chat("first")
    clock.advance(4.0)
    assert gate.chat("too soon") is False

    # 5s after the accepted call, not after the rejected one.
    clock.advance(1.0)
    assert gate.chat("second") is True
    assert sent == ["first", "second"]


def test_accepted_message_truncated_to_max_length() -> None:
    clock = FakeClock()
    sent: List[str] = []
    gate = ChatGate(sent.append, clock=clock)

    gate.chat("x" * 250)
    assert sent == ["x" * 100]


def test_ready_reflects_cooldown() -> None:
    clock = FakeClock()
    gate = ChatGate(lambda _m: None, cooldown_s=2.0, clock=clock)

    assert gate.ready()
    gate.chat("hi")
    assert not gate.ready()
    clock.advance(2.0)
    assert gate.ready()
