# src/bot_core/testing/fakes.py
"""
Test helpers for bot_core.

Provides:
- FakeWorldConnection: in-memory WorldConnection for unit tests and
  offline demos.
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from ..net import PacketHandler, WorldConnection, WorldConnectionError

Reply = Union[Mapping[str, Any], Callable[[Mapping[str, Any]], Mapping[str, Any]]]


@dataclass
class SentPacket:
    """Record of a message sent through FakeWorldConnection."""

    packet_type: str
    data: Dict[str, Any]


class FakeWorldConnection(WorldConnection):
    """
    In-memory WorldConnection.

    Features:
    - Records every send_packet() and request() call.
    - Scripted request replies (`replies`) and failures (`failures`).
    - Manual emission of incoming events to registered handlers.
    - Optional automatic reply to the "login" packet: emit `login_events`
      in order (e.g. spawn, or error).
    """

    def __init__(
        self,
        *,
        replies: Optional[Dict[str, Reply]] = None,
        login_events: Optional[List[tuple]] = None,
    ) -> None:
        self.connected: bool = False
        self.connect_calls: int = 0
        self.sent_packets: List[SentPacket] = []
        self.requests: List[SentPacket] = []
        self.replies: Dict[str, Reply] = dict(replies or {})
        self.failures: Dict[str, str] = {}
        self.login_events: List[tuple] = list(login_events or [])
        self.connect_error: Optional[Exception] = None
        self._handlers: Dict[str, List[PacketHandler]] = {}
        self._lock = Lock()

    # ------------------------------------------------------------------
    # WorldConnection protocol
    # ------------------------------------------------------------------

    def connect(self) -> None:
        self.connect_calls += 1
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True

    def disconnect(self) -> None:
        self.connected = False

    def send_packet(self, packet_type: str, data: Mapping[str, Any]) -> None:
        if not self.connected:
            raise WorldConnectionError("FakeWorldConnection is not connected")
        with self._lock:
            self.sent_packets.append(SentPacket(packet_type=packet_type, data=dict(data)))

        if packet_type == "login":
            for event_type, payload in self.login_events:
                self.emit(event_type, payload)

    def request(
        self,
        packet_type: str,
        data: Mapping[str, Any],
        timeout: Optional[float] = None,
    ) -> Mapping[str, Any]:
        if not self.connected:
            raise WorldConnectionError("FakeWorldConnection is not connected")
        with self._lock:
            self.requests.append(SentPacket(packet_type=packet_type, data=dict(data)))

        if packet_type in self.failures:
            raise WorldConnectionError(self.failures[packet_type])

        reply = self.replies.get(packet_type, {})
        if callable(reply):
            return reply(data)
        return reply

    def on_packet(self, packet_type: str, handler: PacketHandler) -> None:
        self._handlers.setdefault(packet_type, []).append(handler)

    # ------------------------------------------------------------------
    # Test-only helpers
    # ------------------------------------------------------------------

    def emit(self, packet_type: str, payload: Mapping[str, Any]) -> None:
        """Deliver an incoming event to every registered handler."""
        for handler in list(self._handlers.get(packet_type, [])):
            handler(payload)

    def chat_lines(self) -> List[str]:
        """Messages sent on the chat channel, in send order."""
        return [p.data["message"] for p in self.sent_packets if p.packet_type == "chat"]

    def packets_of(self, packet_type: str) -> List[Dict[str, Any]]:
        return [p.data for p in self.sent_packets if p.packet_type == packet_type]

    def requests_of(self, packet_type: str) -> List[Dict[str, Any]]:
        return [p.data for p in self.requests if p.packet_type == packet_type]
