# tests/test_bridge_client.py
"""
BridgeClient over a loopback socket.

Covers:
- event lines dispatched to handlers in registration order
- request/response correlation by id, ok / error replies
- reader-thread request() guard
- bridge closing the socket -> "end" event and failed pending requests
- malformed lines ignored
"""

from __future__ import annotations

import json
import socket
import threading
from typing import Any, Dict, List, Mapping, Optional

import pytest

from bot_core.net import BridgeClient, WorldConnectionError
from fakes.fake_runtime import wait_until


class LoopbackBridge:
    """One-connection JSON-lines server standing in for the game-client bridge."""

    def __init__(self) -> None:
        self._server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._server.bind(("127.0.0.1", 0))
        self._server.listen(1)
        self.port = self._server.getsockname()[1]
        self.received: List[Dict[str, Any]] = []
        self.auto_reply: Dict[str, Mapping[str, Any]] = {}
        self._conn: Optional[socket.socket] = None
        self._accepted = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        conn, _ = self._server.accept()
        self._conn = conn
        self._accepted.set()
        with conn.makefile("rb") as stream:
            for line in stream:
                msg = json.loads(line)
                self.received.append(msg)
                reply = self.auto_reply.get(msg["type"])
                if reply is not None and "id" in msg:
                    self.send({"type": "response", "id": msg["id"], **reply})

    def send(self, msg: Any) -> None:
        self.send_raw(json.dumps(msg).encode("utf-8"))

    def send_raw(self, line: bytes) -> None:
        assert self._accepted.wait(2.0)
        assert self._conn is not None
        self._conn.sendall(line + b"\n")

    def close(self) -> None:
        if self._conn is not None:
            # shutdown() takes effect even while the reader's makefile holds the fd
            try:
                self._conn.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self._conn.close()
        self._server.close()


@pytest.fixture
def bridge():
    server = LoopbackBridge()
    yield server
    server.close()


@pytest.fixture
def client(bridge: LoopbackBridge):
    c = BridgeClient("127.0.0.1", bridge.port, request_timeout_s=2.0)
    c.connect()
    yield c
    c.disconnect()


def test_send_packet_writes_one_json_line(bridge: LoopbackBridge, client: BridgeClient) -> None:
    client.send_packet("chat", {"message": "hello"})

    assert wait_until(lambda: len(bridge.received) == 1)
    assert bridge.received[0] == {"type": "chat", "payload": {"message": "hello"}}


def test_events_dispatched_to_all_handlers(bridge: LoopbackBridge, client: BridgeClient) -> None:
    seen: List[str] = []
    client.on_packet("health", lambda p: seen.append(f"a{p['health']}"))
    client.on_packet("health", lambda p: seen.append(f"b{p['health']}"))

    bridge.send({"type": "health", "payload": {"health": 5}})

    assert wait_until(lambda: len(seen) == 2)
    assert seen == ["a5", "b5"]


def test_failing_handler_does_not_stop_reader(bridge: LoopbackBridge, client: BridgeClient) -> None:
    seen: List[Mapping[str, Any]] = []

    def broken(_p: Mapping[str, Any]) -> None:
        raise RuntimeError("handler bug")

    client.on_packet("chat", broken)
    client.on_packet("chat", seen.append)

    bridge.send({"type": "chat", "payload": {"message": "one"}})
    bridge.send({"type": "chat", "payload": {"message": "two"}})

    assert wait_until(lambda: len(seen) == 2)


def test_request_returns_result(bridge: LoopbackBridge, client: BridgeClient) -> None:
    bridge.auto_reply["find_block"] = {"ok": True, "result": {"position": {"x": 1, "y": 2, "z": 3}}}

    result = client.request("find_block", {"name": "stone"})

    assert result == {"position": {"x": 1, "y": 2, "z": 3}}
    assert bridge.received[0]["id"] == 1
    assert bridge.received[0]["payload"] == {"name": "stone"}


def test_request_error_reply_raises(bridge: LoopbackBridge, client: BridgeClient) -> None:
    bridge.auto_reply["dig"] = {"ok": False, "error": "too far"}

    with pytest.raises(WorldConnectionError, match="too far"):
        client.request("dig", {"x": 0, "y": 0, "z": 0})


def test_request_timeout(bridge: LoopbackBridge, client: BridgeClient) -> None:
    with pytest.raises(WorldConnectionError, match="timed out"):
        client.request("goto", {"x": 0, "y": 0, "z": 0}, timeout=0.05)


def test_request_from_handler_is_rejected(bridge: LoopbackBridge, client: BridgeClient) -> None:
    errors: List[Exception] = []

    def handler(_p: Mapping[str, Any]) -> None:
        try:
            client.request("find_block", {"name": "stone"})
        except WorldConnectionError as exc:
            errors.append(exc)

    client.on_packet("spawn", handler)
    bridge.send({"type": "spawn", "payload": {}})

    assert wait_until(lambda: len(errors) == 1)
    assert "reader thread" in str(errors[0])


def test_malformed_lines_are_ignored(bridge: LoopbackBridge, client: BridgeClient) -> None:
    seen: List[Mapping[str, Any]] = []
    client.on_packet("chat", seen.append)

    bridge.send_raw(b"{not json")
    bridge.send([1, 2, 3])
    bridge.send({"type": "chat", "payload": "not a dict"})
    bridge.send({"type": "response", "id": 999, "ok": True, "result": {}})
    bridge.send({"type": "chat", "payload": {"message": "still alive"}})

    assert wait_until(lambda: len(seen) == 1)
    assert seen[0]["message"] == "still alive"


def test_bridge_close_emits_end_and_fails_pending(bridge: LoopbackBridge, client: BridgeClient) -> None:
    reasons: List[str] = []
    client.on_packet("end", lambda p: reasons.append(p["reason"]))

    errors: List[Exception] = []

    def pending_request() -> None:
        try:
            client.request("goto", {"x": 0, "y": 0, "z": 0}, timeout=5.0)
        except WorldConnectionError as exc:
            errors.append(exc)

    t = threading.Thread(target=pending_request)
    t.start()
    assert wait_until(lambda: len(bridge.received) == 1)

    bridge.close()
    t.join(3.0)

    assert wait_until(lambda: reasons == ["bridge closed the connection"])
    assert len(errors) == 1
    assert not client.connected


def test_connect_failure_raises_connection_error() -> None:
    probe = socket.socket()
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()

    with pytest.raises(WorldConnectionError):
        BridgeClient("127.0.0.1", port).connect()


def test_send_when_disconnected_raises() -> None:
    with pytest.raises(WorldConnectionError):
        BridgeClient("127.0.0.1", 1).send_packet("chat", {"message": "x"})
