# IPC bridge to the headless game client
# src/bot_core/net/ipc.py
"""
Bridge client for the game-client process.

This client talks to a headless game client (the bridge) via a simple
message protocol: JSON over TCP, one message per line. The bridge is
responsible for the game protocol, pathfinding and world state, and
translates these messages into real in-game actions and events.

The goal is:
- keep Python-side logic simple
- keep a clean WorldConnection interface
- leave room for richer message schemas later
"""

from __future__ import annotations

import itertools
import json
import logging
import socket
import threading
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Dict, List, Mapping, Optional

from .client import PacketHandler, WorldConnection, WorldConnectionError

log = logging.getLogger(__name__)


@dataclass
class BridgeConfig:
    """Where the bridge listens, and how long a request may take."""

    host: str
    port: int
    request_timeout_s: float = 30.0


@dataclass
class _PendingRequest:
    done: threading.Event = field(default_factory=threading.Event)
    result: Mapping[str, Any] = field(default_factory=dict)
    error: Optional[str] = None


class BridgeClient(WorldConnection):
    """
    JSON-lines client for the game-client bridge.

    Message format (version 1):
      - Each message is a single line of UTF-8 JSON.
      - Events / fire-and-forget messages:
          {"type": "<packet_type>", "payload": { ... }}
      - Requests carry an id:
          {"type": "<packet_type>", "id": 7, "payload": { ... }}
      - Replies from the bridge:
          {"type": "response", "id": 7, "ok": true, "result": { ... }}
          {"type": "response", "id": 7, "ok": false, "error": "..."}

    A daemon reader thread owns the read side of the socket and dispatches
    incoming events to registered handlers. Handlers therefore run on the
    reader thread and must not call request() themselves.
    """

    def __init__(
        self,
        host: str,
        port: int,
        *,
        request_timeout_s: float = 30.0,
    ) -> None:
        self._config = BridgeConfig(
            host=str(host),
            port=int(port),
            request_timeout_s=float(request_timeout_s),
        )
        self._sock: socket.socket | None = None
        self._reader: threading.Thread | None = None
        self._handlers: Dict[str, List[PacketHandler]] = {}
        self._pending: Dict[int, _PendingRequest] = {}
        self._ids = itertools.count(1)

        # Guards socket writes and the pending-request table.
        self._lock = Lock()
        self._connected = False
        self._closing = False

    # ------------------------------------------------------------------
    # WorldConnection protocol
    # ------------------------------------------------------------------

    def connect(self) -> None:
        """Open the TCP connection and start the reader thread."""
        if self._connected:
            return

        log.info("BridgeClient connecting to %s:%d", self._config.host, self._config.port)
        try:
            sock = socket.create_connection((self._config.host, self._config.port))
        except OSError as exc:
            raise WorldConnectionError(
                f"Could not reach bridge at {self._config.host}:{self._config.port}: {exc}"
            ) from exc

        self._sock = sock
        self._connected = True
        self._closing = False

        self._reader = threading.Thread(
            target=self._read_loop,
            name=f"BridgeReader-{self._config.port}",
            daemon=True,
        )
        self._reader.start()

    def disconnect(self) -> None:
        """Close the connection. Pending requests fail immediately."""
        with self._lock:
            if not self._connected:
                return
            log.info("BridgeClient disconnecting")
            self._closing = True
            try:
                if self._sock is not None:
                    try:
                        self._sock.shutdown(socket.SHUT_RDWR)
                    except OSError:
                        pass
                    self._sock.close()
            finally:
                self._sock = None
                self._connected = False

        self._fail_pending("disconnected")

    def send_packet(self, packet_type: str, data: Mapping[str, Any]) -> None:
        """Send a fire-and-forget message."""
        self._write({"type": packet_type, "payload": dict(data)})

    def request(
        self,
        packet_type: str,
        data: Mapping[str, Any],
        timeout: Optional[float] = None,
    ) -> Mapping[str, Any]:
        """Send a request and wait for the matching response line."""
        if threading.current_thread() is self._reader:
            raise WorldConnectionError(
                f"request({packet_type!r}) called from the bridge reader thread"
            )

        req_id = next(self._ids)
        pending = _PendingRequest()
        with self._lock:
            self._pending[req_id] = pending

        try:
            self._write({"type": packet_type, "id": req_id, "payload": dict(data)})
        except WorldConnectionError:
            with self._lock:
                self._pending.pop(req_id, None)
            raise

        wait_s = self._config.request_timeout_s if timeout is None else timeout
        if not pending.done.wait(wait_s):
            with self._lock:
                self._pending.pop(req_id, None)
            raise WorldConnectionError(
                f"Bridge request {packet_type!r} timed out after {wait_s:.1f}s"
            )

        if pending.error is not None:
            raise WorldConnectionError(f"Bridge request {packet_type!r} failed: {pending.error}")
        return pending.result

    def on_packet(self, packet_type: str, handler: PacketHandler) -> None:
        """Register a handler for incoming events of a given type."""
        self._handlers.setdefault(packet_type, []).append(handler)

    @property
    def connected(self) -> bool:
        return self._connected

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _write(self, msg: Mapping[str, Any]) -> None:
        encoded = json.dumps(msg, separators=(",", ":")).encode("utf-8") + b"\n"
        with self._lock:
            if not self._connected or self._sock is None:
                raise WorldConnectionError("BridgeClient is not connected")
            try:
                self._sock.sendall(encoded)
            except OSError as exc:
                raise WorldConnectionError(f"Bridge write failed: {exc}") from exc

    def _read_loop(self) -> None:
        sock = self._sock
        if sock is None:
            return

        reason = "bridge closed the connection"
        try:
            with sock.makefile("rb") as stream:
                for line in stream:
                    line = line.strip()
                    if not line:
                        continue
                    self.handle_raw_line(line)
        except (OSError, ValueError) as exc:
            reason = f"bridge read failed: {exc}"

        was_closing = self._closing
        with self._lock:
            self._connected = False
            self._sock = None
        self._fail_pending(reason)

        if not was_closing:
            log.info("BridgeClient lost connection: %s", reason)
            self._dispatch("end", {"reason": reason})

    def handle_raw_line(self, line: bytes) -> None:
        """Decode a JSON line and route it to a pending request or handlers."""
        try:
            obj = json.loads(line.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            log.exception("BridgeClient failed to decode JSON line: %r", line)
            return

        if not isinstance(obj, dict):
            log.warning("BridgeClient received non-object message: %r", obj)
            return

        packet_type = obj.get("type")
        if packet_type == "response":
            self._resolve(obj)
            return

        payload = obj.get("payload", {})
        if not isinstance(packet_type, str):
            log.warning("BridgeClient received message without valid type: %r", obj)
            return
        if not isinstance(payload, dict):
            log.warning("BridgeClient received message with non-dict payload: %r", obj)
            return

        self._dispatch(packet_type, payload)

    def _resolve(self, obj: Mapping[str, Any]) -> None:
        try:
            req_id = int(obj.get("id"))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            log.warning("BridgeClient response without id: %r", obj)
            return

        with self._lock:
            pending = self._pending.pop(req_id, None)
        if pending is None:
            log.debug("BridgeClient late or unknown response id=%s", req_id)
            return

        if obj.get("ok", True):
            result = obj.get("result")
            pending.result = result if isinstance(result, dict) else {"value": result}
        else:
            pending.error = str(obj.get("error") or "unknown error")
        pending.done.set()

    def _fail_pending(self, reason: str) -> None:
        with self._lock:
            pending = list(self._pending.values())
            self._pending.clear()
        for p in pending:
            p.error = reason
            p.done.set()

    def _dispatch(self, packet_type: str, payload: Mapping[str, Any]) -> None:
        handlers = self._handlers.get(packet_type)
        if not handlers:
            log.debug("BridgeClient no handler for packet_type=%s", packet_type)
            return

        for handler in list(handlers):
            try:
                handler(payload)
            except Exception:
                log.exception("Error in bridge handler for %s", packet_type)
