# src/agent/runtime.py
"""
ClawCraftAgent: one autonomous agent process-local runtime.

Lifecycle:

    disconnected --connect()--> connecting --first spawn--> active
         ^                          |                          |
         |                     error / kick /             disconnect() /
         |                     end / timeout              kicked / end
         +------ errored <----------+                          |
         +-----------------------------------------------------+

connect() blocks until the first spawn and returns, or raises
AgentConnectionError on the first pre-spawn failure. After spawn the agent
configures movement, applies per-type setup (builders switch to creative),
starts the command dispatcher and, unless the type is manual, the
decision loop.

Commands queued with queue_command() persist across disconnects and are
released by the dispatcher once connected.
"""

from __future__ import annotations

import logging
import random
import threading
from threading import Lock
from typing import Any, Callable, Mapping, Optional

from bot_core import ActionExecutorConfig, BotCoreImpl, WorldConnection, WorldConnectionError
from bot_core.net import BridgeClient
from contracts.bot_core import DecisionOracle
from contracts.types import Action, ActionResult, AgentType, LifecycleState
from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event
from .chat_gate import ChatGate
from .command_queue import CommandDispatcher, CommandQueue
from .config import AgentConfig
from .decision_loop import DecisionLoop
from .errors import AgentConnectionError, AgentError
from .events import AgentEvent, AgentEvents, Handler


log = logging.getLogger(__name__)

ConnectionFactory = Callable[[AgentConfig], WorldConnection]


def default_connection_factory(config: AgentConfig) -> WorldConnection:
    """Connect to the local game-client bridge named in the config."""
    return BridgeClient(config.bridge_host, config.bridge_port)


class ClawCraftAgent:
    """
    One named agent in the shared world.

    Args:
        config: identity, server address and loop timing.
        oracle: decision service consulted by the loop; None means the loop
            uses its fixed default action.
        connection_factory: builds a fresh WorldConnection per connect().
        monitor: optional EventBus receiving telemetry events.
    """

    def __init__(
        self,
        config: AgentConfig,
        oracle: Optional[DecisionOracle] = None,
        connection_factory: Optional[ConnectionFactory] = None,
        monitor: Optional[EventBus] = None,
        *,
        action_config: Optional[ActionExecutorConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._config = config
        self._oracle = oracle
        self._factory = connection_factory or default_connection_factory
        self._monitor = monitor
        self._action_config = action_config
        self._rng = rng

        self.events = AgentEvents()

        self._lock = Lock()
        self._state = LifecycleState.DISCONNECTED
        self._conn: Optional[WorldConnection] = None
        self._body: Optional[BotCoreImpl] = None
        self._loop: Optional[DecisionLoop] = None
        self._spawned = False

        # Pending connect() attempt
        self._spawn_event = threading.Event()
        self._connect_failure: Optional[AgentConnectionError] = None

        self._queue = CommandQueue()
        self._dispatcher = CommandDispatcher(
            self._queue,
            self._send_chat_line,
            monitor=monitor,
            agent_name=config.name,
        )
        self._chat_gate = ChatGate(self._send_chat_line)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def agent_type(self) -> AgentType:
        return self._config.type

    @property
    def config(self) -> AgentConfig:
        return self._config

    @property
    def state(self) -> LifecycleState:
        with self._lock:
            return self._state

    @property
    def spawned(self) -> bool:
        with self._lock:
            return self._spawned

    @property
    def command_queue(self) -> CommandQueue:
        return self._queue

    @property
    def dispatcher(self) -> CommandDispatcher:
        return self._dispatcher

    @property
    def decision_loop(self) -> Optional[DecisionLoop]:
        return self._loop

    @property
    def body(self) -> Optional[BotCoreImpl]:
        return self._body

    def on(self, event: AgentEvent | str, handler: Handler) -> Handler:
        """Shortcut for agent.events.on(...)."""
        return self.events.on(event, handler)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def connect(self, timeout: Optional[float] = None) -> None:
        """
        Log into the world and block until the first spawn.

        Raises AgentConnectionError on transport failure, a server error,
        kick or disconnect before spawn, or when `timeout` (default
        config.connect_timeout_s) elapses first. Not retried.
        """
        with self._lock:
            if self._state in (LifecycleState.ACTIVE, LifecycleState.CONNECTING):
                return
            self._spawned = False
            self._connect_failure = None
            self._spawn_event.clear()

        self._set_state(LifecycleState.CONNECTING)
        log.info("[%s] connecting to %s:%d", self.name, self._config.host, self._config.port)

        conn = self._factory(self._config)
        body = BotCoreImpl(
            conn,
            chat_fn=self._chat_gate.chat,
            action_config=self._action_config,
            rng=self._rng,
            monitor=self._monitor,
            agent_name=self.name,
        )
        with self._lock:
            self._conn = conn
            self._body = body
            self._loop = DecisionLoop(
                body,
                self._oracle,
                interval_s=self._config.loop_interval_s,
                monitor=self._monitor,
                agent_name=self.name,
            )
        self._register_handlers(conn)

        try:
            conn.connect()
            conn.send_packet("login", self._login_payload())
        except WorldConnectionError as exc:
            self._abort_connect(conn)
            raise AgentConnectionError(f"Could not connect {self.name}: {exc}") from exc

        wait_s = self._config.connect_timeout_s if timeout is None else timeout
        if not self._spawn_event.wait(wait_s):
            self._abort_connect(conn)
            raise AgentConnectionError(
                f"{self.name} did not spawn within {wait_s:.0f}s",
                reason="timeout",
            )

        failure = self._connect_failure
        if failure is not None:
            self._abort_connect(conn)
            raise failure

        log.info("[%s] connected", self.name)

    def disconnect(self) -> None:
        """Stop the loop and dispatcher, say goodbye and drop the connection."""
        with self._lock:
            conn = self._conn
            pending = self._conn is not None and not self._spawned
        if conn is None:
            self._set_state(LifecycleState.DISCONNECTED)
            return

        log.info("[%s] disconnecting", self.name)
        try:
            conn.send_packet("quit", {})
        except WorldConnectionError as exc:
            log.debug("[%s] quit not delivered: %r", self.name, exc)
        self._teardown(conn, LifecycleState.DISCONNECTED)
        if pending:
            # Wake a connect() still waiting for the first spawn.
            self._fail_connect(
                AgentConnectionError(f"{self.name} disconnected before spawn", reason="disconnected")
            )

    def _login_payload(self) -> Mapping[str, Any]:
        cfg = self._config
        return {
            "username": cfg.name,
            "host": cfg.host,
            "port": cfg.port,
            "version": cfg.game_version,
            "auth": cfg.auth,
        }

    def _abort_connect(self, conn: WorldConnection) -> None:
        self._teardown(conn, LifecycleState.ERRORED)

    def _teardown(self, conn: WorldConnection, final_state: LifecycleState) -> None:
        with self._lock:
            if self._conn is not conn:
                return
            loop = self._loop
            self._conn = None
            self._spawned = False

        if loop is not None:
            loop.stop()
        self._dispatcher.stop()
        try:
            conn.disconnect()
        except WorldConnectionError as exc:
            log.debug("[%s] disconnect failed: %r", self.name, exc)
        self._set_state(final_state)

    def _set_state(self, state: LifecycleState) -> None:
        with self._lock:
            previous = self._state
            self._state = state
        if previous is state:
            return
        log.debug("[%s] state %s -> %s", self.name, previous.value, state.value)
        log_event(
            bus=self._monitor,
            module="agent.runtime",
            event_type=EventType.AGENT_STATE_CHANGE,
            message=f"{self.name} is {state.value}",
            payload={"from": previous.value, "to": state.value},
            correlation_id=self.name,
        )

    # ------------------------------------------------------------------
    # Connection events
    # ------------------------------------------------------------------

    def _register_handlers(self, conn: WorldConnection) -> None:
        def current(fn: Callable[[Mapping[str, Any]], None]) -> Callable[[Mapping[str, Any]], None]:
            # Ignore events from a connection that has since been replaced.
            def wrapper(pkt: Mapping[str, Any]) -> None:
                if self._conn is conn:
                    fn(pkt)
            return wrapper

        conn.on_packet("spawn", current(self._on_spawn))
        conn.on_packet("chat", current(self._on_chat))
        conn.on_packet("health", current(self._on_health))
        conn.on_packet("death", current(lambda _pkt: self.events.emit(AgentEvent.DEATH)))
        conn.on_packet("kicked", current(lambda pkt: self._on_lost(conn, AgentEvent.KICKED, pkt)))
        conn.on_packet("end", current(lambda pkt: self._on_lost(conn, AgentEvent.END, pkt)))
        conn.on_packet("error", current(self._on_error))

    def _on_spawn(self, pkt: Mapping[str, Any]) -> None:
        with self._lock:
            first = not self._spawned
            self._spawned = True

        if first:
            self._after_spawn()
            self._set_state(LifecycleState.ACTIVE)
            self._spawn_event.set()
        self.events.emit(AgentEvent.SPAWN)

    def _after_spawn(self) -> None:
        log.info("[%s] spawned as %s", self.name, self._config.type.value)
        assert self._conn is not None
        self._conn.send_packet("configure_movements", {"can_dig": True})

        if self._config.type is AgentType.BUILDER:
            self.queue_command(f"/gamemode creative {self.name}")

        self._dispatcher.start()
        if self._config.type is not AgentType.MANUAL and self._loop is not None:
            self._loop.start()

    def _on_chat(self, pkt: Mapping[str, Any]) -> None:
        username = str(pkt.get("username", ""))
        if username == self.name:
            return
        self.events.emit(AgentEvent.CHAT, username, str(pkt.get("message", "")))

    def _on_health(self, pkt: Mapping[str, Any]) -> None:
        assert self._body is not None
        health, food = self._body.vitals()
        self.events.emit(AgentEvent.HEALTH, health, food)

    def _on_error(self, pkt: Mapping[str, Any]) -> None:
        message = str(pkt.get("message") or pkt.get("error") or "unknown error")
        error = AgentConnectionError(message, reason="server_error")
        log.warning("[%s] error: %s", self.name, message)

        if not self.spawned:
            self._fail_connect(error)
        self.events.emit(AgentEvent.ERROR, error)

    def _on_lost(self, conn: WorldConnection, event: AgentEvent, pkt: Mapping[str, Any]) -> None:
        reason = str(pkt.get("reason", ""))
        log.info("[%s] %s: %s", self.name, event.value, reason)

        if not self.spawned:
            self._fail_connect(
                AgentConnectionError(f"{self.name} {event.value} before spawn: {reason}", reason=event.value)
            )
        else:
            self._teardown(conn, LifecycleState.DISCONNECTED)
        self.events.emit(event, reason)

    def _fail_connect(self, error: AgentConnectionError) -> None:
        with self._lock:
            if self._connect_failure is None:
                self._connect_failure = error
        self._spawn_event.set()

    # ------------------------------------------------------------------
    # Outgoing chat
    # ------------------------------------------------------------------

    def _send_chat_line(self, line: str) -> None:
        conn = self._conn
        if conn is None:
            raise WorldConnectionError(f"{self.name} is not connected")
        conn.send_packet("chat", {"message": line})

    def queue_command(self, command: str) -> None:
        """Queue a server command; sent in FIFO order once connected."""
        self._queue.enqueue(command)

    def chat(self, message: str) -> bool:
        """Rate-limited chat. Returns False when rejected by the cooldown."""
        self._require_body()
        return self._chat_gate.chat(message)

    # ------------------------------------------------------------------
    # Direct control helpers
    # ------------------------------------------------------------------

    def _require_body(self) -> BotCoreImpl:
        body = self._body
        if body is None or self._conn is None:
            raise AgentError(f"{self.name} is not connected")
        return body

    def goto(self, x: float, y: float, z: float, range_: float = 2.0) -> ActionResult:
        """Walk to (x, y, z); blocks until arrival."""
        return self._require_body().executor.goto(x, y, z, range_)

    def follow(self, player_name: str) -> ActionResult:
        return self._require_body().executor.follow(player_name)

    def flee(self) -> ActionResult:
        return self._require_body().execute_action(Action.flee())

    def explore(self, direction: str = "north") -> ActionResult:
        return self._require_body().execute_action(Action.explore(direction))

    def mine(self, block: str) -> ActionResult:
        return self._require_body().execute_action(Action.mine(block))

    def attack(self, target: str) -> ActionResult:
        return self._require_body().execute_action(Action.attack(target))

    def eat(self) -> ActionResult:
        return self._require_body().execute_action(Action.eat())

    def craft(self, item: str, count: int = 1) -> ActionResult:
        return self._require_body().execute_action(Action.craft(item, count))

    def setblock(self, x: int, y: int, z: int, block: str) -> None:
        self.queue_command(f"/setblock {x} {y} {z} {_block_id(block)}")

    def fill(self, x1: int, y1: int, z1: int, x2: int, y2: int, z2: int, block: str) -> None:
        self.queue_command(f"/fill {x1} {y1} {z1} {x2} {y2} {z2} {_block_id(block)}")

    def get_state(self) -> Optional[dict]:
        """Current StateSnapshot as a plain dict, or None before spawn."""
        body = self._body
        if body is None or not self.spawned:
            return None
        return body.get_state_snapshot().to_dict()


def _block_id(block: str) -> str:
    return block if ":" in block else f"minecraft:{block}"
