# track vitals/entities/inventory and build snapshots from bridge events
# src/bot_core/world_tracker.py
"""
World tracker for bot_core.

Consumes normalized events from a WorldConnection and maintains a raw,
incrementally updated view of the agent's surroundings. This module is
the ONLY owner of RawWorldSnapshot assembly.

Rules:
- Never construct StateSnapshot here (that lives in bot_core.snapshot).
- Keep storage minimal and "raw"; the bridge owns the real world model.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Dict, List, Mapping, Optional

from .net import WorldConnection
from .snapshot import RawEntity, RawWorldSnapshot


@dataclass
class _PlayerState:
    """Minimal tracked state for the local player."""

    pos: Dict[str, float] = field(
        default_factory=lambda: {"x": 0.0, "y": 64.0, "z": 0.0}
    )
    health: float = 20.0
    food: float = 20.0
    entity_id: Optional[int] = None
    spawned: bool = False
    version: Optional[str] = None


def _coerce_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


class WorldTracker:
    """
    Maintains an incrementally updated RawWorldSnapshot.

    WorldConnection implementations must normalize their data into these
    logical event types:

        - "spawn"              → player spawned {x, y, z, entity_id, version}
        - "health"             → {health, food}
        - "position_update"    → {x, y, z}
        - "time_update"        → {time_of_day}
        - "window_items"       → full inventory snapshot {items: [...]}
        - "set_slot"           → single slot {slot, item}
        - "spawn_entity"       → entity appeared
        - "entity_moved"       → {entity_id, x, y, z}
        - "destroy_entities"   → {entity_ids: [...]}

    Handlers run on the connection's reader thread; reads happen on the
    decision thread, so all state is guarded by one lock.
    """

    def __init__(self, client: WorldConnection) -> None:
        self._client = client
        self._lock = Lock()

        self._time_of_day: int = 0
        self._player: _PlayerState = _PlayerState()

        # Entities keyed by numeric ID, insertion ordered
        self._entities: Dict[int, RawEntity] = {}

        # Slot-indexed inventory; empty slots are {}
        self._inventory: List[Dict[str, Any]] = []

        # Context map for misc metadata (agent name, bridge info, ...)
        self._context: Dict[str, Any] = {}

        self._register_handlers()

    # ------------------------------------------------------------------
    # Packet wiring
    # ------------------------------------------------------------------

    def _register_handlers(self) -> None:
        self._client.on_packet("spawn", self._handle_spawn)
        self._client.on_packet("health", self._handle_health)
        self._client.on_packet("position_update", self._handle_position_update)
        self._client.on_packet("time_update", self._handle_time_update)
        self._client.on_packet("window_items", self._handle_window_items)
        self._client.on_packet("set_slot", self._handle_set_slot)
        self._client.on_packet("spawn_entity", self._handle_spawn_entity)
        self._client.on_packet("entity_moved", self._handle_entity_moved)
        self._client.on_packet("destroy_entities", self._handle_destroy_entities)

    # ------------------------------------------------------------------
    # Packet handlers
    # ------------------------------------------------------------------

    def _handle_spawn(self, pkt: Mapping[str, Any]) -> None:
        with self._lock:
            self._player.spawned = True
            if "entity_id" in pkt:
                try:
                    self._player.entity_id = int(pkt["entity_id"])
                except (TypeError, ValueError):
                    pass
            if pkt.get("version"):
                self._player.version = str(pkt["version"])
            self._update_position(pkt)

    def _handle_health(self, pkt: Mapping[str, Any]) -> None:
        with self._lock:
            self._player.health = _coerce_float(pkt.get("health"), self._player.health)
            self._player.food = _coerce_float(pkt.get("food"), self._player.food)

    def _handle_position_update(self, pkt: Mapping[str, Any]) -> None:
        with self._lock:
            self._update_position(pkt)

    def _update_position(self, pkt: Mapping[str, Any]) -> None:
        pos = self._player.pos
        self._player.pos = {
            "x": _coerce_float(pkt.get("x"), pos["x"]),
            "y": _coerce_float(pkt.get("y"), pos["y"]),
            "z": _coerce_float(pkt.get("z"), pos["z"]),
        }

    def _handle_time_update(self, pkt: Mapping[str, Any]) -> None:
        value = pkt.get("time_of_day", pkt.get("time"))
        try:
            tod = int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            # Leave time unchanged on garbage input.
            return
        with self._lock:
            self._time_of_day = tod % 24000

    def _handle_window_items(self, pkt: Mapping[str, Any]) -> None:
        items = pkt.get("items")
        if not isinstance(items, list):
            return

        new_inv = [dict(entry) if isinstance(entry, Mapping) else {} for entry in items]
        with self._lock:
            self._inventory = new_inv

    def _handle_set_slot(self, pkt: Mapping[str, Any]) -> None:
        try:
            idx = int(pkt.get("slot"))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return
        if idx < 0:
            return

        item = pkt.get("item")
        with self._lock:
            while len(self._inventory) <= idx:
                self._inventory.append({})
            self._inventory[idx] = dict(item) if isinstance(item, Mapping) else {}

    def _handle_spawn_entity(self, pkt: Mapping[str, Any]) -> None:
        try:
            entity_id = int(pkt["entity_id"])
        except (KeyError, TypeError, ValueError):
            return

        entity = RawEntity(
            entity_id=entity_id,
            kind=str(pkt.get("kind", pkt.get("type", "unknown"))),
            x=_coerce_float(pkt.get("x"), 0.0),
            y=_coerce_float(pkt.get("y"), 0.0),
            z=_coerce_float(pkt.get("z"), 0.0),
            name=pkt.get("name"),
            username=pkt.get("username"),
            data=dict(pkt),
        )
        with self._lock:
            self._entities[entity_id] = entity

    def _handle_entity_moved(self, pkt: Mapping[str, Any]) -> None:
        try:
            entity_id = int(pkt["entity_id"])
        except (KeyError, TypeError, ValueError):
            return

        with self._lock:
            entity = self._entities.get(entity_id)
            if entity is None:
                return
            entity.x = _coerce_float(pkt.get("x"), entity.x)
            entity.y = _coerce_float(pkt.get("y"), entity.y)
            entity.z = _coerce_float(pkt.get("z"), entity.z)

    def _handle_destroy_entities(self, pkt: Mapping[str, Any]) -> None:
        ids = pkt.get("entity_ids")
        if not ids:
            return

        with self._lock:
            for raw_id in ids:
                try:
                    eid = int(raw_id)
                except (TypeError, ValueError):
                    continue
                self._entities.pop(eid, None)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def spawned(self) -> bool:
        return self._player.spawned

    def vitals(self) -> tuple[float, float]:
        """(health, food) as last reported."""
        with self._lock:
            return self._player.health, self._player.food

    def set_context(self, key: str, value: Any) -> None:
        """Attach arbitrary metadata to the tracker context."""
        with self._lock:
            self._context[key] = value

    def build_snapshot(self) -> RawWorldSnapshot:
        """
        Build a RawWorldSnapshot from the current tracked state.

        Entities are copied so callers can read positions without holding
        the tracker lock.
        """
        with self._lock:
            entities = [
                RawEntity(
                    entity_id=e.entity_id,
                    kind=e.kind,
                    x=e.x,
                    y=e.y,
                    z=e.z,
                    name=e.name,
                    username=e.username,
                    data=dict(e.data),
                )
                for e in self._entities.values()
            ]
            return RawWorldSnapshot(
                time_of_day=self._time_of_day,
                player_pos=dict(self._player.pos),
                health=self._player.health,
                food=self._player.food,
                entities=entities,
                inventory=[dict(stack) for stack in self._inventory if stack.get("name")],
                spawned=self._player.spawned,
                self_entity_id=self._player.entity_id,
                game_version=self._player.version,
                context=dict(self._context),
            )


__all__ = ["WorldTracker"]
