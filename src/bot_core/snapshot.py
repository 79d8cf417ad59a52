# RawWorldSnapshot + conversion to StateSnapshot
# src/bot_core/snapshot.py
"""
Snapshot structures for bot_core.

This module defines the raw world snapshot types assembled by the
WorldTracker and provides the adapter that converts a RawWorldSnapshot
into the capped StateSnapshot defined in `contracts.types`.

Design goals:
- Keep Raw* structures close to the data we ingest from the bridge.
- Keep StateSnapshot small: it is embedded verbatim in oracle prompts.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from contracts.types import InventoryEntry, NearbyEntity, StateSnapshot

# Time of day (in ticks, 0..24000) from which the world counts as night.
NIGHT_STARTS_AT = 13000

DEFAULT_ENTITY_RADIUS = 16.0
DEFAULT_MAX_ENTITIES = 8
DEFAULT_MAX_ITEMS = 10


# ---------------------------------------------------------------------------
# Raw world types (internal to bot_core)
# ---------------------------------------------------------------------------


@dataclass
class RawEntity:
    """
    Raw entity data as reported by the bridge.

    `data` keeps the original payload for anything not normalized here.
    """

    entity_id: int
    kind: str  # "player", "mob", "object", ...
    x: float
    y: float
    z: float
    name: Optional[str] = None
    username: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def display_name(self) -> Optional[str]:
        return self.name or self.username

    def distance_to(self, pos: Dict[str, float]) -> float:
        return math.dist(
            (self.x, self.y, self.z),
            (pos.get("x", 0.0), pos.get("y", 0.0), pos.get("z", 0.0)),
        )


@dataclass
class RawWorldSnapshot:
    """
    Full raw snapshot of the world as tracked by the WorldTracker.

    This is the canonical "raw" view for bot_core. The decision loop and
    oracle work with StateSnapshot, not this type.
    """

    time_of_day: int
    player_pos: Dict[str, float]  # {"x": float, "y": float, "z": float}
    health: float
    food: float

    entities: List[RawEntity]
    inventory: List[Dict[str, Any]]  # one {"name", "count"} per non-empty slot

    spawned: bool = False
    self_entity_id: Optional[int] = None
    game_version: Optional[str] = None

    # Misc runtime context (agent name, bridge info, ...)
    context: Dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# StateSnapshot adapter (RawWorldSnapshot -> contracts.types.StateSnapshot)
# ---------------------------------------------------------------------------


def _entity_to_summary(entity: RawEntity, pos: Dict[str, float]) -> NearbyEntity:
    return {
        "type": entity.kind,
        "name": entity.display_name,
        "dist": round(entity.distance_to(pos)),
    }


def nearby_entities(
    snapshot: RawWorldSnapshot,
    radius: float = DEFAULT_ENTITY_RADIUS,
) -> List[RawEntity]:
    """Entities strictly within `radius` of the player, excluding the player."""
    pos = snapshot.player_pos
    return [
        e
        for e in snapshot.entities
        if e.entity_id != snapshot.self_entity_id and e.distance_to(pos) < radius
    ]


def to_state_snapshot(
    snapshot: RawWorldSnapshot,
    *,
    entity_radius: float = DEFAULT_ENTITY_RADIUS,
    max_entities: int = DEFAULT_MAX_ENTITIES,
    max_items: int = DEFAULT_MAX_ITEMS,
) -> StateSnapshot:
    """
    Adapt a RawWorldSnapshot into the capped StateSnapshot.

    Position, health and food are rounded; inventory and nearby entities
    keep the first `max_items` / `max_entities` entries in tracker order.
    """
    pos = snapshot.player_pos

    inventory: List[InventoryEntry] = [
        {"name": str(stack["name"]), "count": int(stack.get("count", 1))}
        for stack in snapshot.inventory
        if stack.get("name")
    ][:max_items]

    entities = [
        _entity_to_summary(e, pos)
        for e in nearby_entities(snapshot, entity_radius)[:max_entities]
    ]

    return StateSnapshot(
        position={
            "x": round(pos.get("x", 0.0)),
            "y": round(pos.get("y", 0.0)),
            "z": round(pos.get("z", 0.0)),
        },
        health=round(snapshot.health),
        food=round(snapshot.food),
        is_night=snapshot.time_of_day >= NIGHT_STARTS_AT,
        inventory=inventory,
        nearby_entities=entities,
    )


__all__ = [
    "NIGHT_STARTS_AT",
    "RawEntity",
    "RawWorldSnapshot",
    "nearby_entities",
    "to_state_snapshot",
]
