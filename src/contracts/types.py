# core shared types: AgentType, Action, ActionResult, StateSnapshot
# src/contracts/types.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, TypedDict


# ---------------------------------------------------------------------------
# Agent identity / lifecycle
# ---------------------------------------------------------------------------

class AgentType(str, Enum):
    """Behavioral type selecting the default setup and loop policy."""

    SURVIVAL = "survival"
    BUILDER = "builder"
    EXPLORER = "explorer"
    MANUAL = "manual"

    @classmethod
    def parse(cls, value: Any) -> "AgentType":
        """Accept an AgentType or its string value (case-insensitive)."""
        if isinstance(value, cls):
            return value
        if value is None or value == "":
            return cls.SURVIVAL
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(t.value for t in cls)
            raise ValueError(f"Unknown agent type {value!r} (expected one of: {valid})")


class LifecycleState(str, Enum):
    """Connection lifecycle of a single agent."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    ACTIVE = "active"
    ERRORED = "errored"  # disconnected after a connection-level error


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

ACTION_TYPES = (
    "mine",
    "explore",
    "attack",
    "eat",
    "flee",
    "craft",
    "chat",
    "wait",
)


@dataclass
class Action:
    """
    One structured action for the executor.

    `type` is the variant tag; `params` carries the variant payload:

        mine     {"block": str}
        explore  {"direction": "north"|"south"|"east"|"west"}
        attack   {"target": str}
        eat      {}
        flee     {}
        craft    {"item": str, "count": int}
        chat     {"message": str}
        wait     {}

    Unknown tags are allowed here; the executor treats them as no-ops.
    """

    type: str
    params: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def mine(cls, block: str) -> "Action":
        return cls("mine", {"block": block})

    @classmethod
    def explore(cls, direction: str = "north") -> "Action":
        return cls("explore", {"direction": direction})

    @classmethod
    def attack(cls, target: str) -> "Action":
        return cls("attack", {"target": target})

    @classmethod
    def eat(cls) -> "Action":
        return cls("eat", {})

    @classmethod
    def flee(cls) -> "Action":
        return cls("flee", {})

    @classmethod
    def craft(cls, item: str, count: int = 1) -> "Action":
        return cls("craft", {"item": item, "count": count})

    @classmethod
    def chat(cls, message: str) -> "Action":
        return cls("chat", {"message": message})

    @classmethod
    def wait(cls) -> "Action":
        return cls("wait", {})

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Action":
        """
        Build an Action from the oracle's flat JSON shape:

            {"action": "mine", "block": "oak_log"}

        A missing or non-string "action" key yields `wait`.
        """
        tag = data.get("action")
        if not isinstance(tag, str) or not tag:
            return cls.wait()
        params = {k: v for k, v in data.items() if k != "action"}
        return cls(tag, params)

    def to_dict(self) -> Dict[str, Any]:
        """Inverse of from_dict()."""
        return {"action": self.type, **self.params}


@dataclass
class ActionResult:
    """Result of executing an Action."""
    success: bool                           # did it work?
    error: Optional[str]                    # soft-miss reason if not
    details: Dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# State snapshot (oracle input)
# ---------------------------------------------------------------------------

class InventoryEntry(TypedDict):
    name: str
    count: int


class NearbyEntity(TypedDict):
    type: str
    name: Optional[str]
    dist: int


@dataclass
class StateSnapshot:
    """
    Point-in-time read of the agent's situation.

    Ephemeral: rebuilt every decision tick, never persisted. Inventory and
    entity views are already capped by the builder (see
    bot_core.snapshot.to_state_snapshot).
    """

    position: Dict[str, int]
    health: int
    food: int
    is_night: bool
    inventory: List[InventoryEntry] = field(default_factory=list)
    nearby_entities: List[NearbyEntity] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """JSON shape embedded in oracle prompts."""
        return {
            "position": dict(self.position),
            "health": self.health,
            "food": self.food,
            "isNight": self.is_night,
            "inventory": [dict(i) for i in self.inventory],
            "nearbyEntities": [dict(e) for e in self.nearby_entities],
        }
