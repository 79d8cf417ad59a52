# src/bot_core/actions.py
"""
Action execution for bot_core.

This module translates Actions into bridge messages via a WorldConnection.

Design constraints:
- One world-affecting call sequence per Action variant:
    - mine, explore, attack, eat, flee, craft, chat, wait
- Explicit, structured soft misses:
    - no matching block / entity / food / recipe
    - IO/bridge error
- Unknown action tags are no-ops, not errors.
- Pathfinding and world representation stay in the bridge.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from contracts.types import Action, ActionResult
from .net import WorldConnection, WorldConnectionError
from .snapshot import RawWorldSnapshot, nearby_entities


log = logging.getLogger(__name__)

ChatFn = Callable[[str], bool]
SnapshotFn = Callable[[], RawWorldSnapshot]

DEFAULT_FOODS: Tuple[str, ...] = (
    "bread",
    "cooked_beef",
    "cooked_porkchop",
    "apple",
    "golden_apple",
    "cooked_chicken",
    "cooked_mutton",
    "baked_potato",
    "carrot",
)

# (dx, dz) per compass direction; negative z is north.
EXPLORE_OFFSETS: Dict[str, Tuple[int, int]] = {
    "north": (0, -30),
    "south": (0, 30),
    "east": (30, 0),
    "west": (-30, 0),
}


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@dataclass
class ActionExecutorConfig:
    """Distances and timeouts for the action executor."""

    block_search_radius: int = 32
    entity_search_radius: float = 16.0

    # Arrival range when walking up to a block before digging
    reach_range: float = 2.0

    # Arrival range for explore / flee goals
    wander_range: float = 5.0

    # Flee picks a point uniformly in [-flee_spread/2, flee_spread/2) on x and z
    flee_spread: float = 40.0

    follow_range: float = 3.0

    # Upper bound on a blocking navigation / dig / consume / craft request
    request_timeout_s: float = 60.0

    foods: Tuple[str, ...] = field(default_factory=lambda: DEFAULT_FOODS)


class ActionExecutor:
    """
    Translate Actions into WorldConnection messages.

    Public contract:
      execute(action) -> ActionResult

    Every failure is a soft miss: the action simply does not complete and
    the result says why. Nothing raises out of execute().
    """

    def __init__(
        self,
        client: WorldConnection,
        snapshot_fn: SnapshotFn,
        *,
        chat_fn: Optional[ChatFn] = None,
        config: ActionExecutorConfig | None = None,
        rng: random.Random | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._snapshot = snapshot_fn
        self._chat = chat_fn
        self._cfg = config if config is not None else ActionExecutorConfig()
        self._rng = rng or random.Random()
        self._log = logger or log

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def execute(self, action: Action) -> ActionResult:
        """Execute a single Action."""
        atype = getattr(action, "type", None)
        params = getattr(action, "params", {}) or {}

        self._log.debug("ActionExecutor.execute start type=%s params=%r", atype, params)

        if not isinstance(params, Mapping):
            return ActionResult(
                success=False,
                error="invalid_params",
                details={"reason": "params_not_mapping", "action_type": atype},
            )

        try:
            if atype == "mine":
                result = self.mine(params.get("block"))
            elif atype == "explore":
                result = self.explore(params.get("direction"))
            elif atype == "attack":
                result = self.attack(params.get("target"))
            elif atype == "eat":
                result = self.eat()
            elif atype == "flee":
                result = self.flee()
            elif atype == "craft":
                result = self.craft(params.get("item"), params.get("count", 1))
            elif atype == "chat":
                result = self.chat(params.get("message"))
            elif atype == "wait":
                result = ActionResult(success=True, error=None, details={})
            else:
                # Unknown tags are no-ops.
                result = ActionResult(
                    success=False,
                    error="unsupported_action",
                    details={"action_type": atype},
                )
        except WorldConnectionError as exc:
            return ActionResult(
                success=False,
                error="io_error",
                details={"action_type": atype, "exception": repr(exc)},
            )
        except Exception as exc:
            self._log.exception("ActionExecutor.execute raised unexpectedly for type=%s", atype)
            return ActionResult(
                success=False,
                error="execution_exception",
                details={"action_type": atype, "exception": repr(exc)},
            )

        self._log.debug(
            "ActionExecutor.execute end type=%s success=%s error=%s",
            atype,
            result.success,
            result.error,
        )
        return result

    # ------------------------------------------------------------------
    # Movement
    # ------------------------------------------------------------------

    def goto(self, x: float, y: float, z: float, range_: float = 2.0) -> ActionResult:
        """Walk to within `range_` of (x, y, z); blocks until arrival."""
        target = {"x": x, "y": y, "z": z, "range": range_}
        self._client.request("goto", target, timeout=self._cfg.request_timeout_s)
        return ActionResult(success=True, error=None, details=target)

    def set_goal(self, x: float, y: float, z: float, range_: float) -> Dict[str, Any]:
        """Set a dynamic movement goal and return immediately."""
        goal = {"x": x, "y": y, "z": z, "range": range_, "dynamic": True}
        self._client.send_packet("set_goal", goal)
        return goal

    def follow(self, player_name: str) -> ActionResult:
        """Keep following a player entity that is currently tracked."""
        raw = self._snapshot()
        for entity in raw.entities:
            if entity.username == player_name and entity.kind == "player":
                payload = {"entity_id": entity.entity_id, "range": self._cfg.follow_range}
                self._client.send_packet("follow", payload)
                return ActionResult(success=True, error=None, details=payload)
        return ActionResult(
            success=False,
            error="player_not_found",
            details={"player": player_name},
        )

    def flee(self) -> ActionResult:
        """Head for a random point around the current position."""
        pos = self._snapshot().player_pos
        spread = self._cfg.flee_spread
        x = pos["x"] + (self._rng.random() - 0.5) * spread
        z = pos["z"] + (self._rng.random() - 0.5) * spread
        goal = self.set_goal(x, pos["y"], z, self._cfg.wander_range)
        return ActionResult(success=True, error=None, details=goal)

    def explore(self, direction: Any) -> ActionResult:
        """Set a goal a fixed distance away in a compass direction."""
        dx, dz = EXPLORE_OFFSETS.get(direction, EXPLORE_OFFSETS["north"])  # type: ignore[arg-type]
        pos = self._snapshot().player_pos
        goal = self.set_goal(pos["x"] + dx, pos["y"], pos["z"] + dz, self._cfg.wander_range)
        return ActionResult(success=True, error=None, details=goal)

    # ------------------------------------------------------------------
    # World interaction
    # ------------------------------------------------------------------

    def mine(self, block_name: Any) -> ActionResult:
        """Find the nearest matching block, walk next to it and dig it."""
        if not isinstance(block_name, str) or not block_name:
            return ActionResult(
                success=False,
                error="invalid_params",
                details={"reason": "missing_block"},
            )

        found = self._client.request(
            "find_block",
            {"name": block_name, "max_distance": self._cfg.block_search_radius},
        )
        position = found.get("position")
        if not isinstance(position, Mapping):
            return ActionResult(
                success=False,
                error="no_matching_block",
                details={"block": block_name},
            )

        x, y, z = position["x"], position["y"], position["z"]
        self.goto(x, y, z, self._cfg.reach_range)
        self._client.request("dig", {"x": x, "y": y, "z": z}, timeout=self._cfg.request_timeout_s)
        return ActionResult(
            success=True,
            error=None,
            details={"block": block_name, "x": x, "y": y, "z": z},
        )

    def attack(self, target: Any) -> ActionResult:
        """Engage the first tracked entity named `target` within range."""
        raw = self._snapshot()
        for entity in nearby_entities(raw, self._cfg.entity_search_radius):
            if target in (entity.name, entity.username):
                self._client.send_packet("attack", {"entity_id": entity.entity_id})
                return ActionResult(
                    success=True,
                    error=None,
                    details={"target": target, "entity_id": entity.entity_id},
                )
        return ActionResult(
            success=False,
            error="no_matching_entity",
            details={"target": target},
        )

    def eat(self) -> ActionResult:
        """Equip the first known food item in the inventory and consume it."""
        raw = self._snapshot()
        food = next(
            (stack["name"] for stack in raw.inventory if stack.get("name") in self._cfg.foods),
            None,
        )
        if food is None:
            return ActionResult(success=False, error="no_food", details={})

        timeout = self._cfg.request_timeout_s
        self._client.request("equip", {"item": food, "destination": "hand"}, timeout=timeout)
        self._client.request("consume", {}, timeout=timeout)
        return ActionResult(success=True, error=None, details={"item": food})

    def craft(self, item: Any, count: Any = 1) -> ActionResult:
        """Resolve a recipe for `item` and craft `count` of it."""
        if not isinstance(item, str) or not item:
            return ActionResult(
                success=False,
                error="invalid_params",
                details={"reason": "missing_item"},
            )
        try:
            amount = max(1, int(count))
        except (TypeError, ValueError):
            amount = 1

        found = self._client.request("find_recipe", {"item": item})
        recipe = found.get("recipe")
        if recipe is None:
            error = "unknown_item" if found.get("known_item") is False else "no_recipe"
            return ActionResult(success=False, error=error, details={"item": item})

        self._client.request(
            "craft",
            {"recipe": recipe, "count": amount},
            timeout=self._cfg.request_timeout_s,
        )
        return ActionResult(success=True, error=None, details={"item": item, "count": amount})

    def chat(self, message: Any) -> ActionResult:
        """Send chat through the rate-limited chat gate."""
        if self._chat is None:
            return ActionResult(success=False, error="chat_unavailable", details={})
        if not isinstance(message, str):
            message = "" if message is None else str(message)
        if not self._chat(message):
            return ActionResult(success=False, error="chat_rate_limited", details={})
        return ActionResult(success=True, error=None, details={"message": message})


__all__ = [
    "ActionExecutor",
    "ActionExecutorConfig",
    "DEFAULT_FOODS",
    "EXPLORE_OFFSETS",
]
