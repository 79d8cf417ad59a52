# BotCore and DecisionOracle interface definitions
# src/contracts/bot_core.py

from __future__ import annotations

from typing import Protocol, Tuple

from .types import Action, ActionResult, StateSnapshot


class BotCore(Protocol):
    """Abstract interface for a controllable agent body.

    This is the layer the decision loop talks to:
    - reads the current situation (vitals, capped snapshot)
    - maps Actions to concrete world calls
    """

    def vitals(self) -> Tuple[float, float]:
        """Return (health, food) as last reported by the server."""
        ...

    def get_state_snapshot(self) -> StateSnapshot:
        """Return a fresh capped StateSnapshot."""
        ...

    def execute_action(self, action: Action) -> ActionResult:
        """
        Execute a single Action and return the result.

        Navigation, lookups and I/O happen under the hood. Failures are
        reported through ActionResult, not raised.
        """
        ...


class DecisionOracle(Protocol):
    """External decision service returning one Action per query."""

    def decide(self, snapshot: StateSnapshot) -> Action:
        """
        Choose the next action for the given snapshot.

        Implementations must not raise; on any failure they return a
        fallback action (normally `wait`).
        """
        ...
