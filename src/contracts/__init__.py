# src/contracts/__init__.py
"""
Public surface for the core ClawCraft agent types.

This module re-exports *interfaces and data types* shared across packages:
  - agent identity / lifecycle enums
  - Action / ActionResult / StateSnapshot
  - BotCore and DecisionOracle protocols

Concrete runtime wiring lives in src/agent/.
"""

from __future__ import annotations

from .bot_core import BotCore, DecisionOracle
from .types import (
    ACTION_TYPES,
    Action,
    ActionResult,
    AgentType,
    InventoryEntry,
    LifecycleState,
    NearbyEntity,
    StateSnapshot,
)

__all__ = [
    "ACTION_TYPES",
    "Action",
    "ActionResult",
    "AgentType",
    "BotCore",
    "DecisionOracle",
    "InventoryEntry",
    "LifecycleState",
    "NearbyEntity",
    "StateSnapshot",
]
