# bot_core.net package
# src/bot_core/net/__init__.py
"""
Network layer for bot_core.

This package provides:
- WorldConnection protocol (common interface)
- BridgeClient: JSON-lines client for the headless game-client bridge
- Factory helper wired to plain host/port settings.
"""

from __future__ import annotations

from .client import (
    PacketHandler,
    WorldConnection,
    WorldConnectionError,
    create_world_connection,
)
from .ipc import BridgeClient

__all__ = [
    "BridgeClient",
    "PacketHandler",
    "WorldConnection",
    "WorldConnectionError",
    "create_world_connection",
]
