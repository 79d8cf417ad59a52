# bot_core package
# src/bot_core/__init__.py
"""
bot_core package.

Exports:
    - BotCoreImpl: agent body over a WorldConnection
    - ActionExecutor / ActionExecutorConfig: Action -> bridge calls
    - WorldConnection / WorldConnectionError: transport interface
"""

from __future__ import annotations

from .actions import ActionExecutor, ActionExecutorConfig
from .core import BotCoreImpl
from .net import WorldConnection, WorldConnectionError, create_world_connection

__all__ = [
    "ActionExecutor",
    "ActionExecutorConfig",
    "BotCoreImpl",
    "WorldConnection",
    "WorldConnectionError",
    "create_world_connection",
]
