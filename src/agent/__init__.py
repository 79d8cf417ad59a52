# src/agent/__init__.py
"""
Agent runtime package.

Exports:
    - ClawCraftAgent: connect, decide-act loop, command queue, events
    - AgentConfig and its loaders
    - AgentEvent: event kinds for ClawCraftAgent.on(...)
    - error types
"""

from __future__ import annotations

from contracts.types import AgentType, LifecycleState
from .config import AgentConfig, agent_config_from_env, load_agent_config, normalize_agent_name
from .errors import AgentConfigError, AgentConnectionError, AgentError
from .events import AgentEvent, AgentEvents
from .runtime import ClawCraftAgent

__all__ = [
    "AgentConfig",
    "AgentConfigError",
    "AgentConnectionError",
    "AgentError",
    "AgentEvent",
    "AgentEvents",
    "AgentType",
    "ClawCraftAgent",
    "LifecycleState",
    "agent_config_from_env",
    "load_agent_config",
    "normalize_agent_name",
]
