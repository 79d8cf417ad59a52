# src/agent/errors.py
"""
Error types surfaced by the agent runtime.

Only connection-level and configuration failures escape the agent.
Action and oracle failures are absorbed by the decision loop.
"""

from __future__ import annotations


class AgentError(Exception):
    """Base exception for agent runtime errors."""


class AgentConfigError(AgentError, ValueError):
    """Invalid agent configuration (missing name, bad type, bad port...)."""


class AgentConnectionError(AgentError):
    """
    A connect() attempt failed.

    Raised for transport failures, a server-side error before the first
    spawn, a kick or disconnect before spawn, and connect timeouts. Not
    retried by the runtime.
    """

    def __init__(self, message: str, *, reason: str = "connect_failed") -> None:
        super().__init__(message)
        self.reason = reason
