# src/gatekeeper/__init__.py
"""Gatekeeper admission: on-chain verification and test-mode quick join."""

from __future__ import annotations

from .verify import (
    GATEKEEPER_URL,
    AgentVerifier,
    GatekeeperClient,
    VerificationError,
    sign_challenge,
)

__all__ = [
    "GATEKEEPER_URL",
    "AgentVerifier",
    "GatekeeperClient",
    "VerificationError",
    "sign_challenge",
]
