# world connection protocol + factory
# src/bot_core/net/client.py
"""
Connection abstraction for bot_core.

Defines the WorldConnection protocol used by bot_core, plus a factory for
constructing the concrete bridge client from plain connection settings.

Everything below this interface (game protocol, pathfinding, world
representation) is owned by the headless game-client bridge process.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional, Protocol

# Type alias for event handlers.
PacketHandler = Callable[[Mapping[str, Any]], None]


class WorldConnectionError(RuntimeError):
    """Transport-level failure: not connected, socket error, request timeout."""


class WorldConnection(Protocol):
    """
    Abstract interface for a session with the game world.

    Implementations:
    - BridgeClient (JSON lines over TCP to a game-client bridge)
    - FakeWorldConnection (tests / offline demos)
    """

    def connect(self) -> None:
        """Open the transport. Login happens via a "login" packet."""
        ...

    def disconnect(self) -> None:
        """Close the transport. Safe to call more than once."""
        ...

    def send_packet(self, packet_type: str, data: Mapping[str, Any]) -> None:
        """Send a fire-and-forget message (chat, goals, attack...)."""
        ...

    def request(
        self,
        packet_type: str,
        data: Mapping[str, Any],
        timeout: Optional[float] = None,
    ) -> Mapping[str, Any]:
        """
        Send a message and block until the bridge replies.

        Returns the reply's result mapping. Raises WorldConnectionError on
        transport failure, timeout, or an error reply.
        """
        ...

    def on_packet(self, packet_type: str, handler: PacketHandler) -> None:
        """
        Register a handler for incoming events of a given type.

        Several handlers may be registered for the same type; they are
        called in registration order.
        """
        ...


def create_world_connection(host: str, port: int) -> WorldConnection:
    """
    Construct the default WorldConnection for a bridge listening on
    host:port.
    """
    # Lazy import to avoid cycles.
    from .ipc import BridgeClient

    return BridgeClient(host=host, port=port)
