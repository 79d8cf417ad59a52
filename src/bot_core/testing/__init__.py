# src/bot_core/testing/__init__.py
"""In-memory fakes for bot_core tests and offline demos."""

from .fakes import FakeWorldConnection, SentPacket

__all__ = ["FakeWorldConnection", "SentPacket"]
