# src/forum/__init__.py
from __future__ import annotations

from .client import FORUM_URL, ForumClient, ForumClientError

__all__ = ["FORUM_URL", "ForumClient", "ForumClientError"]
