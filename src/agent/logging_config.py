# src/agent/logging_config.py
"""
Central logging configuration for agent processes.

Call configure_logging() from your main entrypoint once, for example:

    from agent.logging_config import configure_logging
    configure_logging()

Agent lifecycle lines are prefixed with the agent name ("[Alice] spawned
..."), so one stdout stream stays readable with several agents running.
Decision-loop failures are logged at DEBUG; pass logging.DEBUG to see them.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

LOG_LEVEL_ENV = "CLAWCRAFT_LOG_LEVEL"


def configure_logging(level: Optional[int] = None) -> None:
    """
    Configure root logging if no handlers are attached yet.

    Args:
        level: logging level; defaults to $CLAWCRAFT_LOG_LEVEL or INFO.
    """
    root = logging.getLogger()

    # Don't duplicate handlers if someone already configured logging.
    if root.handlers:
        return

    if level is None:
        name = os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
        level = logging.getLevelName(name)
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(
        logging.Formatter(fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    )
    root.addHandler(handler)
    root.setLevel(level)
