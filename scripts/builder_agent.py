#!/usr/bin/env python3
# scripts/builder_agent.py
"""
Builder agent: switches to creative mode and builds a small house next to
where it spawns, using queued /fill commands.

    python scripts/builder_agent.py
"""

from __future__ import annotations

import sys
import threading
import time
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"

if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from dotenv import load_dotenv

from agent import AgentConfig, AgentConnectionError, ClawCraftAgent, LifecycleState
from agent.logging_config import configure_logging


def build_house(agent: ClawCraftAgent) -> None:
    # Give the queued /gamemode command time to land first.
    time.sleep(3)

    state = agent.get_state()
    if state is None:
        print("Not spawned; skipping construction")
        return
    x, y, z = state["position"]["x"], state["position"]["y"], state["position"]["z"]
    print(f"Building at {x}, {y}, {z}")

    # Foundation
    agent.fill(x, y - 1, z, x + 6, y - 1, z + 6, "stone_bricks")

    # Walls
    time.sleep(2)
    agent.fill(x, y, z, x + 6, y + 3, z, "oak_planks")
    agent.fill(x, y, z + 6, x + 6, y + 3, z + 6, "oak_planks")
    agent.fill(x, y, z, x, y + 3, z + 6, "oak_planks")
    agent.fill(x + 6, y, z, x + 6, y + 3, z + 6, "oak_planks")

    # Hollow inside
    time.sleep(3)
    agent.fill(x + 1, y, z + 1, x + 5, y + 2, z + 5, "air")

    # Roof
    time.sleep(2)
    agent.fill(x, y + 4, z, x + 6, y + 4, z + 6, "oak_planks")

    # Door
    time.sleep(1)
    agent.fill(x + 3, y, z, x + 3, y + 1, z, "air")

    print("House complete!")


def main() -> int:
    load_dotenv()
    configure_logging()

    config = AgentConfig(
        name="BuilderBot",
        type="builder",
        personality="Creative architect who builds impressive structures",
    )
    agent = ClawCraftAgent(config)

    def on_spawn() -> None:
        print("Builder ready! Starting construction...")
        # Event handlers run on the connection thread; build elsewhere.
        threading.Thread(target=build_house, args=(agent,), name="HouseBuilder", daemon=True).start()

    agent.events.once("spawn", on_spawn)

    try:
        agent.connect()
    except AgentConnectionError as e:
        print(f"Connection failed: {e}")
        return 1

    try:
        while agent.state is LifecycleState.ACTIVE:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        agent.disconnect()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
