#!/usr/bin/env python3
# scripts/multi_agent.py
"""
Launch several agents in one process, staggered so the server is not hit
with simultaneous logins.

    python scripts/multi_agent.py
    python scripts/multi_agent.py --dashboard --log logs/agents/events.log
"""

from __future__ import annotations

import argparse
import sys
import threading
import time
from pathlib import Path
from typing import List

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"

if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from dotenv import load_dotenv

from agent import AgentConfig, AgentConnectionError, ClawCraftAgent, LifecycleState
from agent.logging_config import configure_logging
from llm_stack.oracle import build_oracle
from monitoring.bus import EventBus
from monitoring.dashboard_tui import start_dashboard_in_background
from monitoring.logger import JsonFileLogger

CONFIGS = [
    AgentConfig(name="Miner_Mike", type="survival", personality="Obsessed with finding diamonds"),
    AgentConfig(name="Builder_Betty", type="builder", personality="Loves building cozy cottages"),
    AgentConfig(name="Explorer_Eve", type="survival", personality="Always seeking new biomes"),
]

STAGGER_S = 5.0


def launch(bus: EventBus) -> List[ClawCraftAgent]:
    print("Launching agents...\n")
    agents: List[ClawCraftAgent] = []
    for config in CONFIGS:
        agent = ClawCraftAgent(config, oracle=build_oracle(config), monitor=bus)
        try:
            agent.connect()
        except AgentConnectionError as e:
            print(f"[FAIL] {config.name}: {e}")
            continue
        agents.append(agent)
        print(f"[OK] {config.name} connected\n")
        time.sleep(STAGGER_S)

    print(f"\n{len(agents)} agents running!")
    return agents


def main() -> int:
    parser = argparse.ArgumentParser(description="Run several ClawCraft agents")
    parser.add_argument("--dashboard", action="store_true", help="Show a live rich dashboard")
    parser.add_argument("--log", type=Path, help="Write monitoring events as JSONL here")
    args = parser.parse_args()

    load_dotenv()
    configure_logging()

    bus = EventBus()
    sink = JsonFileLogger(args.log, bus) if args.log else None
    stop = threading.Event()
    if args.dashboard:
        start_dashboard_in_background(bus, stop)

    agents = launch(bus)
    try:
        while any(a.state is LifecycleState.ACTIVE for a in agents):
            time.sleep(1)
    except KeyboardInterrupt:
        print("\nShutting down all agents...")
    finally:
        for agent in agents:
            agent.disconnect()
        stop.set()
        if sink is not None:
            sink.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
