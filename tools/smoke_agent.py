#!/usr/bin/env python3
"""
tools/smoke_agent.py

Minimal harness to sanity-check ClawCraftAgent wiring.

Default mode:
    - Uses FakeWorldConnection (no bridge, no server)
    - Spawns via a scripted login reply
    - Emits a few synthetic world events
    - Calls:
        - get_state()
        - mine / eat / explore helpers
        - one decision-loop tick
    - Prints the state snapshot, ActionResults, and sent packets

--mode real connects through the local game-client bridge instead.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any

# ---------------------------------------------------------------------------
# Ensure src/ is on sys.path when running as a script
# ---------------------------------------------------------------------------

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from agent import AgentConfig, AgentConnectionError, ClawCraftAgent  # noqa: E402
from bot_core.testing import FakeWorldConnection  # noqa: E402


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _to_dict(obj: Any) -> Any:
    """Best-effort conversion of dataclasses to plain dicts for printing."""
    if is_dataclass(obj):
        return asdict(obj)
    return obj


def _print_header(title: str) -> None:
    print("\n" + "=" * 80)
    print(title)
    print("=" * 80)


def _print_sent(conn: FakeWorldConnection) -> None:
    for p in conn.sent_packets:
        print(f"  - send    {p.packet_type}: {p.data}")
    for p in conn.requests:
        print(f"  - request {p.packet_type}: {p.data}")
    conn.sent_packets.clear()
    conn.requests.clear()


def run_fake_mode() -> None:
    """Pure in-memory run. Needs neither a bridge nor a server."""
    _print_header("Fake mode: ClawCraftAgent over FakeWorldConnection")

    conn = FakeWorldConnection(
        replies={
            "find_block": {"position": {"x": 4, "y": 63, "z": -2}},
            "find_recipe": {"recipe": {"id": "oak_planks"}},
        },
        login_events=[("spawn", {"x": 1.5, "y": 64.0, "z": -2.0, "entity_id": 1})],
    )
    agent = ClawCraftAgent(
        AgentConfig(name="Smoke Bot", type="manual"),
        connection_factory=lambda _cfg: conn,
    )
    agent.connect(timeout=1.0)
    print(f"state={agent.state.value} name={agent.name}")
    _print_sent(conn)

    conn.emit("time_update", {"time_of_day": 14000})
    conn.emit("health", {"health": 18, "food": 17})
    conn.emit("window_items", {"items": [{"name": "bread", "count": 3}]})
    conn.emit("spawn_entity", {"entity_id": 7, "kind": "mob", "name": "zombie", "x": 5, "y": 64, "z": 0})

    _print_header("get_state()")
    print(json.dumps(agent.get_state(), indent=2))

    for label, call in [
        ("mine oak_log", lambda: agent.mine("oak_log")),
        ("eat", agent.eat),
        ("explore east", lambda: agent.explore("east")),
        ("attack zombie", lambda: agent.attack("zombie")),
        ("craft oak_planks x4", lambda: agent.craft("oak_planks", 4)),
    ]:
        _print_header(f"helper: {label}")
        print("ActionResult:", _to_dict(call()))
        _print_sent(conn)

    _print_header("decision loop: one tick (no oracle)")
    assert agent.decision_loop is not None
    print("outcome:", agent.decision_loop.tick().value)
    _print_sent(conn)

    _print_header("command queue: setblock + fill")
    agent.setblock(0, 64, 0, "stone")
    agent.fill(0, 64, 0, 2, 66, 2, "glass")
    time.sleep(1.5)
    print("chat lines:", conn.chat_lines())

    agent.disconnect()
    _print_header(f"Fake mode completed (state={agent.state.value})")


def run_real_mode(name: str) -> None:
    """Connect through the local game-client bridge (see AgentConfig.bridge_port)."""
    _print_header("Real mode: ClawCraftAgent over the bridge")

    agent = ClawCraftAgent(AgentConfig(name=name, type="manual"))
    try:
        agent.connect()
    except AgentConnectionError as exc:
        print("connect() failed:", repr(exc))
        return

    try:
        _print_header("get_state()")
        print(json.dumps(agent.get_state(), indent=2))

        _print_header("explore north")
        print("ActionResult:", _to_dict(agent.explore("north")))
        time.sleep(5)
        print(json.dumps(agent.get_state(), indent=2))
    finally:
        agent.disconnect()

    _print_header("Real mode completed")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="Smoke test harness for ClawCraftAgent",
    )
    parser.add_argument(
        "--mode",
        choices=["fake", "real"],
        default="fake",
        help="Run in 'fake' (no network) or 'real' (bridge) mode",
    )
    parser.add_argument("--name", default="SmokeBot", help="Agent name for real mode")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if args.mode == "fake":
        run_fake_mode()
    else:
        run_real_mode(args.name)


if __name__ == "__main__":
    main()
