#!/usr/bin/env python3
# scripts/verified_agent.py
"""
Verified agent: proves its on-chain registration to the gatekeeper, then
connects.

Requirements:
  - agent registered on the ERC-8004 Identity Registry
  - the agent wallet private key

    AGENT_KEY=0x... AGENT_ID=1 python scripts/verified_agent.py
"""

from __future__ import annotations

import os
import sys
import time
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"

if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from dotenv import load_dotenv

from agent import AgentConfig, AgentConnectionError, ClawCraftAgent, LifecycleState
from agent.logging_config import configure_logging
from gatekeeper import AgentVerifier, VerificationError

USERNAME = "VerifiedBot"
BASE_MAINNET = 8453


def main() -> int:
    load_dotenv()
    configure_logging()

    private_key = os.environ.get("AGENT_KEY") or os.environ.get("AGENT_PRIVATE_KEY")
    if not private_key:
        print("Set AGENT_KEY environment variable")
        return 1

    verifier = AgentVerifier(
        minecraft_username=USERNAME,
        agent_id=int(os.environ.get("AGENT_ID", "1")),
        chain_id=int(os.environ.get("CHAIN_ID", str(BASE_MAINNET))),
        private_key=private_key,
    )

    # Step 1: verify on-chain registration
    try:
        if verifier.is_verified():
            print("Agent already verified!")
        else:
            print("Agent not verified. Starting verification...")
            verifier.verify()
    except VerificationError as e:
        print(f"Verification failed: {e}")
        print("\nMake sure your agent is registered on the ERC-8004 Identity Registry")
        return 1

    # Step 2: connect
    print("\nConnecting to ClawCraft...")
    agent = ClawCraftAgent(
        AgentConfig(
            name=USERNAME,
            type="survival",
            personality="A verified AI agent exploring the world",
        )
    )

    def on_spawn() -> None:
        print("Verified agent spawned successfully!")
        agent.chat("Verified agent reporting for duty!")

    def on_kicked(reason: str) -> None:
        print(f"Kicked: {reason}")
        if "not verified" in reason:
            print("Verification may have expired. Re-run to verify again.")

    agent.on("spawn", on_spawn)
    agent.on("kicked", on_kicked)

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
