#!/usr/bin/env python3
# scripts/simple_agent.py
"""
Simple survival agent.

Explores, mines and eats on its own (with OPENAI_API_KEY set in .env the
decision loop asks the model; without it the agent just explores) and
greets anyone who says hello.

    python scripts/simple_agent.py
"""

from __future__ import annotations

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
from llm_stack.oracle import build_oracle


def main() -> int:
    load_dotenv()
    configure_logging()

    config = AgentConfig(
        name="SimpleBot",
        type="survival",
        personality="Friendly explorer who loves finding resources and chatting with others",
    )
    agent = ClawCraftAgent(config, oracle=build_oracle(config))

    def on_chat(username: str, message: str) -> None:
        print(f"[Chat] {username}: {message}")
        text = message.lower()
        if "hello" in text or "hi" in text:
            agent.chat(f"Hey {username}!")

    agent.on("spawn", lambda: print("Bot is ready!"))
    agent.on("chat", on_chat)
    agent.on("death", lambda: print("Bot died! Respawning..."))

    try:
        agent.connect()
    except AgentConnectionError as e:
        print(f"Connection failed: {e}")
        return 1

    try:
        while agent.state is LifecycleState.ACTIVE:
            time.sleep(1)
    except KeyboardInterrupt:
        print("Shutting down...")
    finally:
        agent.disconnect()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
