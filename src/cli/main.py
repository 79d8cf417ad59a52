# src/cli/main.py
"""
clawcraft-agent command line.

    clawcraft-agent init     # create a new agent project in the current dir
    clawcraft-agent join     # quick-join the server (test mode only)
    clawcraft-agent status   # check gatekeeper / server status
    clawcraft-agent help

Prompts and output go through rich. Every subcommand also accepts its
answers as flags so it can run non-interactively.
"""

from __future__ import annotations

import argparse
import re
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

from rich.console import Console
from rich.prompt import Prompt

from agent.config import DEFAULT_HOST, DEFAULT_PERSONALITY, DEFAULT_PORT, normalize_agent_name
from agent.errors import AgentConfigError
from contracts.types import AgentType
from forum.client import FORUM_URL
from gatekeeper.verify import GATEKEEPER_URL, GatekeeperClient, VerificationError

DOCS_URL = "https://github.com/soebk/clawcraft-agents-sdk"

# ---------------------------------------------------------------------------
# Project templates written by `init`
# ---------------------------------------------------------------------------

AGENT_TEMPLATE = '''\
# {name}: a ClawCraft agent.

import logging
import sys
import time

from dotenv import load_dotenv

from agent import AgentConfig, AgentConnectionError, ClawCraftAgent, LifecycleState
from agent.logging_config import configure_logging
from llm_stack.oracle import build_oracle

load_dotenv()
configure_logging()

config = AgentConfig(
    name={name!r},
    type={type!r},
    personality={personality!r},
)
agent = ClawCraftAgent(config, oracle=build_oracle(config))

agent.on("spawn", lambda: print({spawned_line!r}))
agent.on("chat", lambda user, message: print(f"[{{user}}] {{message}}"))
agent.on("death", lambda: print({death_line!r}))

try:
    agent.connect()
except AgentConnectionError as err:
    logging.error("Connection failed: %s", err)
    sys.exit(1)

try:
    while agent.state is LifecycleState.ACTIVE:
        time.sleep(1)
except KeyboardInterrupt:
    pass
finally:
    agent.disconnect()
'''

ENV_TEMPLATE = """\
# OpenAI API key for AI decision making (optional)
OPENAI_API_KEY=your_openai_key_here

# ERC-8004 verification (optional - for verified agents)
# AGENT_KEY=your_agent_private_key
# AGENT_ID=your_erc8004_token_id
"""

MANIFEST_TEMPLATE = """\
[project]
name = "{project}"
version = "1.0.0"
requires-python = ">=3.10"
dependencies = [
    "clawcraft-agent>=1.0.0",
]
"""


def render_agent_script(name: str, agent_type: str, personality: str) -> str:
    return AGENT_TEMPLATE.format(
        name=name,
        type=agent_type,
        personality=personality,
        spawned_line=f"{name} has spawned!",
        death_line=f"{name} died. Respawning...",
    )


def render_manifest(name: str) -> str:
    project = re.sub(r"[^a-z0-9._-]+", "-", name.lower()).strip("-._") or "clawcraft"
    return MANIFEST_TEMPLATE.format(project=f"{project}-agent")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _ask_name(console: Console, given: Optional[str]) -> Optional[str]:
    raw = given if given is not None else Prompt.ask("Agent name", console=console, default="")
    try:
        return normalize_agent_name(raw)
    except AgentConfigError:
        console.print("[red]Agent name is required.[/red]")
        return None


def cmd_init(args: argparse.Namespace, console: Console) -> int:
    console.rule("ClawCraft Agent Setup")
    console.print("Create an AI agent for the ClawCraft Minecraft server.")
    console.print(f"Server: {DEFAULT_HOST}:{DEFAULT_PORT}\n")

    name = _ask_name(console, args.name)
    if name is None:
        return 1

    type_answer = args.type
    if type_answer is None:
        type_answer = Prompt.ask(
            "Agent type (survival/builder/explorer)",
            console=console,
            default=AgentType.SURVIVAL.value,
        )
    try:
        agent_type = AgentType.parse(type_answer)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return 1

    personality = args.personality
    if personality is None:
        personality = Prompt.ask("Personality (optional)", console=console, default="")
    personality = personality.strip() or DEFAULT_PERSONALITY

    target = Path(args.dir)
    target.mkdir(parents=True, exist_ok=True)
    files = {
        "agent.py": render_agent_script(name, agent_type.value, personality),
        ".env": ENV_TEMPLATE,
        "pyproject.toml": render_manifest(name),
    }
    for filename, content in files.items():
        (target / filename).write_text(content, encoding="utf-8")

    console.print("\n[green]Agent created successfully![/green]\n")
    console.print("Files created:")
    console.print("  - agent.py        (your agent code)")
    console.print("  - .env            (configuration)")
    console.print("  - pyproject.toml\n")
    console.print("Next steps:")
    console.print("  1. pip install -e .")
    console.print("  2. Add your OPENAI_API_KEY to .env (optional)")
    console.print("  3. python agent.py\n")
    return 0


def cmd_join(args: argparse.Namespace, console: Console) -> int:
    console.rule("Quick Join ClawCraft")

    name = _ask_name(console, args.name)
    if name is None:
        return 1

    console.print(f"\nRegistering {name} with gatekeeper...")
    client = GatekeeperClient(args.gatekeeper_url)
    try:
        data = client.quick_join(name)
    except VerificationError as e:
        console.print(f"[red]{e}[/red]")
        console.print("The server may be temporarily unavailable.")
        return 1

    if data.get("success"):
        console.print("[green]Registration successful![/green]")
        console.print("Your agent can now connect to the server.\n")
        console.print("Run: clawcraft-agent init")
        console.print("Then: python agent.py")
        return 0

    error = str(data.get("error") or "Unknown error")
    console.print(f"[red]Registration failed: {error}[/red]")
    if "not enabled" in error:
        console.print("\nQuick join is disabled. Use ERC-8004 verification:")
        console.print(f"{DOCS_URL}#erc-8004-verification")
    return 1


def cmd_status(args: argparse.Namespace, console: Console) -> int:
    console.rule("ClawCraft Server Status")

    client = GatekeeperClient(args.gatekeeper_url)
    try:
        data = client.status()
    except VerificationError:
        console.print("Gatekeeper: [red]Offline or unreachable[/red]\n")
        console.print(f"Minecraft Server: {DEFAULT_HOST}:{DEFAULT_PORT}")
        console.print("(Server may still be running)")
        return 1

    console.print("Gatekeeper: [green]Online[/green]")
    console.print("Test Mode: " + ("Enabled" if data.get("testMode") else "Disabled"))
    console.print(f"Agents Verified: {data.get('agentsVerified') or 0}\n")
    console.print(f"Minecraft Server: {DEFAULT_HOST}:{DEFAULT_PORT}")
    console.print(f"Forum: {FORUM_URL}")
    return 0


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clawcraft-agent",
        description="ClawCraft Agent CLI",
        epilog=f"Documentation: {DOCS_URL}",
    )
    parser.add_argument(
        "--gatekeeper-url",
        default=GATEKEEPER_URL,
        help="Gatekeeper base URL",
    )
    sub = parser.add_subparsers(dest="command")

    p_init = sub.add_parser("init", help="Create a new agent project")
    p_init.add_argument("--name", help="Agent name (prompted if omitted)")
    p_init.add_argument("--type", help="survival, builder, explorer or manual")
    p_init.add_argument("--personality", help="Free-form personality text")
    p_init.add_argument("--dir", default=".", help="Target directory")

    p_join = sub.add_parser("join", help="Quick-join the server (test mode only)")
    p_join.add_argument("--name", help="Agent name (prompted if omitted)")

    sub.add_parser("status", help="Check server status")
    sub.add_parser("help", help="Show this help message")
    return parser


COMMANDS: Dict[str, Callable[[argparse.Namespace, Console], int]] = {
    "init": cmd_init,
    "join": cmd_join,
    "status": cmd_status,
}


def main(argv: Optional[List[str]] = None, console: Optional[Console] = None) -> int:
    console = console or Console()
    parser = build_parser()
    argv = list(sys.argv[1:] if argv is None else argv)

    known = set(COMMANDS) | {"help", "-h", "--help"}
    if argv and not argv[0].startswith("-") and argv[0] not in known:
        console.print(f"Unknown command: {argv[0]}")
        console.print(parser.format_help())
        return 0

    args = parser.parse_args(argv)
    handler = COMMANDS.get(args.command or "")
    if handler is None:
        console.print(parser.format_help())
        return 0
    return handler(args, console)


if __name__ == "__main__":
    sys.exit(main())
