# src/agent/config.py
"""
Static configuration for one agent.

Sources, in the order most embedders use them:
  - AgentConfig(...) built directly in code
  - load_agent_config(path): a YAML mapping (see config/agent.example.yaml)
  - agent_config_from_env(): CLAWCRAFT_* environment variables

Oracle credentials are not part of AgentConfig; see llm_stack.config.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from contracts.types import AgentType
from .errors import AgentConfigError

DEFAULT_HOST = "89.167.28.237"
DEFAULT_PORT = 25565
DEFAULT_GAME_VERSION = "1.21.4"
DEFAULT_PERSONALITY = "A curious AI exploring the world"

DEFAULT_BRIDGE_HOST = "127.0.0.1"
DEFAULT_BRIDGE_PORT = 3457

_WHITESPACE = re.compile(r"\s+")


def normalize_agent_name(name: Any) -> str:
    """
    Collapse every whitespace run into a single underscore.

    "Test Bot" -> "Test_Bot". Leading/trailing whitespace is dropped first.
    Raises AgentConfigError for a missing or blank name.
    """
    if not isinstance(name, str) or not name.strip():
        raise AgentConfigError("Agent name is required")
    return _WHITESPACE.sub("_", name.strip())


@dataclass
class AgentConfig:
    """Identity, server address and loop timing for one agent."""

    name: str
    type: AgentType = AgentType.SURVIVAL
    personality: str = DEFAULT_PERSONALITY

    # Game server the bridge logs into
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    game_version: str = DEFAULT_GAME_VERSION
    auth: str = "offline"

    # Local game-client bridge process
    bridge_host: str = DEFAULT_BRIDGE_HOST
    bridge_port: int = DEFAULT_BRIDGE_PORT

    # Decision loop cadence (seconds)
    loop_interval_s: float = 2.0

    # How long connect() waits for the first spawn
    connect_timeout_s: float = 60.0

    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.name = normalize_agent_name(self.name)
        try:
            self.type = AgentType.parse(self.type)
        except ValueError as exc:
            raise AgentConfigError(str(exc)) from exc

        if self.personality is None or not str(self.personality).strip():
            self.personality = DEFAULT_PERSONALITY

        self.port = _as_port(self.port, "port")
        self.bridge_port = _as_port(self.bridge_port, "bridge_port")

        try:
            self.loop_interval_s = float(self.loop_interval_s)
            self.connect_timeout_s = float(self.connect_timeout_s)
        except (TypeError, ValueError) as exc:
            raise AgentConfigError(f"Invalid timing value: {exc}") from exc
        if self.loop_interval_s <= 0:
            raise AgentConfigError("loop_interval_s must be positive")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AgentConfig":
        """
        Build from a plain mapping (e.g. YAML).

        `loop_interval_ms` is accepted as an alternative to
        `loop_interval_s`. Unknown keys are kept in `extra`.
        """
        known = {f.name for f in fields(cls)} - {"extra"}
        kwargs: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in data.items():
            if key in known:
                kwargs[key] = value
            elif key == "loop_interval_ms":
                try:
                    interval_s = float(value) / 1000.0
                except (TypeError, ValueError) as exc:
                    raise AgentConfigError(f"Invalid loop_interval_ms: {value!r}") from exc
                kwargs.setdefault("loop_interval_s", interval_s)
            else:
                extra[key] = value

        if "name" not in kwargs:
            raise AgentConfigError("Agent name is required")
        return cls(extra=extra, **kwargs)


def _as_port(value: Any, label: str) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise AgentConfigError(f"{label} must be an integer, got {value!r}")
    if not 0 < port < 65536:
        raise AgentConfigError(f"{label} out of range: {port}")
    return port


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------


def load_agent_config(path: str | Path) -> AgentConfig:
    """Load an AgentConfig from a YAML file containing a single mapping."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise AgentConfigError(f"Expected mapping at top of {path}, got {type(data)}")

    # Allow either a bare mapping or one nested under "agent:".
    section = data.get("agent", data)
    if not isinstance(section, dict):
        raise AgentConfigError(f"Expected mapping under 'agent' in {path}")
    return AgentConfig.from_dict(section)


_ENV_KEYS = {
    "CLAWCRAFT_AGENT_NAME": "name",
    "CLAWCRAFT_AGENT_TYPE": "type",
    "CLAWCRAFT_PERSONALITY": "personality",
    "CLAWCRAFT_HOST": "host",
    "CLAWCRAFT_PORT": "port",
    "CLAWCRAFT_BRIDGE_HOST": "bridge_host",
    "CLAWCRAFT_BRIDGE_PORT": "bridge_port",
    "CLAWCRAFT_LOOP_INTERVAL_MS": "loop_interval_ms",
}


def agent_config_from_env(
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> AgentConfig:
    """
    Build an AgentConfig from CLAWCRAFT_* environment variables.

    Keyword overrides win over the environment.
    """
    env = os.environ if environ is None else environ
    data: Dict[str, Any] = {}
    for env_key, field_name in _ENV_KEYS.items():
        value = env.get(env_key)
        if value:
            data[field_name] = value
    data.update(overrides)
    return AgentConfig.from_dict(data)
